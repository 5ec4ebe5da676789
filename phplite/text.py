"""Source text helpers: spans and line/column <-> offset translation."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True)
class TextSpan:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end


EMPTY_SPAN = TextSpan(0, 0)


class SourceText:
    """Immutable file text with a precomputed table of line starts."""

    __slots__ = ("text", "_line_starts")

    def __init__(self, text: str):
        self.text = text
        starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                starts.append(i + 1)
        self._line_starts = starts

    def __len__(self) -> int:
        return len(self.text)

    def line_length(self, line: int) -> int:
        start = self._line_starts[line]
        if line + 1 < len(self._line_starts):
            end = self._line_starts[line + 1] - 1
            if end > start and self.text[end - 1] == "\r":
                end -= 1
            return end - start
        return len(self.text) - start

    def get_position(self, line: int, character: int) -> int:
        """Absolute offset of (line, character), or -1 when out of range."""
        if line < 0 or character < 0 or line >= len(self._line_starts):
            return -1
        if character > self.line_length(line):
            return -1
        return self._line_starts[line] + character

    def line_column(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_starts, offset) - 1
        return line, offset - self._line_starts[line]
