from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from phplite.compilation import Compilation
from phplite.diagnostics import Diagnostic

PARSER_SOURCE = "phplite-parser"
SEMANTIC_SOURCE = "phplite"


@dataclass(frozen=True)
class DiagnosticEvent:
    """One publish for one file; an empty `diagnostics` tuple clears the file."""

    path: str
    source: str
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def is_clear(self) -> bool:
        return not self.diagnostics


class DiagnosticVisibilitySet:
    """
    Paths believed to show diagnostics of one origin in the client.

    Each member remembers what was last published for it. A member whose
    entry is None is "unknown": whatever the analysis yields next is
    republished.
    """

    def __init__(self):
        self._published: dict[str, Optional[tuple[Diagnostic, ...]]] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._published

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._published))

    def __len__(self) -> int:
        return len(self._published)

    def published(self, path: str) -> Optional[tuple[Diagnostic, ...]]:
        return self._published.get(path)

    def record(self, path: str, diagnostics: tuple[Diagnostic, ...]) -> None:
        self._published[path] = diagnostics

    def discard(self, path: str) -> None:
        self._published.pop(path, None)

    def invalidate(self, path: str) -> None:
        if path in self._published:
            self._published[path] = None

    def replace(self, published: dict[str, Optional[tuple[Diagnostic, ...]]]) -> None:
        self._published = dict(published)

    def clear(self) -> None:
        self._published.clear()

    def __repr__(self) -> str:
        return f"DiagnosticVisibilitySet({sorted(self._published)!r})"


class Session:
    """Workspace state of one server run: root, current compilation, both visibility sets."""

    def __init__(self):
        self.root_path: Optional[str] = None
        self.compilation: Optional[Compilation] = None
        self.parser_errors = DiagnosticVisibilitySet()
        self.semantic_errors = DiagnosticVisibilitySet()
        self.pending_root: Optional[str] = None
        self.library_paths: frozenset[str] = frozenset()

    @property
    def is_loaded(self) -> bool:
        return self.compilation is not None

    def install(self, root_path: str, compilation: Compilation, library_paths: Iterable[str] = ()) -> None:
        self.root_path = root_path
        self.compilation = compilation
        self.library_paths = frozenset(library_paths)
        self.parser_errors.clear()
        self.semantic_errors.clear()
