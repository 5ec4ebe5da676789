from __future__ import annotations

from dataclasses import dataclass

from phplite.diagnostics import Diagnostic, Severity
from phplite.reader import syntax as ast
from phplite.reader.parser import parse
from phplite.text import SourceText, TextSpan


@dataclass(frozen=True, eq=False)
class SyntaxTree:
    """A parsed file: path, text, root node and its parse-time diagnostics."""

    path: str
    text: SourceText
    root: ast.Script
    diagnostics: tuple[Diagnostic, ...]

    @classmethod
    def parse_code(cls, text: str, path: str) -> SyntaxTree:
        source = SourceText(text)
        root, errors = parse(text)
        diags = tuple(
            Diagnostic.at(source, path, TextSpan(err.start, err.end), err.code, err.message, Severity.ERROR)
            for err in errors
        )
        return cls(path, source, root, diags)

    def get_position(self, line: int, character: int) -> int:
        return self.text.get_position(line, character)

    def __repr__(self) -> str:
        return f"SyntaxTree({self.path!r}, diagnostics={len(self.diagnostics)})"
