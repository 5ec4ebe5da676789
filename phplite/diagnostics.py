from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from phplite.text import SourceText, TextSpan


class Severity(IntEnum):
    HIDDEN = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    severity: Severity
    path: str
    span: TextSpan
    start: tuple[int, int]  # (line, column), 0-based
    end: tuple[int, int]

    @property
    def is_visible(self) -> bool:
        return self.severity is not Severity.HIDDEN

    @classmethod
    def at(
        cls,
        source: SourceText,
        path: str,
        span: TextSpan,
        code: str,
        message: str,
        severity: Severity = Severity.ERROR,
    ) -> Diagnostic:
        return cls(
            code=code,
            message=message,
            severity=severity,
            path=path,
            span=span,
            start=source.line_column(span.start),
            end=source.line_column(span.end),
        )


# Parse-time codes
SYNTAX_ERROR = "PHP1001"
UNEXPECTED_CHARACTER = "PHP1002"
UNTERMINATED_STRING = "PHP1003"
UNTERMINATED_COMMENT = "PHP1004"

# Semantic codes
UNDEFINED_FUNCTION = "PHP0100"
UNDEFINED_CLASS = "PHP0101"
UNDEFINED_CONSTANT = "PHP0102"
UNDEFINED_VARIABLE = "PHP0103"
TOO_FEW_ARGUMENTS = "PHP0104"
AMBIGUOUS_FUNCTION = "PHP0105"
UNDEFINED_METHOD = "PHP0106"
UNDEFINED_CLASS_CONSTANT = "PHP0107"
DUPLICATE_TYPE = "PHP0108"
UNREACHABLE_CODE = "PHP0900"
