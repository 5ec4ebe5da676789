from __future__ import annotations

# Public surface for the reader package
from .lexer import Token, lex
from .parser import Parser, parse

__all__ = [
    "Token",
    "lex",
    "Parser",
    "parse",
]
