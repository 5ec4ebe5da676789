"""
  PHP-lite lexer

- Streaming: `lex` is a generator of Token tuples carrying absolute offsets
- Whitespace and ordinary comments are dropped, `/** ... */` doc comments are
  kept as "doc" tokens so the parser can attach them to declarations
- Text before the `<?php` open tag is ignored, a `?>` close tag is dropped
- Never raises: lexical problems are appended to the `errors` list as
  (code, message, start, end) tuples and lexing continues
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple, Optional

from phplite import diagnostics

OPEN_TAG = "<?php"

TOKEN_RE = re.compile(
    r"(?P<ws>\s+)"
    r"|(?P<doc>/\*\*(?!/).*?\*/)"  # doc comment
    r"|(?P<block_comment>/\*.*?\*/)"
    r"|(?P<open_comment>/\*)"  # no closing delimiter
    r"|(?P<line_comment>(?://|\#)[^\n]*)"
    r"|(?P<close_tag>\?>)"
    r"|(?P<variable>\$[A-Za-z_]\w*)"
    r"|(?P<float>(?:\d+\.\d+|\.\d+)(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+)"
    r"|(?P<int>0[xX][0-9a-fA-F]+|0[bB][01]+|\d+)"
    r"|(?P<string>'(?:\\.|[^\\'])*'|\"(?:\\.|[^\\\"])*\")"
    r"|(?P<ident>[A-Za-z_]\w*)"
    r"|(?P<op>\.\.\.|===|!==|\?\?=|&&|\|\||->|=>|::|==|!=|<>|<=|>=|\+\+|--|\.=|\+=|-=|\*=|/=|\?\?"
    r"|[-+*/%.=<>!(){}\[\],;?:&|@])",
    re.DOTALL,
)

SKIPPED = frozenset(("ws", "block_comment", "line_comment", "close_tag"))


class Token(NamedTuple):
    kind: str  # variable | int | float | string | ident | op | doc | eof
    value: str
    start: int
    end: int


def code_start(source: str) -> int:
    """Offset of the first character after the open tag (0 when there is none)."""
    idx = source.find(OPEN_TAG)
    if idx == -1:
        return 0
    return idx + len(OPEN_TAG)


def lex(source: str, errors: Optional[list] = None) -> Iterator[Token]:
    """Token generator: yields Token tuples, always ending with an "eof" token."""
    if errors is None:
        errors = []
    pos = code_start(source)
    n = len(source)

    while pos < n:
        m = TOKEN_RE.match(source, pos)
        if not m:
            ch = source[pos]
            if ch in "\"'":
                errors.append((diagnostics.UNTERMINATED_STRING, "Unterminated string literal", pos, n))
                pos = n
            else:
                errors.append((diagnostics.UNEXPECTED_CHARACTER, f"Unexpected character {ch!r}", pos, pos + 1))
                pos += 1
            continue

        kind = m.lastgroup
        if kind == "open_comment":
            errors.append((diagnostics.UNTERMINATED_COMMENT, "Unterminated comment", pos, n))
            break
        if kind not in SKIPPED:
            yield Token(kind, m.group(kind), m.start(), m.end())
        pos = m.end()

    yield Token("eof", "", n, n)
