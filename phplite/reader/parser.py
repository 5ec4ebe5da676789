"""
  PHP-lite recursive-descent parser

- Reads the Token stream produced by `lexer.lex` into `syntax` nodes
- Error tolerant: a statement that cannot be read raises PhpLiteSyntaxError
  internally, the error is recorded and parsing resumes after the next `;`
  or at the next `}`, so later declarations still make it into the tree
- Doc comments are attached to the declaration that immediately follows them

Operator precedence, lowest first:

    and / or / xor   (keywords)
    = += -= *= /= .= ??=   (right associative)
    ?:
    ??               (right associative)
    ||  &&
    == != === !== <>
    < <= > >=
    .
    + -
    * / %
    ! - + ++ -- @ (cast)
    -> :: [] () ++ --   (postfix)
"""

from __future__ import annotations

import re
from typing import Optional

from phplite import diagnostics
from phplite.errors import PhpLiteSyntaxError
from phplite.reader import syntax as ast
from phplite.reader.lexer import Token, lex
from phplite.text import TextSpan

BINARY_LEVELS: list[tuple[str, ...]] = [
    ("||",),
    ("&&",),
    ("==", "!=", "===", "!==", "<>"),
    ("<", "<=", ">", ">="),
    (".",),
    ("+", "-"),
    ("*", "/", "%"),
]

ASSIGN_OPS = frozenset(("=", "+=", "-=", "*=", "/=", ".=", "??="))
LOGICAL_KEYWORDS = {"and": "&&", "or": "||", "xor": "xor"}
CASTS = {
    "int": "int", "integer": "int", "float": "float", "double": "float",
    "string": "string", "bool": "bool", "boolean": "bool", "array": "array",
}
MAGIC_CONSTANTS = {
    "__line__": "line", "__file__": "file", "__dir__": "dir", "__function__": "function",
    "__class__": "class", "__method__": "method", "__trait__": "trait",
    "__namespace__": "namespace",
}
MODIFIERS = frozenset(("public", "protected", "private", "static", "abstract", "final", "var", "readonly"))

DQ_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "v": "\v", "e": "\x1b", "f": "\f",
              "\\": "\\", "$": "$", '"': '"', "0": "\0"}
_DQ_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_INTERPOLATION_RE = re.compile(r"(?<!\\)\$[A-Za-z_{]")


def clean_doc_comment(raw: str) -> str:
    body = raw[3:-2]
    lines = []
    for line in body.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    return "\n".join(lines).strip()


def decode_string(token: str) -> tuple[str, bool]:
    """Return (value, interpolated) for a quoted string token."""
    quote, body = token[0], token[1:-1]
    if quote == "'":
        return body.replace("\\\\", "\x00").replace("\\'", "'").replace("\x00", "\\"), False
    interpolated = bool(_INTERPOLATION_RE.search(body))
    value = _DQ_ESCAPE_RE.sub(lambda m: DQ_ESCAPES.get(m.group(1), m.group(0)), body)
    return value, interpolated


def decode_int(token: str) -> int:
    lowered = token.lower()
    if lowered.startswith("0x"):
        return int(lowered[2:], 16)
    if lowered.startswith("0b"):
        return int(lowered[2:], 2)
    return int(token)


def describe(tok: Token) -> str:
    if tok.kind == "eof":
        return "end of file"
    if tok.kind == "variable":
        return f"variable '{tok.value}'"
    if tok.kind in ("int", "float"):
        return f"number '{tok.value}'"
    if tok.kind == "string":
        return "string literal"
    return f"'{tok.value}'"


class Parser:
    def __init__(self, source: str):
        self.source = source
        self.errors: list[PhpLiteSyntaxError] = []
        lex_errors: list = []
        self.tokens: list[Token] = []
        # token index -> cleaned doc comment preceding that token
        self.docs: dict[int, str] = {}
        pending_doc: Optional[str] = None
        for tok in lex(source, lex_errors):
            if tok.kind == "doc":
                pending_doc = clean_doc_comment(tok.value)
                continue
            if pending_doc is not None:
                self.docs[len(self.tokens)] = pending_doc
                pending_doc = None
            self.tokens.append(tok)
        for code, message, start, end in lex_errors:
            self.errors.append(PhpLiteSyntaxError(message, start, end, code))
        self.pos = 0
        self.last_end = self.tokens[0].start

    # --- token helpers ---

    @property
    def tok(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, k: int = 1) -> Token:
        idx = min(self.pos + k, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != "eof":
            self.pos += 1
            self.last_end = tok.end
        return tok

    def at_op(self, *values: str) -> bool:
        return self.tok.kind == "op" and self.tok.value in values

    def at_keyword(self, *words: str) -> bool:
        return self.tok.kind == "ident" and self.tok.value.lower() in words

    def at_eof(self) -> bool:
        return self.tok.kind == "eof"

    def span_from(self, start: int) -> TextSpan:
        return TextSpan(start, max(start, self.last_end))

    def error(self, expecting: Optional[str] = None) -> PhpLiteSyntaxError:
        tok = self.tok
        message = f"syntax error, unexpected {describe(tok)}"
        if expecting:
            message += f", expecting {expecting}"
        end = tok.end if tok.end > tok.start else tok.start
        return PhpLiteSyntaxError(message, tok.start, end, diagnostics.SYNTAX_ERROR)

    def expect_op(self, value: str) -> Token:
        if not self.at_op(value):
            raise self.error(f"'{value}'")
        return self.advance()

    def expect_ident(self) -> Token:
        if self.tok.kind != "ident":
            raise self.error("identifier")
        return self.advance()

    def expect_variable(self) -> Token:
        if self.tok.kind != "variable":
            raise self.error("variable")
        return self.advance()

    def doc_at(self, index: int) -> Optional[str]:
        return self.docs.get(index)

    # --- statements ---

    def parse_script(self) -> ast.Script:
        statements = self.parse_statements(in_block=False)
        return ast.Script(TextSpan(0, len(self.source)), statements)

    def parse_statements(self, in_block: bool) -> list[ast.Stmt]:
        statements: list[ast.Stmt] = []
        while not self.at_eof() and not (in_block and self.at_op("}")):
            start = self.pos
            try:
                stmt = self.parse_statement()
            except PhpLiteSyntaxError as err:
                self.errors.append(err)
                self.synchronize(start, in_block)
                continue
            if stmt is not None:
                statements.append(stmt)
        return statements

    def synchronize(self, start: int, in_block: bool) -> None:
        while not self.at_eof():
            if self.at_op(";"):
                self.advance()
                return
            if self.at_op("}"):
                if not in_block or self.pos == start:
                    self.advance()
                return
            self.advance()

    def parse_block(self) -> list[ast.Stmt]:
        self.expect_op("{")
        body = self.parse_statements(in_block=True)
        self.expect_op("}")
        return body

    def parse_body(self) -> list[ast.Stmt]:
        """A braced block or a single statement (as after `if (...)`)."""
        if self.at_op("{"):
            return self.parse_block()
        stmt = self.parse_statement()
        return [stmt] if stmt is not None else []

    def end_statement(self) -> None:
        if self.at_eof():
            return
        self.expect_op(";")

    def parse_statement(self) -> Optional[ast.Stmt]:
        tok = self.tok
        start = tok.start

        if self.at_op(";"):
            self.advance()
            return None
        if self.at_op("{"):
            body = self.parse_block()
            return ast.BlockStmt(self.span_from(start), body)

        if tok.kind == "ident":
            word = tok.value.lower()
            if word == "function" and (self.peek().kind == "ident" or self.peek().value == "&"):
                return self.parse_function_decl()
            if word in ("class", "interface", "trait", "abstract", "final"):
                return self.parse_class_decl()
            if word == "const":
                return self.parse_const_stmt()
            if word in ("echo", "print"):
                self.advance()
                exprs = [self.parse_expression()]
                while self.at_op(","):
                    self.advance()
                    exprs.append(self.parse_expression())
                self.end_statement()
                return ast.EchoStmt(self.span_from(start), exprs)
            if word == "return":
                self.advance()
                expr = None
                if not self.at_op(";") and not self.at_eof():
                    expr = self.parse_expression()
                self.end_statement()
                return ast.ReturnStmt(self.span_from(start), expr)
            if word == "if":
                return self.parse_if()
            if word == "while":
                self.advance()
                self.expect_op("(")
                cond = self.parse_expression()
                self.expect_op(")")
                body = self.parse_body()
                return ast.WhileStmt(self.span_from(start), cond, body)
            if word == "foreach":
                return self.parse_foreach()
            if word == "global":
                self.advance()
                variables = [self.parse_variable()]
                while self.at_op(","):
                    self.advance()
                    variables.append(self.parse_variable())
                self.end_statement()
                return ast.GlobalStmt(self.span_from(start), variables)
            if word == "static" and self.peek().kind == "variable":
                self.advance()
                items = []
                while True:
                    var = self.parse_variable()
                    default = None
                    if self.at_op("="):
                        self.advance()
                        default = self.parse_expression()
                    items.append((var, default))
                    if not self.at_op(","):
                        break
                    self.advance()
                self.end_statement()
                return ast.StaticStmt(self.span_from(start), items)
            if word in ("break", "continue"):
                self.advance()
                if self.tok.kind == "int":
                    self.advance()
                self.end_statement()
                node = ast.BreakStmt if word == "break" else ast.ContinueStmt
                return node(self.span_from(start))

        expr = self.parse_expression()
        self.end_statement()
        return ast.ExprStmt(self.span_from(start), expr)

    def parse_variable(self) -> ast.Variable:
        tok = self.expect_variable()
        return ast.Variable(TextSpan(tok.start, tok.end), tok.value[1:])

    def parse_if(self) -> ast.IfStmt:
        start = self.advance().start
        self.expect_op("(")
        cond = self.parse_expression()
        self.expect_op(")")
        then = self.parse_body()
        elifs: list[tuple[ast.Expr, list[ast.Stmt]]] = []
        otherwise = None
        while True:
            if self.at_keyword("elseif"):
                self.advance()
            elif self.at_keyword("else") and self.peek().kind == "ident" and self.peek().value.lower() == "if":
                self.advance()
                self.advance()
            else:
                break
            self.expect_op("(")
            elif_cond = self.parse_expression()
            self.expect_op(")")
            elifs.append((elif_cond, self.parse_body()))
        if self.at_keyword("else"):
            self.advance()
            otherwise = self.parse_body()
        return ast.IfStmt(self.span_from(start), cond, then, elifs, otherwise)

    def parse_foreach(self) -> ast.ForeachStmt:
        start = self.advance().start
        self.expect_op("(")
        subject = self.parse_expression()
        if not self.at_keyword("as"):
            raise self.error("'as'")
        self.advance()
        key_var = None
        if self.at_op("&"):
            self.advance()
        value_var = self.parse_variable()
        if self.at_op("=>"):
            self.advance()
            if self.at_op("&"):
                self.advance()
            key_var, value_var = value_var, self.parse_variable()
        self.expect_op(")")
        body = self.parse_body()
        return ast.ForeachStmt(self.span_from(start), subject, key_var, value_var, body)

    def parse_const_stmt(self) -> ast.ConstStmt:
        start_index = self.pos
        start = self.advance().start
        items = []
        doc = self.doc_at(start_index)
        while True:
            item_start = self.tok.start
            name = self.expect_ident()
            self.expect_op("=")
            value = self.parse_expression()
            items.append(ast.ConstItem(self.span_from(item_start), name.value, TextSpan(name.start, name.end), value, doc))
            doc = None
            if not self.at_op(","):
                break
            self.advance()
        self.end_statement()
        return ast.ConstStmt(self.span_from(start), items)

    # --- declarations ---

    def parse_type_hint(self) -> Optional[ast.TypeHint]:
        start = self.tok.start
        nullable = False
        if self.at_op("?"):
            self.advance()
            nullable = True
        if self.tok.kind != "ident":
            if nullable:
                raise self.error("type name")
            return None
        name = self.advance().value
        return ast.TypeHint(self.span_from(start), name, nullable)

    def parse_params(self) -> list[ast.Param]:
        self.expect_op("(")
        params: list[ast.Param] = []
        while not self.at_op(")"):
            start = self.tok.start
            type_hint = None
            if self.tok.kind == "ident" or self.at_op("?"):
                type_hint = self.parse_type_hint()
            by_ref = variadic = False
            if self.at_op("&"):
                self.advance()
                by_ref = True
            if self.at_op("..."):
                self.advance()
                variadic = True
            var = self.expect_variable()
            default = None
            if self.at_op("="):
                self.advance()
                default = self.parse_expression()
            params.append(ast.Param(
                self.span_from(start), var.value[1:], TextSpan(var.start, var.end),
                type_hint, default, by_ref, variadic,
            ))
            if not self.at_op(","):
                break
            self.advance()
        self.expect_op(")")
        return params

    def parse_return_type(self) -> Optional[ast.TypeHint]:
        if self.at_op(":"):
            self.advance()
            hint = self.parse_type_hint()
            if hint is None:
                raise self.error("type name")
            return hint
        return None

    def parse_function_decl(self) -> ast.FunctionDecl:
        doc = self.doc_at(self.pos)
        start = self.advance().start
        if self.at_op("&"):
            self.advance()
        name = self.expect_ident()
        params = self.parse_params()
        return_type = self.parse_return_type()
        body = self.parse_block()
        return ast.FunctionDecl(
            self.span_from(start), name.value, TextSpan(name.start, name.end),
            params, return_type, body, doc,
        )

    def parse_class_decl(self) -> ast.ClassDecl:
        doc = self.doc_at(self.pos)
        start = self.tok.start
        is_abstract = False
        while self.at_keyword("abstract", "final"):
            is_abstract = is_abstract or self.tok.value.lower() == "abstract"
            self.advance()
        if not self.at_keyword("class", "interface", "trait"):
            raise self.error("'class'")
        kind = self.advance().value.lower()
        name = self.expect_ident()
        base = None
        interfaces: list[ast.NameRef] = []
        if self.at_keyword("extends"):
            self.advance()
            if kind == "interface":
                interfaces = self.parse_name_list()
            else:
                base = self.parse_name_ref()
        if self.at_keyword("implements"):
            self.advance()
            interfaces.extend(self.parse_name_list())
        self.expect_op("{")
        members: list[ast.Member] = []
        while not self.at_op("}") and not self.at_eof():
            member_start = self.pos
            try:
                members.extend(self.parse_member())
            except PhpLiteSyntaxError as err:
                self.errors.append(err)
                self.synchronize(member_start, in_block=True)
        self.expect_op("}")
        return ast.ClassDecl(
            self.span_from(start), kind, name.value, TextSpan(name.start, name.end),
            base, interfaces, members, is_abstract, doc,
        )

    def parse_name_ref(self) -> ast.NameRef:
        tok = self.expect_ident()
        return ast.NameRef(TextSpan(tok.start, tok.end), tok.value)

    def parse_name_list(self) -> list[ast.NameRef]:
        names = [self.parse_name_ref()]
        while self.at_op(","):
            self.advance()
            names.append(self.parse_name_ref())
        return names

    def parse_member(self) -> list[ast.Member]:
        doc = self.doc_at(self.pos)
        start = self.tok.start
        if self.at_keyword("use"):
            self.advance()
            names = self.parse_name_list()
            self.end_statement()
            return [ast.TraitUse(self.span_from(start), names)]

        visibility = "public"
        is_static = is_abstract = False
        while self.at_keyword(*MODIFIERS):
            word = self.advance().value.lower()
            if word in ("public", "protected", "private"):
                visibility = word
            elif word == "static":
                is_static = True
            elif word == "abstract":
                is_abstract = True

        if self.at_keyword("const"):
            self.advance()
            consts = []
            while True:
                item_start = self.tok.start
                name = self.expect_ident()
                self.expect_op("=")
                value = self.parse_expression()
                consts.append(ast.ClassConstDecl(self.span_from(item_start), name.value, TextSpan(name.start, name.end), value, doc))
                if not self.at_op(","):
                    break
                self.advance()
            self.end_statement()
            return consts

        if self.at_keyword("function"):
            self.advance()
            if self.at_op("&"):
                self.advance()
            name = self.expect_ident()
            params = self.parse_params()
            return_type = self.parse_return_type()
            body = None
            if self.at_op("{"):
                body = self.parse_block()
            else:
                self.end_statement()
                is_abstract = True
            return [ast.MethodDecl(
                self.span_from(start), name.value, TextSpan(name.start, name.end), params,
                return_type, body, is_static, is_abstract, visibility, doc,
            )]

        type_hint = None
        if self.tok.kind == "ident" or self.at_op("?"):
            type_hint = self.parse_type_hint()
        props = []
        while True:
            prop_start = self.tok.start
            var = self.expect_variable()
            default = None
            if self.at_op("="):
                self.advance()
                default = self.parse_expression()
            props.append(ast.PropertyDecl(
                self.span_from(prop_start), var.value[1:], TextSpan(var.start, var.end),
                default, type_hint, is_static, visibility, doc,
            ))
            if not self.at_op(","):
                break
            self.advance()
        self.end_statement()
        return props

    # --- expressions ---

    def parse_expression(self) -> ast.Expr:
        start = self.tok.start
        left = self.parse_assignment()
        while self.tok.kind == "ident" and self.tok.value.lower() in LOGICAL_KEYWORDS:
            op = LOGICAL_KEYWORDS[self.advance().value.lower()]
            right = self.parse_assignment()
            left = ast.Binary(self.span_from(start), op, left, right)
        return left

    def parse_assignment(self) -> ast.Expr:
        start = self.tok.start
        left = self.parse_ternary()
        if self.tok.kind == "op" and self.tok.value in ASSIGN_OPS:
            if not isinstance(left, (ast.Variable, ast.PropertyFetch, ast.StaticPropertyFetch, ast.Index)):
                raise self.error()
            op = self.advance().value
            if op == "=" and self.at_op("&"):
                self.advance()
            value = self.parse_assignment()
            return ast.Assign(self.span_from(start), left, op, value)
        return left

    def parse_ternary(self) -> ast.Expr:
        start = self.tok.start
        cond = self.parse_coalesce()
        if not self.at_op("?"):
            return cond
        self.advance()
        then = None
        if self.at_op(":"):
            self.advance()
        else:
            then = self.parse_assignment()
            self.expect_op(":")
        otherwise = self.parse_assignment()
        return ast.Ternary(self.span_from(start), cond, then, otherwise)

    def parse_coalesce(self) -> ast.Expr:
        start = self.tok.start
        left = self.parse_binary(0)
        if self.at_op("??"):
            self.advance()
            right = self.parse_coalesce()
            return ast.Binary(self.span_from(start), "??", left, right)
        return left

    def parse_binary(self, level: int) -> ast.Expr:
        if level >= len(BINARY_LEVELS):
            return self.parse_unary()
        start = self.tok.start
        ops = BINARY_LEVELS[level]
        left = self.parse_binary(level + 1)
        while self.tok.kind == "op" and self.tok.value in ops:
            op = self.advance().value
            right = self.parse_binary(level + 1)
            left = ast.Binary(self.span_from(start), "!=" if op == "<>" else op, left, right)
        return left

    def parse_unary(self) -> ast.Expr:
        start = self.tok.start
        if self.at_op("!", "-", "+"):
            op = self.advance().value
            operand = self.parse_unary()
            return ast.Unary(self.span_from(start), op, operand)
        if self.at_op("@"):
            self.advance()
            return self.parse_unary()
        if self.at_op("++", "--"):
            op = self.advance().value
            operand = self.parse_unary()
            return ast.Unary(self.span_from(start), op, operand)
        if (
            self.at_op("(")
            and self.peek().kind == "ident"
            and self.peek().value.lower() in CASTS
            and self.peek(2).value == ")"
        ):
            self.advance()
            cast = CASTS[self.advance().value.lower()]
            self.advance()
            operand = self.parse_unary()
            return ast.Unary(self.span_from(start), f"({cast})", operand)
        return self.parse_postfix()

    def parse_args(self) -> list[ast.Expr]:
        self.expect_op("(")
        args: list[ast.Expr] = []
        while not self.at_op(")"):
            if self.at_op("..."):
                self.advance()
            args.append(self.parse_expression())
            if not self.at_op(","):
                break
            self.advance()
        self.expect_op(")")
        return args

    def parse_postfix(self) -> ast.Expr:
        start = self.tok.start
        expr = self.parse_primary()
        while True:
            if self.at_op("->"):
                self.advance()
                name = self.expect_ident()
                name_span = TextSpan(name.start, name.end)
                if self.at_op("("):
                    args = self.parse_args()
                    expr = ast.MethodCall(self.span_from(start), expr, name.value, name_span, args)
                else:
                    expr = ast.PropertyFetch(self.span_from(start), expr, name.value, name_span)
            elif self.at_op("["):
                self.advance()
                index = None
                if not self.at_op("]"):
                    index = self.parse_expression()
                self.expect_op("]")
                expr = ast.Index(self.span_from(start), expr, index)
            elif self.at_op("++", "--"):
                op = self.advance().value
                expr = ast.Unary(self.span_from(start), op, expr, postfix=True)
            else:
                return expr

    def parse_array_items(self, closing: str) -> list[ast.ArrayItem]:
        items: list[ast.ArrayItem] = []
        while not self.at_op(closing):
            start = self.tok.start
            value = self.parse_expression()
            key = None
            if self.at_op("=>"):
                self.advance()
                key, value = value, self.parse_expression()
            items.append(ast.ArrayItem(self.span_from(start), key, value))
            if not self.at_op(","):
                break
            self.advance()
        self.expect_op(closing)
        return items

    def parse_class_member_access(self, class_ref: ast.NameRef) -> ast.Expr:
        start = class_ref.span.start
        self.expect_op("::")
        if self.tok.kind == "variable":
            var = self.advance()
            return ast.StaticPropertyFetch(self.span_from(start), class_ref, var.value[1:], TextSpan(var.start, var.end))
        name = self.expect_ident()
        name_span = TextSpan(name.start, name.end)
        if self.at_op("("):
            args = self.parse_args()
            return ast.StaticCall(self.span_from(start), class_ref, name.value, name_span, args)
        return ast.ClassConstFetch(self.span_from(start), class_ref, name.value, name_span)

    def parse_primary(self) -> ast.Expr:
        tok = self.tok
        span = TextSpan(tok.start, tok.end)

        if tok.kind == "variable":
            self.advance()
            return ast.Variable(span, tok.value[1:])
        if tok.kind == "int":
            self.advance()
            return ast.Literal(span, decode_int(tok.value), "int")
        if tok.kind == "float":
            self.advance()
            return ast.Literal(span, float(tok.value), "float")
        if tok.kind == "string":
            self.advance()
            value, interpolated = decode_string(tok.value)
            return ast.Literal(span, value, "string", interpolated)
        if self.at_op("("):
            self.advance()
            expr = self.parse_expression()
            self.expect_op(")")
            return expr
        if self.at_op("["):
            self.advance()
            items = self.parse_array_items("]")
            return ast.ArrayLiteral(self.span_from(tok.start), items)

        if tok.kind == "ident":
            word = tok.value.lower()
            if word in ("true", "false"):
                self.advance()
                return ast.Literal(span, word == "true", "bool")
            if word == "null":
                self.advance()
                return ast.Literal(span, None, "null")
            if word in MAGIC_CONSTANTS:
                self.advance()
                return ast.MagicConst(span, MAGIC_CONSTANTS[word])
            if word == "array" and self.peek().value == "(":
                self.advance()
                self.advance()
                items = self.parse_array_items(")")
                return ast.ArrayLiteral(self.span_from(tok.start), items)
            if word == "new":
                self.advance()
                class_ref = self.parse_name_ref()
                args = self.parse_args() if self.at_op("(") else []
                return ast.New(self.span_from(tok.start), class_ref, args)
            self.advance()
            if self.at_op("("):
                args = self.parse_args()
                return ast.Call(self.span_from(tok.start), tok.value, span, args)
            if self.at_op("::"):
                return self.parse_class_member_access(ast.NameRef(span, tok.value))
            return ast.ConstFetch(span, tok.value)

        raise self.error()


def parse(source: str) -> tuple[ast.Script, list[PhpLiteSyntaxError]]:
    """Parse a whole file; never raises."""
    parser = Parser(source)
    script = parser.parse_script()
    errors = sorted(parser.errors, key=lambda err: err.start)
    return script, errors
