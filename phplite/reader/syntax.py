"""
Syntax nodes produced by the PHP-lite parser.

Every node carries the `span` of source text it was read from. Declarations
additionally carry `name_span` (the span of the declared identifier) and the
cleaned text of the doc comment that preceded them, if any.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from phplite.text import TextSpan


@dataclass
class Node:
    span: TextSpan


# --- Expressions ---


@dataclass
class Literal(Node):
    value: Any
    kind: str  # int | float | string | bool | null
    interpolated: bool = False  # double-quoted string containing `$`


@dataclass
class Variable(Node):
    name: str  # without the leading `$`


@dataclass
class NameRef(Node):
    """A class name used in `new X`, `X::...`, `extends X`, type hints."""

    name: str


@dataclass
class ConstFetch(Node):
    name: str


@dataclass
class MagicConst(Node):
    kind: str  # line | file | dir | function | class | method | trait | namespace


@dataclass
class Call(Node):
    name: str
    name_span: TextSpan
    args: list[Expr]


@dataclass
class New(Node):
    class_ref: NameRef
    args: list[Expr]


@dataclass
class PropertyFetch(Node):
    obj: Expr
    name: str
    name_span: TextSpan


@dataclass
class MethodCall(Node):
    obj: Expr
    name: str
    name_span: TextSpan
    args: list[Expr]


@dataclass
class StaticPropertyFetch(Node):
    class_ref: NameRef
    name: str
    name_span: TextSpan


@dataclass
class ClassConstFetch(Node):
    class_ref: NameRef
    name: str
    name_span: TextSpan


@dataclass
class StaticCall(Node):
    class_ref: NameRef
    name: str
    name_span: TextSpan
    args: list[Expr]


@dataclass
class Assign(Node):
    target: Expr
    op: str  # "=" or a compound operator such as ".="
    value: Expr


@dataclass
class Binary(Node):
    op: str
    left: Expr
    right: Expr


@dataclass
class Unary(Node):
    op: str
    operand: Expr
    postfix: bool = False


@dataclass
class Ternary(Node):
    cond: Expr
    then: Optional[Expr]  # None for the short `?:` form
    otherwise: Expr


@dataclass
class ArrayItem(Node):
    key: Optional[Expr]
    value: Expr


@dataclass
class ArrayLiteral(Node):
    items: list[ArrayItem]


@dataclass
class Index(Node):
    base: Expr
    index: Optional[Expr]


Expr = Union[
    Literal, Variable, ConstFetch, MagicConst, Call, New, PropertyFetch, MethodCall,
    StaticPropertyFetch, ClassConstFetch, StaticCall, Assign, Binary, Unary, Ternary,
    ArrayLiteral, Index,
]


# --- Declarations ---


@dataclass
class TypeHint(Node):
    name: str
    nullable: bool = False


@dataclass
class Param(Node):
    name: str
    name_span: TextSpan
    type_hint: Optional[TypeHint] = None
    default: Optional[Expr] = None
    by_ref: bool = False
    variadic: bool = False


@dataclass
class FunctionDecl(Node):
    name: str
    name_span: TextSpan
    params: list[Param]
    return_type: Optional[TypeHint]
    body: list[Stmt]
    doc: Optional[str] = None


@dataclass
class PropertyDecl(Node):
    name: str
    name_span: TextSpan
    default: Optional[Expr] = None
    type_hint: Optional[TypeHint] = None
    is_static: bool = False
    visibility: str = "public"
    doc: Optional[str] = None


@dataclass
class ClassConstDecl(Node):
    name: str
    name_span: TextSpan
    value: Expr
    doc: Optional[str] = None


@dataclass
class MethodDecl(Node):
    name: str
    name_span: TextSpan
    params: list[Param]
    return_type: Optional[TypeHint]
    body: Optional[list[Stmt]]  # None for abstract/interface methods
    is_static: bool = False
    is_abstract: bool = False
    visibility: str = "public"
    doc: Optional[str] = None


@dataclass
class TraitUse(Node):
    names: list[NameRef]


Member = Union[PropertyDecl, ClassConstDecl, MethodDecl, TraitUse]


@dataclass
class ClassDecl(Node):
    kind: str  # class | interface | trait
    name: str
    name_span: TextSpan
    base: Optional[NameRef] = None
    interfaces: list[NameRef] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    is_abstract: bool = False
    doc: Optional[str] = None


@dataclass
class ConstItem(Node):
    name: str
    name_span: TextSpan
    value: Expr
    doc: Optional[str] = None


# --- Statements ---


@dataclass
class ConstStmt(Node):
    items: list[ConstItem]


@dataclass
class EchoStmt(Node):
    exprs: list[Expr]


@dataclass
class ReturnStmt(Node):
    expr: Optional[Expr]


@dataclass
class ExprStmt(Node):
    expr: Expr


@dataclass
class IfStmt(Node):
    cond: Expr
    then: list[Stmt]
    elifs: list[tuple[Expr, list[Stmt]]] = field(default_factory=list)
    otherwise: Optional[list[Stmt]] = None


@dataclass
class WhileStmt(Node):
    cond: Expr
    body: list[Stmt]


@dataclass
class ForeachStmt(Node):
    subject: Expr
    key_var: Optional[Variable]
    value_var: Variable
    body: list[Stmt]


@dataclass
class GlobalStmt(Node):
    variables: list[Variable]


@dataclass
class StaticStmt(Node):
    items: list[tuple[Variable, Optional[Expr]]]


@dataclass
class BlockStmt(Node):
    body: list[Stmt]


@dataclass
class BreakStmt(Node):
    pass


@dataclass
class ContinueStmt(Node):
    pass


Stmt = Union[
    FunctionDecl, ClassDecl, ConstStmt, EchoStmt, ReturnStmt, ExprStmt, IfStmt, WhileStmt,
    ForeachStmt, GlobalStmt, StaticStmt, BlockStmt, BreakStmt, ContinueStmt,
]


@dataclass
class Script(Node):
    statements: list[Stmt]
