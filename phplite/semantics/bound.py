"""Bound tree and control-flow graph.

The binder turns a routine's statements into bound nodes: syntax resolved
against declared symbols, annotated with an inferred TypeMask and, where it
can be folded, a compile-time constant value. Statements are laid out in
basic blocks linked by edges; the edges own the expressions that decide
control flow (conditions, foreach enumerees).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

from phplite.semantics.symbols import (
    NO_VALUE,
    ConstantSymbol,
    ErrorMethodSymbol,
    FieldSymbol,
    ParameterSymbol,
    RoutineSymbol,
    SourceFunctionSymbol,
    TypeSymbol,
    VariableKind,
)
from phplite.semantics.types import ANY, VOID, TypeContext, TypeMask
from phplite.text import TextSpan


@dataclass(eq=False)
class LocalVariable:
    name: str
    kind: VariableKind
    parameter: Optional[ParameterSymbol] = None
    assigned: bool = False
    initial: Optional[TypeMask] = None
    assigned_mask: TypeMask = VOID

    def assign(self, mask: TypeMask) -> None:
        self.assigned = True
        self.assigned_mask = self.assigned_mask.union(mask)

    @property
    def type_mask(self) -> TypeMask:
        mask = self.assigned_mask
        if self.parameter is not None:
            mask = mask.union(self.parameter.type_mask)
        elif self.initial is not None:
            mask = mask.union(self.initial)
        if mask.is_void:
            return ANY
        return mask


@dataclass(eq=False)
class BoundNode:
    span: TextSpan

    def children(self) -> Iterator[BoundNode]:
        return iter(())


@dataclass(eq=False)
class BoundExpression(BoundNode):
    mask: TypeMask = field(default=ANY, kw_only=True)
    constant_value: Any = field(default=NO_VALUE, kw_only=True)

    @property
    def type_mask(self) -> TypeMask:
        return self.mask

    @property
    def has_constant_value(self) -> bool:
        return self.constant_value is not NO_VALUE


@dataclass(eq=False)
class BoundLiteral(BoundExpression):
    pass


@dataclass(eq=False)
class BoundVariableRef(BoundExpression):
    name: str
    variable: LocalVariable

    @property
    def type_mask(self) -> TypeMask:
        return self.variable.type_mask

    @property
    def kind(self) -> VariableKind:
        return self.variable.kind

    @property
    def symbol(self) -> Optional[ParameterSymbol]:
        return self.variable.parameter


@dataclass(eq=False)
class BoundGlobalConst(BoundExpression):
    name: str
    symbol: Optional[ConstantSymbol] = None


@dataclass(eq=False)
class BoundPseudoConst(BoundExpression):
    kind: str  # line | file | dir | function | class | method | trait | namespace


@dataclass(eq=False)
class BoundTypeRef(BoundNode):
    name: str
    symbol: Optional[TypeSymbol] = None
    is_direct: bool = True

    def __str__(self) -> str:
        return self.symbol.full_name if self.symbol is not None else self.name


CallTarget = Union[RoutineSymbol, ErrorMethodSymbol, None]


@dataclass(eq=False)
class BoundRoutineCall(BoundExpression):
    name: str
    name_span: TextSpan
    target: CallTarget
    arguments: list[BoundExpression]

    def children(self) -> Iterator[BoundNode]:
        yield from self.arguments


@dataclass(eq=False)
class BoundFunctionCall(BoundRoutineCall):
    pass


@dataclass(eq=False)
class BoundMethodCall(BoundRoutineCall):
    instance: Optional[BoundExpression] = None

    def children(self) -> Iterator[BoundNode]:
        if self.instance is not None:
            yield self.instance
        yield from self.arguments


@dataclass(eq=False)
class BoundStaticCall(BoundRoutineCall):
    type_ref: Optional[BoundTypeRef] = None

    def children(self) -> Iterator[BoundNode]:
        if self.type_ref is not None:
            yield self.type_ref
        yield from self.arguments


@dataclass(eq=False)
class BoundNew(BoundExpression):
    type_ref: BoundTypeRef
    arguments: list[BoundExpression]
    constructor: Optional[RoutineSymbol] = None

    def children(self) -> Iterator[BoundNode]:
        yield self.type_ref
        yield from self.arguments


@dataclass(eq=False)
class BoundFieldRef(BoundExpression):
    field_name: str
    name_span: TextSpan
    instance: Optional[BoundExpression] = None
    parent_type: Optional[BoundTypeRef] = None
    is_class_constant: bool = False
    is_static_field: bool = False
    symbol: Union[FieldSymbol, ConstantSymbol, None] = None

    def children(self) -> Iterator[BoundNode]:
        if self.instance is not None:
            yield self.instance
        if self.parent_type is not None:
            yield self.parent_type


@dataclass(eq=False)
class BoundAssign(BoundExpression):
    target: BoundExpression
    value: BoundExpression
    op: str = "="

    def children(self) -> Iterator[BoundNode]:
        yield self.target
        yield self.value


@dataclass(eq=False)
class BoundBinary(BoundExpression):
    op: str
    left: BoundExpression
    right: BoundExpression

    def children(self) -> Iterator[BoundNode]:
        yield self.left
        yield self.right


@dataclass(eq=False)
class BoundUnary(BoundExpression):
    op: str
    operand: BoundExpression
    postfix: bool = False

    def children(self) -> Iterator[BoundNode]:
        yield self.operand


@dataclass(eq=False)
class BoundConditional(BoundExpression):
    condition: BoundExpression
    if_true: Optional[BoundExpression]
    if_false: BoundExpression

    def children(self) -> Iterator[BoundNode]:
        yield self.condition
        if self.if_true is not None:
            yield self.if_true
        yield self.if_false


@dataclass(eq=False)
class BoundArray(BoundExpression):
    items: list[tuple[Optional[BoundExpression], BoundExpression]]

    def children(self) -> Iterator[BoundNode]:
        for key, value in self.items:
            if key is not None:
                yield key
            yield value


@dataclass(eq=False)
class BoundArrayItem(BoundExpression):
    array: BoundExpression
    index: Optional[BoundExpression]

    def children(self) -> Iterator[BoundNode]:
        yield self.array
        if self.index is not None:
            yield self.index


# --- Statements ---


@dataclass(eq=False)
class BoundStatement(BoundNode):
    pass


@dataclass(eq=False)
class BoundExpressionStatement(BoundStatement):
    expression: BoundExpression

    def children(self) -> Iterator[BoundNode]:
        yield self.expression


@dataclass(eq=False)
class BoundReturnStatement(BoundStatement):
    returned: Optional[BoundExpression]

    def children(self) -> Iterator[BoundNode]:
        if self.returned is not None:
            yield self.returned


@dataclass(eq=False)
class BoundEchoStatement(BoundStatement):
    arguments: list[BoundExpression]

    def children(self) -> Iterator[BoundNode]:
        yield from self.arguments


@dataclass(eq=False)
class BoundGlobalVariableStatement(BoundStatement):
    variables: list[BoundVariableRef]

    def children(self) -> Iterator[BoundNode]:
        yield from self.variables


@dataclass(eq=False)
class BoundStaticVariableStatement(BoundStatement):
    items: list[tuple[BoundVariableRef, Optional[BoundExpression]]]

    def children(self) -> Iterator[BoundNode]:
        for var, initializer in self.items:
            yield var
            if initializer is not None:
                yield initializer


@dataclass(eq=False)
class BoundFunctionDeclStatement(BoundStatement):
    """A function declaration inside the script body; only its name is searchable."""

    routine: SourceFunctionSymbol


@dataclass(eq=False)
class BoundTypeDeclStatement(BoundStatement):
    type_symbol: TypeSymbol
    type_refs: list[BoundTypeRef] = field(default_factory=list)
    initializers: list[BoundExpression] = field(default_factory=list)

    def children(self) -> Iterator[BoundNode]:
        yield from self.type_refs
        yield from self.initializers


@dataclass(eq=False)
class BoundConstStatement(BoundStatement):
    symbol: ConstantSymbol
    value: BoundExpression

    def children(self) -> Iterator[BoundNode]:
        yield self.value


# --- Control flow ---


@dataclass(eq=False)
class Edge:
    def expressions(self) -> Iterator[BoundNode]:
        return iter(())

    def targets(self) -> Iterator[BasicBlock]:
        return iter(())


@dataclass(eq=False)
class SimpleEdge(Edge):
    target: BasicBlock

    def targets(self) -> Iterator[BasicBlock]:
        yield self.target


@dataclass(eq=False)
class ConditionalEdge(Edge):
    condition: BoundExpression
    true_target: BasicBlock
    false_target: BasicBlock

    def expressions(self) -> Iterator[BoundNode]:
        yield self.condition

    def targets(self) -> Iterator[BasicBlock]:
        yield self.true_target
        yield self.false_target


@dataclass(eq=False)
class ForeachEdge(Edge):
    enumeree: BoundExpression
    key_variable: Optional[BoundVariableRef]
    value_variable: BoundVariableRef
    body_target: BasicBlock
    next_target: BasicBlock

    def expressions(self) -> Iterator[BoundNode]:
        yield self.enumeree
        if self.key_variable is not None:
            yield self.key_variable
        yield self.value_variable

    def targets(self) -> Iterator[BasicBlock]:
        yield self.body_target
        yield self.next_target


@dataclass(eq=False)
class BasicBlock:
    ordinal: int
    statements: list[BoundStatement] = field(default_factory=list)
    next_edge: Optional[Edge] = None

    def nodes(self) -> Iterator[BoundNode]:
        yield from self.statements
        if self.next_edge is not None:
            yield from self.next_edge.expressions()


@dataclass(eq=False)
class ControlFlowGraph:
    start: BasicBlock
    exit: BasicBlock
    blocks: list[BasicBlock]

    def reachable(self) -> set[int]:
        seen: set[int] = set()
        stack = [self.start]
        while stack:
            block = stack.pop()
            if block.ordinal in seen:
                continue
            seen.add(block.ordinal)
            if block.next_edge is not None:
                stack.extend(block.next_edge.targets())
        return seen


@dataclass(eq=False)
class BoundBody:
    """Binding result for one routine."""

    cfg: ControlFlowGraph
    locals: dict[str, LocalVariable]
    type_ctx: TypeContext
    diagnostics: list
    return_mask: TypeMask
