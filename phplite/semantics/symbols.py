"""Declared symbols: routines, parameters, types, members and constants.

Symbols compare by identity. Source symbols keep a reference to the
declaration they came from; library symbols are built from signatures.
Anything that needs inference (result types, constant values) is answered by
the owning SemanticModel, which source symbols point back to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from phplite.reader import syntax as ast
from phplite.semantics.types import ANY, TypeContext, TypeMask
from phplite.text import EMPTY_SPAN, TextSpan

if TYPE_CHECKING:
    from phplite.semantics.model import SemanticModel
    from phplite.syntax_tree import SyntaxTree

NO_VALUE = object()


class VariableKind(Enum):
    LOCAL = "local"
    PARAMETER = "parameter"
    GLOBAL = "global"
    STATIC = "static"


class ErrorMethodKind(Enum):
    MISSING = "missing"
    AMBIGUOUS = "ambiguous"


class TypeKind(Enum):
    CLASS = "class"
    INTERFACE = "interface"
    TRAIT = "trait"


@dataclass(eq=False)
class Symbol:
    name: str
    documentation: Optional[str] = field(default=None, kw_only=True)

    def get_documentation(self) -> Optional[str]:
        return self.documentation


@dataclass(eq=False)
class ParameterSymbol(Symbol):
    type_mask: TypeMask = ANY
    is_optional: bool = False
    is_implicit: bool = False
    by_ref: bool = False
    variadic: bool = False
    span: TextSpan = EMPTY_SPAN
    syntax: Optional[ast.Param] = None

    def get_result_type(self, ctx: TypeContext) -> TypeMask:
        return self.type_mask


@dataclass(eq=False)
class RoutineSymbol(Symbol):
    parameters: list[ParameterSymbol] = field(default_factory=list)
    declared_result: Optional[TypeMask] = None
    span: TextSpan = EMPTY_SPAN
    name_span: TextSpan = EMPTY_SPAN

    is_global_scope = False
    containing_type: Optional[TypeSymbol] = None

    @property
    def routine_name(self) -> str:
        return self.name

    @property
    def min_arguments(self) -> int:
        count = 0
        for p in self.parameters:
            if p.is_implicit:
                continue
            if p.is_optional or p.variadic:
                break
            count += 1
        return count

    def get_result_type(self, ctx: Optional[TypeContext] = None) -> TypeMask:
        return self.declared_result if self.declared_result is not None else ANY


@dataclass(eq=False)
class LibraryFunctionSymbol(RoutineSymbol):
    library: str = "core"


@dataclass(eq=False)
class SourceRoutineSymbol(RoutineSymbol):
    """A routine declared in a user file; its body is bound by the model."""

    tree: Optional[SyntaxTree] = None
    model: Optional[SemanticModel] = None
    body: Optional[list] = None  # list[ast.Stmt]

    def get_result_type(self, ctx: Optional[TypeContext] = None) -> TypeMask:
        if self.declared_result is not None:
            return self.declared_result
        if self.model is None:
            return ANY
        return self.model.inferred_result_type(self)


@dataclass(eq=False)
class SourceFunctionSymbol(SourceRoutineSymbol):
    pass


@dataclass(eq=False)
class SourceMethodSymbol(SourceRoutineSymbol):
    is_static: bool = False
    is_abstract: bool = False
    visibility: str = "public"

    @property
    def full_name(self) -> str:
        owner = self.containing_type.name if self.containing_type else "?"
        return f"{owner}::{self.name}"


@dataclass(eq=False)
class MainRoutineSymbol(SourceRoutineSymbol):
    """The implicit routine holding a file's top-level code; its span is [0, 0)."""

    is_global_scope = True


@dataclass(eq=False)
class ErrorMethodSymbol(Symbol):
    """Placeholder for a call target that did not resolve to exactly one routine."""

    error_kind: ErrorMethodKind = ErrorMethodKind.MISSING
    original_symbols: list[RoutineSymbol] = field(default_factory=list)


@dataclass(eq=False)
class FieldSymbol(Symbol):
    containing_type: Optional[TypeSymbol] = None
    is_static: bool = False
    type_mask: TypeMask = ANY
    span: TextSpan = EMPTY_SPAN
    syntax: Optional[ast.PropertyDecl] = None

    def get_result_type(self, ctx: Optional[TypeContext] = None) -> TypeMask:
        return self.type_mask


@dataclass(eq=False)
class ConstantSymbol(Symbol):
    """A global or class constant; `value` is NO_VALUE until evaluated."""

    value: Any = NO_VALUE
    expression: Optional[Any] = None  # ast.Expr for source constants
    span: TextSpan = EMPTY_SPAN
    tree: Optional[SyntaxTree] = None


@dataclass(eq=False)
class GlobalConstantSymbol(ConstantSymbol):
    pass


@dataclass(eq=False)
class ClassConstantSymbol(ConstantSymbol):
    containing_type: Optional[TypeSymbol] = None


@dataclass(eq=False)
class TypeSymbol(Symbol):
    kind: TypeKind = TypeKind.CLASS
    base_name: Optional[str] = None
    interface_names: list[str] = field(default_factory=list)
    trait_names: list[str] = field(default_factory=list)
    methods: dict[str, SourceMethodSymbol] = field(default_factory=dict)  # lower-cased name
    fields: dict[str, FieldSymbol] = field(default_factory=dict)
    constants: dict[str, ClassConstantSymbol] = field(default_factory=dict)
    is_abstract: bool = False
    span: TextSpan = EMPTY_SPAN
    name_span: TextSpan = EMPTY_SPAN
    tree: Optional[SyntaxTree] = None
    syntax: Optional[ast.ClassDecl] = None

    # linked by the model once every type is declared
    base_type: Optional[TypeSymbol] = None
    trait_types: list[TypeSymbol] = field(default_factory=list)
    interface_types: list[TypeSymbol] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return self.name

    @property
    def is_interface(self) -> bool:
        return self.kind is TypeKind.INTERFACE

    @property
    def is_trait(self) -> bool:
        return self.kind is TypeKind.TRAIT

    def _lineage(self):
        # self, its traits, then the base chain; interfaces last
        seen: set[int] = set()
        interfaces: list[TypeSymbol] = []
        current: Optional[TypeSymbol] = self
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            yield current
            for trait in current.trait_types:
                if id(trait) not in seen:
                    seen.add(id(trait))
                    yield trait
            interfaces.extend(current.interface_types)
            current = current.base_type
        while interfaces:
            interface = interfaces.pop(0)
            if id(interface) not in seen:
                seen.add(id(interface))
                yield interface
                interfaces.extend(interface.interface_types)

    def find_method(self, name: str) -> Optional[SourceMethodSymbol]:
        key = name.lower()
        for t in self._lineage():
            if key in t.methods:
                return t.methods[key]
        return None

    def find_field(self, name: str) -> Optional[FieldSymbol]:
        for t in self._lineage():
            if name in t.fields:
                return t.fields[name]
        return None

    def find_constant(self, name: str) -> Optional[ClassConstantSymbol]:
        for t in self._lineage():
            if name in t.constants:
                return t.constants[name]
        return None
