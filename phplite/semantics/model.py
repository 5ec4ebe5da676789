"""
SemanticModel: declarations, lookups and lazily bound routine bodies.

Symbols are declared from the library references first, then from the
user trees in compilation order. Functions are registered under their
lower-cased name in that order, so a name declared twice keeps every
candidate and calls to it become ambiguous. Types and constants keep the
first declaration; a second type declaration is reported.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional

from phplite import diagnostics
from phplite.diagnostics import Diagnostic, Severity
from phplite.reader import syntax as ast
from phplite.semantics.binder import Binder
from phplite.semantics.bound import BoundBody
from phplite.semantics.symbols import (
    NO_VALUE,
    ClassConstantSymbol,
    ConstantSymbol,
    FieldSymbol,
    GlobalConstantSymbol,
    LibraryFunctionSymbol,
    MainRoutineSymbol,
    ParameterSymbol,
    RoutineSymbol,
    SourceFunctionSymbol,
    SourceMethodSymbol,
    SourceRoutineSymbol,
    TypeKind,
    TypeSymbol,
)
from phplite.semantics.types import ANY, TypeMask, mask_from_hint
from phplite.syntax_tree import SyntaxTree

if TYPE_CHECKING:
    from phplite.compilation import Compilation

logger = logging.getLogger(__name__)

MAIN_NAME = "{main}"
IMPLICIT_PARAMETER_TYPE = "context"


def declarations(statements: list) -> Iterator[Any]:
    """Yield function, class and const statements of a script, including those nested in control flow."""
    for stmt in statements:
        match stmt:
            case ast.FunctionDecl() | ast.ClassDecl() | ast.ConstStmt():
                yield stmt
            case ast.IfStmt(then=then, elifs=elifs, otherwise=otherwise):
                yield from declarations(then)
                for _, body in elifs:
                    yield from declarations(body)
                if otherwise is not None:
                    yield from declarations(otherwise)
            case ast.WhileStmt(body=body) | ast.ForeachStmt(body=body) | ast.BlockStmt(body=body):
                yield from declarations(body)


class SemanticModel:
    def __init__(self, compilation: Compilation):
        self.compilation = compilation
        self.functions: dict[str, list[RoutineSymbol]] = {}
        self.types: dict[str, TypeSymbol] = {}
        self.constants: dict[str, ConstantSymbol] = {}
        self.mains: dict[str, MainRoutineSymbol] = {}
        self.routines: dict[str, list[SourceRoutineSymbol]] = {}

        self._by_decl: dict[int, Any] = {}
        self._declaration_diagnostics: dict[str, list[Diagnostic]] = {}
        self._bodies: dict[int, BoundBody] = {}
        self._binding: set[int] = set()
        self._evaluated: set[int] = set()

        for reference in compilation.references:
            for tree in reference.trees:
                self.declare_tree(tree, library=reference.name)
        for tree in compilation.syntax_trees:
            self.declare_tree(tree)
        for type_symbol in self.all_types():
            self.link(type_symbol)
        self.report_ambiguous_functions()

    # --- declaration ---

    def declare_tree(self, tree: SyntaxTree, library: Optional[str] = None) -> None:
        main = MainRoutineSymbol(MAIN_NAME, tree=tree, model=self, body=tree.root.statements)
        self.mains[tree.path] = main
        routines: list[SourceRoutineSymbol] = []
        for stmt in declarations(tree.root.statements):
            match stmt:
                case ast.FunctionDecl():
                    routine = self.declare_function(stmt, tree, library)
                    self.functions.setdefault(stmt.name.lower(), []).append(routine)
                    if isinstance(routine, SourceRoutineSymbol):
                        routines.append(routine)
                case ast.ClassDecl():
                    type_symbol = self.declare_type(stmt, tree, library)
                    routines.extend(type_symbol.methods.values())
                case ast.ConstStmt(items=items):
                    for item in items:
                        symbol = GlobalConstantSymbol(
                            item.name, expression=item.value, span=item.span, tree=tree, documentation=item.doc,
                        )
                        self._by_decl[id(item)] = symbol
                        self.constants.setdefault(item.name, symbol)
        if library is None:
            routines.sort(key=lambda r: r.span.start)
            self.routines[tree.path] = [main, *routines]

    def declare_parameters(self, params: list[ast.Param], self_type: Optional[str] = None) -> list[ParameterSymbol]:
        result = []
        for p in params:
            hint = p.type_hint
            mask = mask_from_hint(hint.name, hint.nullable, self_type) if hint is not None else ANY
            if hint is not None and isinstance(p.default, ast.Literal) and p.default.kind == "null":
                mask = mask.union(TypeMask.of("null"))
            result.append(ParameterSymbol(
                p.name,
                type_mask=mask,
                is_optional=p.default is not None,
                is_implicit=hint is not None and hint.name.lower() == IMPLICIT_PARAMETER_TYPE,
                by_ref=p.by_ref,
                variadic=p.variadic,
                span=p.span,
                syntax=p,
            ))
        return result

    def declare_function(self, decl: ast.FunctionDecl, tree: SyntaxTree, library: Optional[str]) -> RoutineSymbol:
        result = mask_from_hint(decl.return_type.name, decl.return_type.nullable) if decl.return_type else None
        params = self.declare_parameters(decl.params)
        routine: RoutineSymbol
        if library is not None:
            routine = LibraryFunctionSymbol(
                decl.name, params, result, decl.span, decl.name_span, documentation=decl.doc, library=library,
            )
        else:
            routine = SourceFunctionSymbol(
                decl.name, params, result, decl.span, decl.name_span, documentation=decl.doc,
                tree=tree, model=self, body=decl.body,
            )
        self._by_decl[id(decl)] = routine
        return routine

    def declare_type(self, decl: ast.ClassDecl, tree: SyntaxTree, library: Optional[str]) -> TypeSymbol:
        type_symbol = TypeSymbol(
            decl.name,
            kind=TypeKind(decl.kind),
            base_name=decl.base.name if decl.base is not None else None,
            interface_names=[n.name for n in decl.interfaces],
            is_abstract=decl.is_abstract,
            span=decl.span,
            name_span=decl.name_span,
            tree=tree,
            syntax=decl,
            documentation=decl.doc,
        )
        for member in decl.members:
            match member:
                case ast.TraitUse(names=names):
                    type_symbol.trait_names.extend(n.name for n in names)
                case ast.MethodDecl():
                    result = None
                    if member.return_type is not None:
                        result = mask_from_hint(member.return_type.name, member.return_type.nullable, decl.name)
                    method = SourceMethodSymbol(
                        member.name,
                        self.declare_parameters(member.params, decl.name),
                        result,
                        member.span,
                        member.name_span,
                        documentation=member.doc,
                        tree=tree,
                        model=self if library is None else None,
                        body=member.body,
                        is_static=member.is_static,
                        is_abstract=member.is_abstract,
                        visibility=member.visibility,
                    )
                    method.containing_type = type_symbol
                    type_symbol.methods.setdefault(member.name.lower(), method)
                case ast.PropertyDecl():
                    if member.type_hint is not None:
                        mask = mask_from_hint(member.type_hint.name, member.type_hint.nullable, decl.name)
                    elif isinstance(member.default, ast.Literal) and member.default.kind != "null":
                        mask = TypeMask.of(member.default.kind)
                    else:
                        mask = ANY
                    type_symbol.fields.setdefault(member.name, FieldSymbol(
                        member.name, containing_type=type_symbol, is_static=member.is_static,
                        type_mask=mask, span=member.span, syntax=member, documentation=member.doc,
                    ))
                case ast.ClassConstDecl():
                    type_symbol.constants.setdefault(member.name, ClassConstantSymbol(
                        member.name, expression=member.value, span=member.span, tree=tree,
                        containing_type=type_symbol, documentation=member.doc,
                    ))

        self._by_decl[id(decl)] = type_symbol
        key = decl.name.lower()
        if key in self.types:
            if library is None:
                self.report(tree, Diagnostic.at(
                    tree.text, tree.path, decl.name_span, diagnostics.DUPLICATE_TYPE,
                    f"Cannot declare {decl.kind} {decl.name}, because the name is already in use",
                ))
        else:
            self.types[key] = type_symbol
        return type_symbol

    def all_types(self) -> Iterator[TypeSymbol]:
        for symbol in self._by_decl.values():
            if isinstance(symbol, TypeSymbol):
                yield symbol

    def link(self, type_symbol: TypeSymbol) -> None:
        if type_symbol.base_name is not None:
            base = self.find_type(type_symbol.base_name)
            if base is not type_symbol:
                type_symbol.base_type = base
        type_symbol.trait_types = self.linked(type_symbol, type_symbol.trait_names)
        type_symbol.interface_types = self.linked(type_symbol, type_symbol.interface_names)

    def linked(self, type_symbol: TypeSymbol, names: list[str]) -> list[TypeSymbol]:
        return [t for t in (self.find_type(n) for n in names) if t is not None and t is not type_symbol]

    def report_ambiguous_functions(self) -> None:
        for candidates in self.functions.values():
            if len(candidates) < 2:
                continue
            for routine in candidates[1:]:
                if isinstance(routine, SourceFunctionSymbol) and routine.tree is not None:
                    tree = routine.tree
                    self.report(tree, Diagnostic.at(
                        tree.text, tree.path, routine.name_span, diagnostics.AMBIGUOUS_FUNCTION,
                        f"Function '{routine.name}' is declared more than once", Severity.WARNING,
                    ))

    def report(self, tree: SyntaxTree, diagnostic: Diagnostic) -> None:
        self._declaration_diagnostics.setdefault(tree.path, []).append(diagnostic)

    # --- lookups ---

    def find_functions(self, name: str) -> list[RoutineSymbol]:
        return self.functions.get(name.lower(), [])

    def find_type(self, name: str) -> Optional[TypeSymbol]:
        return self.types.get(name.lower())

    def find_constant(self, name: str) -> Optional[ConstantSymbol]:
        return self.constants.get(name)

    def function_for_decl(self, decl: ast.FunctionDecl) -> Optional[SourceFunctionSymbol]:
        symbol = self._by_decl.get(id(decl))
        return symbol if isinstance(symbol, SourceFunctionSymbol) else None

    def type_for_decl(self, decl: ast.ClassDecl) -> Optional[TypeSymbol]:
        return self._by_decl.get(id(decl))

    def constant_for_decl(self, decl: ast.ConstItem) -> Optional[ConstantSymbol]:
        return self._by_decl.get(id(decl))

    def routines_in_tree(self, path: str) -> list[SourceRoutineSymbol]:
        """Main routine first, then functions and methods in source order."""
        return self.routines.get(path, [])

    # --- binding ---

    def bound_body(self, routine: SourceRoutineSymbol) -> Optional[BoundBody]:
        """Bind a routine body once; None while the routine is being bound (recursion)."""
        key = id(routine)
        body = self._bodies.get(key)
        if body is not None:
            return body
        if key in self._binding:
            return None
        self._binding.add(key)
        try:
            body = Binder(self, routine).bind()
        finally:
            self._binding.discard(key)
        self._bodies[key] = body
        return body

    def inferred_result_type(self, routine: SourceRoutineSymbol) -> TypeMask:
        body = self.bound_body(routine)
        if body is None:
            return ANY
        return body.return_mask

    def constant_value(self, symbol: ConstantSymbol) -> Any:
        key = id(symbol)
        if key in self._evaluated or symbol.expression is None or symbol.tree is None:
            return symbol.value
        self._evaluated.add(key)
        main = self.mains.get(symbol.tree.path)
        if main is None:
            return NO_VALUE
        self_type = symbol.containing_type if isinstance(symbol, ClassConstantSymbol) else None
        binder = Binder(self, main, self_type=self_type, report=False)
        symbol.value = binder.bind_expression(symbol.expression).constant_value
        return symbol.value

    # --- diagnostics ---

    def get_diagnostics(self) -> list[Diagnostic]:
        result: list[Diagnostic] = []
        for tree in self.compilation.syntax_trees:
            result.extend(tree.diagnostics)
            semantic = list(self._declaration_diagnostics.get(tree.path, ()))
            for routine in self.routines_in_tree(tree.path):
                body = self.bound_body(routine)
                if body is not None:
                    semantic.extend(body.diagnostics)
            semantic.sort(key=lambda d: d.span.start)
            result.extend(semantic)
        logger.debug("analyzed %d trees, %d diagnostics", len(self.compilation.syntax_trees), len(result))
        return result
