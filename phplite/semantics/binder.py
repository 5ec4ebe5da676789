"""
Binder: binds one routine body into a control-flow graph of bound nodes.

Type inference is flow-insensitive: a variable's type is the union of every
value assigned to it anywhere in the routine (plus its parameter or declared
type). Constant folding covers literals, constants, magic constants, unary
minus/plus/not, arithmetic and concatenation.

The binder never raises on malformed input; unresolved names become
diagnostics and error placeholders.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING, Any, Optional

from phplite import diagnostics
from phplite.diagnostics import Diagnostic, Severity
from phplite.reader import syntax as ast
from phplite.semantics import bound
from phplite.semantics.symbols import (
    NO_VALUE,
    ErrorMethodKind,
    ErrorMethodSymbol,
    RoutineSymbol,
    SourceMethodSymbol,
    SourceRoutineSymbol,
    TypeKind,
    TypeSymbol,
    VariableKind,
)
from phplite.semantics.types import ANY, VOID, TypeContext, TypeMask, mask_of_value, union_all
from phplite.text import TextSpan

if TYPE_CHECKING:
    from phplite.semantics.model import SemanticModel

INT = TypeMask.of("int")
FLOAT = TypeMask.of("float")
NUMBER = TypeMask.of("int", "float")
STRING = TypeMask.of("string")
BOOL = TypeMask.of("bool")
ARRAY = TypeMask.of("array")
NULL = TypeMask.of("null")

COMPARISON_OPS = frozenset(("==", "!=", "===", "!==", "<", "<=", ">", ">=", "&&", "||", "xor"))
ARITHMETIC_OPS = frozenset(("+", "-", "*", "/", "%"))
CAST_MASKS = {"(int)": INT, "(float)": FLOAT, "(string)": STRING, "(bool)": BOOL, "(array)": ARRAY}
INT_LIKE = ("int", "bool", "null")


def to_php_string(value: Any) -> Optional[str]:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, (int, str)):
        return str(value)
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)
    return None


def arithmetic_mask(op: str, left: TypeMask, right: TypeMask) -> TypeMask:
    if op == "%":
        return INT
    if left.is_only(*INT_LIKE) and right.is_only(*INT_LIKE):
        return NUMBER if op == "/" else INT
    if left.is_only("int", "float", *INT_LIKE) and right.is_only("int", "float", *INT_LIKE):
        return FLOAT
    return NUMBER


def fold_arithmetic(op: str, left: Any, right: Any) -> Any:
    numeric = (int, float)
    if isinstance(left, bool) or isinstance(right, bool):
        return NO_VALUE
    if not isinstance(left, numeric) or not isinstance(right, numeric):
        return NO_VALUE
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        if right == 0:
            return NO_VALUE
        if isinstance(left, int) and isinstance(right, int) and left % right == 0:
            return left // right
        return left / right
    if op == "%":
        if not isinstance(left, int) or not isinstance(right, int) or right == 0:
            return NO_VALUE
        # PHP keeps the sign of the dividend
        result = abs(left) % abs(right)
        return -result if left < 0 else result
    return NO_VALUE


class Binder:
    def __init__(
        self,
        model: SemanticModel,
        routine: SourceRoutineSymbol,
        self_type: Optional[TypeSymbol] = None,
        report: bool = True,
    ):
        self.model = model
        self.routine = routine
        self.tree = routine.tree
        self.self_type = self_type if self_type is not None else routine.containing_type
        self.type_ctx = TypeContext(routine.name, self.self_type.name if self.self_type else None)
        self.report = report
        self.diagnostics: list[Diagnostic] = []
        self.locals: dict[str, bound.LocalVariable] = {}
        self.reads: list[bound.BoundVariableRef] = []
        self.return_masks: list[TypeMask] = []
        self.blocks: list[bound.BasicBlock] = []
        self.loops: list[tuple[bound.BasicBlock, bound.BasicBlock]] = []
        self.default_kind = VariableKind.GLOBAL if routine.is_global_scope else VariableKind.LOCAL

        for p in routine.parameters:
            if p.is_implicit:
                continue
            var = bound.LocalVariable(p.name, VariableKind.PARAMETER, parameter=p, assigned=True)
            self.locals[p.name] = var
        if isinstance(routine, SourceMethodSymbol) and not routine.is_static and self.self_type is not None:
            self.locals["this"] = bound.LocalVariable(
                "this", VariableKind.LOCAL, assigned=True, initial=TypeMask.of(self.self_type.name)
            )

    # --- helpers ---

    def diagnose(self, span: TextSpan, code: str, message: str, severity: Severity = Severity.ERROR) -> None:
        if not self.report or self.tree is None:
            return
        self.diagnostics.append(Diagnostic.at(self.tree.text, self.tree.path, span, code, message, severity))

    def new_block(self) -> bound.BasicBlock:
        block = bound.BasicBlock(len(self.blocks))
        self.blocks.append(block)
        return block

    def jump(self, target: bound.BasicBlock) -> None:
        if self.current.next_edge is None:
            self.current.next_edge = bound.SimpleEdge(target)

    def variable(self, name: str) -> bound.LocalVariable:
        var = self.locals.get(name)
        if var is None:
            var = bound.LocalVariable(name, self.default_kind)
            self.locals[name] = var
        return var

    # --- entry points ---

    def bind(self) -> bound.BoundBody:
        self.current = self.new_block()
        start = self.current
        self.exit = bound.BasicBlock(-1)
        self.bind_statements(self.routine.body or [])
        self.jump(self.exit)
        self.place(self.exit)
        cfg = bound.ControlFlowGraph(start, self.exit, self.blocks)
        self.report_unreachable(cfg)
        if not self.routine.is_global_scope:
            self.report_undefined_variables()
        return_mask = union_all(self.return_masks) if self.return_masks else VOID
        return bound.BoundBody(cfg, self.locals, self.type_ctx, self.diagnostics, return_mask)

    def report_unreachable(self, cfg: bound.ControlFlowGraph) -> None:
        reachable = cfg.reachable()
        for block in cfg.blocks:
            if block.ordinal not in reachable and block.statements:
                self.diagnose(
                    block.statements[0].span, diagnostics.UNREACHABLE_CODE,
                    "Unreachable code detected", Severity.HIDDEN,
                )

    def report_undefined_variables(self) -> None:
        reported: set[str] = set()
        for ref in self.reads:
            var = ref.variable
            if var.assigned or var.kind is not VariableKind.LOCAL or var.name in reported:
                continue
            reported.add(var.name)
            self.diagnose(ref.span, diagnostics.UNDEFINED_VARIABLE, f"Undefined variable '${var.name}'", Severity.WARNING)

    # --- statements ---

    def bind_statements(self, statements: list) -> None:
        for stmt in statements:
            self.bind_statement(stmt)

    def bind_statement(self, stmt) -> None:
        match stmt:
            case ast.ExprStmt(expr=expr):
                self.current.statements.append(bound.BoundExpressionStatement(stmt.span, self.bind_expression(expr)))
            case ast.EchoStmt(exprs=exprs):
                args = [self.bind_expression(e) for e in exprs]
                self.current.statements.append(bound.BoundEchoStatement(stmt.span, args))
            case ast.ReturnStmt(expr=expr):
                returned = self.bind_expression(expr) if expr is not None else None
                self.return_masks.append(returned.type_mask if returned is not None else NULL)
                self.current.statements.append(bound.BoundReturnStatement(stmt.span, returned))
                self.jump(self.exit)
                self.current = self.new_block()
            case ast.IfStmt():
                self.bind_if(stmt)
            case ast.WhileStmt():
                self.bind_while(stmt)
            case ast.ForeachStmt():
                self.bind_foreach(stmt)
            case ast.BlockStmt(body=body):
                self.bind_statements(body)
            case ast.GlobalStmt(variables=variables):
                refs = []
                for v in variables:
                    var = bound.LocalVariable(v.name, VariableKind.GLOBAL, assigned=True)
                    self.locals[v.name] = var
                    refs.append(bound.BoundVariableRef(v.span, v.name, var))
                self.current.statements.append(bound.BoundGlobalVariableStatement(stmt.span, refs))
            case ast.StaticStmt(items=items):
                bound_items = []
                for v, default in items:
                    var = bound.LocalVariable(v.name, VariableKind.STATIC)
                    self.locals[v.name] = var
                    initializer = self.bind_expression(default) if default is not None else None
                    var.assign(initializer.type_mask if initializer is not None else NULL)
                    bound_items.append((bound.BoundVariableRef(v.span, v.name, var), initializer))
                self.current.statements.append(bound.BoundStaticVariableStatement(stmt.span, bound_items))
            case ast.BreakStmt() | ast.ContinueStmt():
                if self.loops:
                    continue_target, break_target = self.loops[-1]
                    self.jump(break_target if isinstance(stmt, ast.BreakStmt) else continue_target)
                    self.current = self.new_block()
            case ast.FunctionDecl():
                routine = self.model.function_for_decl(stmt)
                if routine is not None:
                    self.current.statements.append(bound.BoundFunctionDeclStatement(stmt.span, routine))
            case ast.ClassDecl():
                self.bind_type_decl(stmt)
            case ast.ConstStmt(items=items):
                for item in items:
                    symbol = self.model.constant_for_decl(item)
                    value = self.bind_expression(item.value)
                    if symbol is not None:
                        self.current.statements.append(bound.BoundConstStatement(item.span, symbol, value))
            case _:
                pass

    def bind_if(self, stmt: ast.IfStmt) -> None:
        join = bound.BasicBlock(-1)
        arms = [(stmt.cond, stmt.then), *stmt.elifs]
        for cond, body in arms:
            condition = self.bind_expression(cond)
            then_block = self.new_block()
            else_block = self.new_block()
            self.current.next_edge = bound.ConditionalEdge(condition, then_block, else_block)
            self.current = then_block
            self.bind_statements(body)
            self.jump(join)
            self.current = else_block
        if stmt.otherwise is not None:
            self.bind_statements(stmt.otherwise)
        self.jump(join)
        self.place(join)

    def place(self, block: bound.BasicBlock) -> None:
        block.ordinal = len(self.blocks)
        self.blocks.append(block)
        self.current = block

    def bind_while(self, stmt: ast.WhileStmt) -> None:
        cond_block = self.new_block()
        self.jump(cond_block)
        self.current = cond_block
        condition = self.bind_expression(stmt.cond)
        body_block = self.new_block()
        after = bound.BasicBlock(-1)
        cond_block.next_edge = bound.ConditionalEdge(condition, body_block, after)
        self.loops.append((cond_block, after))
        self.current = body_block
        self.bind_statements(stmt.body)
        self.jump(cond_block)
        self.loops.pop()
        self.place(after)

    def bind_foreach(self, stmt: ast.ForeachStmt) -> None:
        enumeree = self.bind_expression(stmt.subject)
        move_block = self.new_block()
        self.jump(move_block)
        key_ref = None
        if stmt.key_var is not None:
            key_ref = self.bind_write(stmt.key_var, TypeMask.of("int", "string"))
        value_ref = self.bind_write(stmt.value_var, ANY)
        body_block = self.new_block()
        after = bound.BasicBlock(-1)
        move_block.next_edge = bound.ForeachEdge(enumeree, key_ref, value_ref, body_block, after)
        self.loops.append((move_block, after))
        self.current = body_block
        self.bind_statements(stmt.body)
        self.jump(move_block)
        self.loops.pop()
        self.place(after)

    def bind_type_decl(self, stmt: ast.ClassDecl) -> None:
        type_symbol = self.model.type_for_decl(stmt)
        if type_symbol is None:
            return
        refs: list[bound.BoundTypeRef] = []
        if stmt.base is not None:
            refs.append(self.bind_type_ref(stmt.base, expect=TypeKind.CLASS))
        for name in stmt.interfaces:
            refs.append(self.bind_type_ref(name, expect=TypeKind.INTERFACE))
        for member in stmt.members:
            if isinstance(member, ast.TraitUse):
                refs.extend(self.bind_type_ref(name, expect=TypeKind.TRAIT) for name in member.names)

        outer_self, outer_ctx = self.self_type, self.type_ctx
        self.self_type = type_symbol
        self.type_ctx = TypeContext(outer_ctx.routine_name, type_symbol.name)
        initializers = []
        for member in stmt.members:
            if isinstance(member, ast.ClassConstDecl):
                initializers.append(self.bind_expression(member.value))
            elif isinstance(member, ast.PropertyDecl) and member.default is not None:
                initializers.append(self.bind_expression(member.default))
        self.self_type, self.type_ctx = outer_self, outer_ctx
        self.current.statements.append(bound.BoundTypeDeclStatement(stmt.span, type_symbol, refs, initializers))

    # --- expressions ---

    def bind_write(self, node: ast.Variable, mask: TypeMask) -> bound.BoundVariableRef:
        var = self.variable(node.name)
        var.assign(mask)
        return bound.BoundVariableRef(node.span, node.name, var)

    def bind_type_ref(self, ref: ast.NameRef, expect: Optional[TypeKind] = None) -> bound.BoundTypeRef:
        lowered = ref.name.lower()
        symbol: Optional[TypeSymbol]
        if lowered in ("self", "static"):
            symbol = self.self_type
        elif lowered == "parent":
            symbol = self.self_type.base_type if self.self_type is not None else None
        else:
            symbol = self.model.find_type(ref.name)
            if symbol is None:
                noun = expect.value.capitalize() if expect is not None else "Class"
                self.diagnose(ref.span, diagnostics.UNDEFINED_CLASS, f"{noun} '{ref.name}' not found")
        return bound.BoundTypeRef(ref.span, ref.name, symbol)

    def bind_arguments(self, args: list, target: Optional[RoutineSymbol]) -> list[bound.BoundExpression]:
        params = [p for p in target.parameters if not p.is_implicit] if target is not None else []
        result = []
        for i, arg in enumerate(args):
            by_ref = i < len(params) and params[i].by_ref
            if by_ref and isinstance(arg, ast.Variable):
                result.append(self.bind_write(arg, ANY))
            else:
                result.append(self.bind_expression(arg))
        return result

    def check_argument_count(self, span: TextSpan, routine: RoutineSymbol, count: int, display: str) -> None:
        expected = routine.min_arguments
        if count < expected:
            self.diagnose(
                span, diagnostics.TOO_FEW_ARGUMENTS,
                f"Too few arguments to function {display}(), {count} passed and at least {expected} expected",
            )

    def bind_expression(self, expr) -> bound.BoundExpression:
        span = expr.span
        match expr:
            case ast.Literal(value=value, kind=kind, interpolated=interpolated):
                constant = NO_VALUE if interpolated else value
                return bound.BoundLiteral(span, mask=TypeMask.of(kind), constant_value=constant)

            case ast.Variable(name=name):
                var = self.variable(name)
                ref = bound.BoundVariableRef(span, name, var)
                self.reads.append(ref)
                return ref

            case ast.ConstFetch(name=name):
                symbol = self.model.find_constant(name)
                if symbol is None:
                    self.diagnose(span, diagnostics.UNDEFINED_CONSTANT, f"Use of undefined constant {name}", Severity.WARNING)
                    return bound.BoundGlobalConst(span, name, None, mask=ANY)
                value = self.model.constant_value(symbol)
                mask = mask_of_value(value) if value is not NO_VALUE else ANY
                return bound.BoundGlobalConst(span, name, symbol, mask=mask, constant_value=value)

            case ast.MagicConst(kind=kind):
                value = self.magic_value(kind, span)
                return bound.BoundPseudoConst(span, kind, mask=mask_of_value(value), constant_value=value)

            case ast.Call():
                return self.bind_function_call(expr)

            case ast.New(class_ref=class_ref, args=args):
                type_ref = self.bind_type_ref(class_ref)
                constructor = type_ref.symbol.find_method("__construct") if type_ref.symbol is not None else None
                arguments = self.bind_arguments(args, constructor)
                if constructor is not None:
                    self.check_argument_count(span, constructor, len(args), f"{type_ref}::__construct")
                mask = TypeMask.of(type_ref.symbol.name if type_ref.symbol is not None else class_ref.name)
                return bound.BoundNew(span, type_ref, arguments, constructor, mask=mask)

            case ast.PropertyFetch(obj=obj, name=name, name_span=name_span):
                instance = self.bind_expression(obj)
                symbol = None
                for type_symbol in self.types_of(instance.type_mask):
                    symbol = type_symbol.find_field(name)
                    if symbol is not None:
                        break
                mask = symbol.type_mask if symbol is not None else ANY
                return bound.BoundFieldRef(span, name, name_span, instance=instance, symbol=symbol, mask=mask)

            case ast.MethodCall(obj=obj, name=name, name_span=name_span, args=args):
                instance = self.bind_expression(obj)
                target = None
                types = self.types_of(instance.type_mask)
                for type_symbol in types:
                    target = type_symbol.find_method(name)
                    if target is not None:
                        break
                if target is None and types and not instance.type_mask.is_any:
                    owner = types[0].name
                    self.diagnose(name_span, diagnostics.UNDEFINED_METHOD, f"Call to undefined method {owner}::{name}()")
                    target = ErrorMethodSymbol(name, error_kind=ErrorMethodKind.MISSING)
                routine = target if isinstance(target, RoutineSymbol) else None
                arguments = self.bind_arguments(args, routine)
                if routine is not None:
                    self.check_argument_count(span, routine, len(args), routine.name)
                mask = routine.get_result_type(self.type_ctx) if routine is not None else ANY
                return bound.BoundMethodCall(span, name, name_span, target, arguments, instance=instance, mask=mask)

            case ast.StaticCall(class_ref=class_ref, name=name, name_span=name_span, args=args):
                type_ref = self.bind_type_ref(class_ref)
                target = None
                if type_ref.symbol is not None:
                    target = type_ref.symbol.find_method(name)
                    if target is None:
                        self.diagnose(name_span, diagnostics.UNDEFINED_METHOD, f"Call to undefined method {type_ref}::{name}()")
                        target = ErrorMethodSymbol(name, error_kind=ErrorMethodKind.MISSING)
                routine = target if isinstance(target, RoutineSymbol) else None
                arguments = self.bind_arguments(args, routine)
                if routine is not None:
                    self.check_argument_count(span, routine, len(args), routine.name)
                mask = routine.get_result_type(self.type_ctx) if routine is not None else ANY
                return bound.BoundStaticCall(span, name, name_span, target, arguments, type_ref=type_ref, mask=mask)

            case ast.StaticPropertyFetch(class_ref=class_ref, name=name, name_span=name_span):
                type_ref = self.bind_type_ref(class_ref)
                symbol = type_ref.symbol.find_field(name) if type_ref.symbol is not None else None
                mask = symbol.type_mask if symbol is not None else ANY
                return bound.BoundFieldRef(
                    span, name, name_span, parent_type=type_ref, is_static_field=True, symbol=symbol, mask=mask,
                )

            case ast.ClassConstFetch():
                return self.bind_class_constant(expr)

            case ast.Assign():
                return self.bind_assign(expr)

            case ast.Binary():
                return self.bind_binary(expr)

            case ast.Unary():
                return self.bind_unary(expr)

            case ast.Ternary(cond=cond, then=then, otherwise=otherwise):
                condition = self.bind_expression(cond)
                if_true = self.bind_expression(then) if then is not None else None
                if_false = self.bind_expression(otherwise)
                first = if_true.type_mask if if_true is not None else condition.type_mask
                mask = first.union(if_false.type_mask)
                return bound.BoundConditional(span, condition, if_true, if_false, mask=mask)

            case ast.ArrayLiteral(items=items):
                bound_items = []
                for item in items:
                    key = self.bind_expression(item.key) if item.key is not None else None
                    bound_items.append((key, self.bind_expression(item.value)))
                return bound.BoundArray(span, bound_items, mask=ARRAY)

            case ast.Index(base=base, index=index):
                array = self.bind_expression(base)
                idx = self.bind_expression(index) if index is not None else None
                mask = STRING if array.type_mask.is_only("string") else ANY
                return bound.BoundArrayItem(span, array, idx, mask=mask)

            case _:
                return bound.BoundLiteral(span, mask=ANY)

    def types_of(self, mask: TypeMask) -> list[TypeSymbol]:
        result = []
        for name in mask.class_names():
            symbol = self.model.find_type(name)
            if symbol is not None:
                result.append(symbol)
        return result

    def magic_value(self, kind: str, span: TextSpan) -> Any:
        routine = self.routine
        in_routine = not routine.is_global_scope
        owner = self.self_type
        if kind == "line":
            return self.tree.text.line_column(span.start)[0] + 1 if self.tree is not None else 0
        if kind == "file":
            return self.tree.path if self.tree is not None else ""
        if kind == "dir":
            return posixpath.dirname(self.tree.path) if self.tree is not None else ""
        if kind == "function":
            return routine.name if in_routine else ""
        if kind == "class":
            return owner.name if owner is not None and not owner.is_trait else ""
        if kind == "trait":
            return owner.name if owner is not None and owner.is_trait else ""
        if kind == "method":
            if not in_routine:
                return ""
            return f"{owner.name}::{routine.name}" if owner is not None else routine.name
        return ""

    def bind_function_call(self, expr: ast.Call) -> bound.BoundFunctionCall:
        candidates = self.model.find_functions(expr.name)
        target: Any
        if not candidates:
            self.diagnose(expr.name_span, diagnostics.UNDEFINED_FUNCTION, f"Call to undefined function {expr.name}()")
            target = ErrorMethodSymbol(expr.name, error_kind=ErrorMethodKind.MISSING)
            mask = ANY
        elif len(candidates) > 1:
            target = ErrorMethodSymbol(expr.name, error_kind=ErrorMethodKind.AMBIGUOUS, original_symbols=list(candidates))
            mask = union_all(c.get_result_type(self.type_ctx) for c in candidates)
        else:
            target = candidates[0]
            mask = target.get_result_type(self.type_ctx)
        routine = target if isinstance(target, RoutineSymbol) else None
        arguments = self.bind_arguments(expr.args, routine)
        if routine is not None:
            self.check_argument_count(expr.span, routine, len(expr.args), routine.name)
        return bound.BoundFunctionCall(expr.span, expr.name, expr.name_span, target, arguments, mask=mask)

    def bind_class_constant(self, expr: ast.ClassConstFetch) -> bound.BoundFieldRef:
        type_ref = self.bind_type_ref(expr.class_ref)
        if expr.name.lower() == "class":
            value = str(type_ref)
            return bound.BoundFieldRef(
                expr.span, expr.name, expr.name_span, parent_type=type_ref, is_class_constant=True,
                mask=STRING, constant_value=value,
            )
        symbol = None
        value: Any = NO_VALUE
        if type_ref.symbol is not None:
            symbol = type_ref.symbol.find_constant(expr.name)
            if symbol is None:
                self.diagnose(
                    expr.name_span, diagnostics.UNDEFINED_CLASS_CONSTANT,
                    f"Undefined class constant {type_ref}::{expr.name}", Severity.WARNING,
                )
            else:
                value = self.model.constant_value(symbol)
        mask = mask_of_value(value) if value is not NO_VALUE else ANY
        return bound.BoundFieldRef(
            expr.span, expr.name, expr.name_span, parent_type=type_ref, is_class_constant=True,
            symbol=symbol, mask=mask, constant_value=value,
        )

    def bind_assign(self, expr: ast.Assign) -> bound.BoundAssign:
        value = self.bind_expression(expr.value)
        target_node = expr.target
        if isinstance(target_node, ast.Variable):
            var = self.variable(target_node.name)
            if expr.op == "=":
                result = value.type_mask
            elif expr.op == ".=":
                result = STRING
            elif expr.op == "??=":
                result = var.type_mask.union(value.type_mask)
            else:
                result = arithmetic_mask(expr.op[0], var.type_mask, value.type_mask)
            target = bound.BoundVariableRef(target_node.span, target_node.name, var)
            if expr.op != "=" and not var.assigned:
                self.reads.append(target)
            var.assign(result)
        elif isinstance(target_node, ast.Index) and isinstance(target_node.base, ast.Variable):
            base_var = self.variable(target_node.base.name)
            base_var.assign(ARRAY)
            base_ref = bound.BoundVariableRef(target_node.base.span, target_node.base.name, base_var)
            index = self.bind_expression(target_node.index) if target_node.index is not None else None
            target = bound.BoundArrayItem(target_node.span, base_ref, index, mask=ANY)
            result = value.type_mask
        else:
            target = self.bind_expression(target_node)
            result = value.type_mask
        return bound.BoundAssign(expr.span, target, value, expr.op, mask=result)

    def bind_binary(self, expr: ast.Binary) -> bound.BoundBinary:
        left = self.bind_expression(expr.left)
        right = self.bind_expression(expr.right)
        op = expr.op
        constant: Any = NO_VALUE
        if op in COMPARISON_OPS:
            mask = BOOL
        elif op == ".":
            mask = STRING
            if left.has_constant_value and right.has_constant_value:
                lhs, rhs = to_php_string(left.constant_value), to_php_string(right.constant_value)
                if lhs is not None and rhs is not None:
                    constant = lhs + rhs
        elif op == "??":
            mask = left.type_mask.without("null").union(right.type_mask)
        elif op in ARITHMETIC_OPS:
            mask = arithmetic_mask(op, left.type_mask, right.type_mask)
            if left.has_constant_value and right.has_constant_value:
                constant = fold_arithmetic(op, left.constant_value, right.constant_value)
                if constant is not NO_VALUE:
                    mask = mask_of_value(constant)
        else:
            mask = ANY
        return bound.BoundBinary(expr.span, op, left, right, mask=mask, constant_value=constant)

    def bind_unary(self, expr: ast.Unary) -> bound.BoundUnary:
        op = expr.op
        if op in ("++", "--") and isinstance(expr.operand, ast.Variable):
            var = self.variable(expr.operand.name)
            operand = bound.BoundVariableRef(expr.operand.span, expr.operand.name, var)
            self.reads.append(operand)
            mask = arithmetic_mask("+", var.type_mask, INT)
            var.assign(mask)
            return bound.BoundUnary(expr.span, op, operand, expr.postfix, mask=mask)

        operand = self.bind_expression(expr.operand)
        constant: Any = NO_VALUE
        value = operand.constant_value
        if op == "!":
            mask = BOOL
            if isinstance(value, (bool, int, float, str)) or value is None:
                constant = not value
        elif op in ("-", "+"):
            mask = operand.type_mask if operand.type_mask.is_only("int", "float") else NUMBER
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                constant = -value if op == "-" else value
        elif op in CAST_MASKS:
            mask = CAST_MASKS[op]
        else:
            mask = operand.type_mask
        return bound.BoundUnary(expr.span, op, operand, expr.postfix, mask=mask, constant_value=constant)
