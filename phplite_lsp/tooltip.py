from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Optional

from phplite.semantics import bound
from phplite.semantics.symbols import (
    ErrorMethodKind,
    ErrorMethodSymbol,
    ParameterSymbol,
    RoutineSymbol,
    TypeSymbol,
    VariableKind,
)
from phplite.semantics.types import TypeContext
from phplite_lsp.resolver import SymbolStat

VARIABLE_PREFIXES = {
    VariableKind.LOCAL: "(var)",
    VariableKind.PARAMETER: "(parameter)",
    VariableKind.GLOBAL: "(global)",
    VariableKind.STATIC: "(static local)",
}

_DOC_PARAM = re.compile(r"@param\s+(?:\S+\s+)?\$(\w+)")


def format_literal(value: Any) -> Optional[str]:
    """Render a constant value the way PHP source spells it; None for values with no spelling."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, str):
        return '"' + value.replace('"', '\\"').replace("\n", "\\n") + '"'
    return None


def format_float(value: float) -> str:
    """
    Shortest round-trip digits, integral values without a fraction, and an
    exponent (`1E+20`, `1E-05`) once the magnitude is below 1e-4 or at least 1e15.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    number = Decimal(repr(value)).normalize()
    exponent = number.adjusted()
    if -5 < exponent < 15:
        return format(number, "f")
    sign, digits, _ = number.as_tuple()
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(map(str, digits[1:]))
    return f"{'-' if sign else ''}{mantissa}E{'+' if exponent >= 0 else '-'}{abs(exponent):02d}"


def format_documentation(doc: str) -> str:
    return _DOC_PARAM.sub(r"**$\1:**", doc)


def format_routine(routine: RoutineSymbol) -> str:
    parts = []
    optional = 0
    for p in routine.parameters:
        if p.is_implicit:
            continue
        opening = ""
        if p.is_optional:
            optional += 1
            opening = "["
        separator = ", " if parts else ""
        parts.append(f"{opening}{separator}${p.name}")
    return f"function {routine.routine_name}({''.join(parts)}{']' * optional})"


def format_field(field: bound.BoundFieldRef, ctx: Optional[TypeContext]) -> Optional[str]:
    if field.is_class_constant:
        head = "(const)"
    else:
        head = "static" if field.is_static_field else "var"

    owner = None
    if field.parent_type is not None and field.parent_type.is_direct:
        owner = str(field.parent_type)
    elif field.instance is not None:
        mask = field.instance.type_mask
        if mask.is_any or mask.is_void:
            return None
        owner = ctx.to_string(mask) if ctx is not None else None

    text = head + " "
    if owner is not None:
        text += owner + "::"
    if not field.is_class_constant:
        text += "$"
    return text + field.field_name


def format_type(symbol: TypeSymbol) -> str:
    if symbol.is_interface:
        kind = "interface"
    elif symbol.is_trait:
        kind = "trait"
    else:
        kind = "class"
    return f"{kind} {symbol.full_name}"


def format_tooltip(stat: Optional[SymbolStat]) -> Optional[str]:
    if stat is None or (stat.symbol is None and stat.bound_expression is None):
        return None

    ctx = stat.type_ctx
    expression = stat.bound_expression
    symbol = stat.symbol
    if isinstance(symbol, ErrorMethodSymbol):
        if symbol.error_kind is ErrorMethodKind.MISSING:
            return None
        symbol = symbol.original_symbols[-1] if symbol.original_symbols else None

    match (expression, symbol):
        case (bound.BoundVariableRef(), _):
            text = f"{VARIABLE_PREFIXES[expression.kind]} ${expression.name}"
        case (bound.BoundGlobalConst(), _):
            text = f"(const) {expression.name}"
        case (bound.BoundPseudoConst(), _):
            text = f"(magic const) __{expression.kind.upper()}__"
        case (_, ParameterSymbol()):
            text = f"(parameter) ${symbol.name}"
        case (_, RoutineSymbol()):
            text = format_routine(symbol)
        case (bound.BoundFieldRef(), _):
            text = format_field(expression, ctx)
            if text is None:
                return None
        case (_, TypeSymbol()):
            text = format_type(symbol)
        case _:
            return None

    if ctx is not None:
        mask = None
        if isinstance(expression, bound.BoundExpression):
            mask = expression.type_mask
        elif symbol is not None and hasattr(symbol, "get_result_type"):
            mask = symbol.get_result_type(ctx)
        if mask is not None:
            text += " : " + ctx.to_string(mask)

    if isinstance(expression, bound.BoundExpression) and expression.has_constant_value:
        literal = format_literal(expression.constant_value)
        if literal is not None:
            text += " = " + literal

    doc = symbol.get_documentation() if symbol is not None else None
    if doc and doc.strip():
        text += "\n\n" + format_documentation(doc)
    return text
