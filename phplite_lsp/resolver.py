"""
Position to symbol resolution.

A position is resolved inside the first routine of the file that yields a
match: the main routine always qualifies, functions and methods only when
their span contains the offset. Within a routine, parameters are searched
before the body, so a parameter wins over a same-named variable in the body.
In the body the match with the smallest hit span wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from phplite.compilation import Compilation
from phplite.semantics import bound
from phplite.semantics.bound import BoundBody, BoundNode
from phplite.semantics.symbols import SourceRoutineSymbol
from phplite.semantics.types import TypeContext
from phplite.text import TextSpan
from phplite_lsp.paths import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolStat:
    """What a position resolved to: a bound expression, a symbol, or both."""

    type_ctx: Optional[TypeContext]
    bound_expression: Optional[BoundNode] = None
    symbol: Any = None


def hit(node: BoundNode) -> Optional[tuple[TextSpan, Optional[SymbolStat]]]:
    """The span a node answers for and the stat it yields; None if the node is not searchable."""
    match node:
        case bound.BoundVariableRef() | bound.BoundGlobalConst() | bound.BoundPseudoConst():
            symbol = node.symbol if isinstance(node, bound.BoundGlobalConst) else None
            return node.span, SymbolStat(None, node, symbol)
        case bound.BoundRoutineCall():
            return node.name_span, SymbolStat(None, node, node.target)
        case bound.BoundFieldRef():
            return node.name_span, SymbolStat(None, node, node.symbol)
        case bound.BoundTypeRef():
            if node.symbol is None:
                return None
            return node.span, SymbolStat(None, None, node.symbol)
        case bound.BoundFunctionDeclStatement():
            return node.routine.name_span, SymbolStat(None, None, node.routine)
        case bound.BoundTypeDeclStatement():
            return node.type_symbol.name_span, SymbolStat(None, None, node.type_symbol)
        case _:
            return None


def walk(node: BoundNode) -> Iterator[BoundNode]:
    yield node
    for child in node.children():
        yield from walk(child)


def search_parameters(routine: SourceRoutineSymbol, body: Optional[BoundBody], position: int) -> Optional[SymbolStat]:
    for p in routine.parameters:
        if p.is_implicit or p.syntax is None:
            continue
        if p.syntax.span.contains(position):
            ctx = body.type_ctx if body is not None else TypeContext(routine.name)
            return SymbolStat(ctx, None, p)
    return None


def search_cfg(body: BoundBody, position: int) -> Optional[SymbolStat]:
    best: Optional[tuple[TextSpan, SymbolStat]] = None
    for block in body.cfg.blocks:
        for root in block.nodes():
            for node in walk(root):
                found = hit(node)
                if found is None:
                    continue
                span, stat = found
                if span.contains(position) and (best is None or span.length < best[0].length):
                    best = span, stat
    if best is None:
        return None
    stat = best[1]
    return SymbolStat(body.type_ctx, stat.bound_expression, stat.symbol)


def resolve(compilation: Compilation, path: str, line: int, character: int) -> Optional[SymbolStat]:
    tree = compilation.get_tree(normalize_path(path))
    if tree is None:
        return None
    position = tree.get_position(line, character)
    if position == -1:
        return None

    for routine in compilation.get_user_declared_routines_in_file(tree):
        # the main routine has an empty span and always qualifies
        if not (routine.is_global_scope or routine.span.contains(position)):
            continue
        body = compilation.model.bound_body(routine)
        result = search_parameters(routine, body, position)
        if result is not None:
            return result
        if body is not None:
            result = search_cfg(body, position)
            if result is not None:
                logger.debug("resolved %s:%d:%d in %s", tree.path, line, character, routine.name)
                return result
    return None
