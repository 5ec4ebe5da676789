"""Inferred types.

A TypeMask is the set of types an expression may evaluate to. The empty mask
is `void` (no value), the `any` flag means nothing is known (`mixed`).
Class types are stored by their declared name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

PRIMITIVES = ("null", "bool", "int", "float", "string", "array", "callable", "object", "iterable")

HINT_ALIASES = {
    "integer": "int",
    "double": "float",
    "boolean": "bool",
    "void": "",
    "mixed": "*",
}


@dataclass(frozen=True)
class TypeMask:
    types: frozenset = frozenset()
    is_any: bool = False

    @classmethod
    def of(cls, *names: str) -> TypeMask:
        return cls(frozenset(names))

    @property
    def is_void(self) -> bool:
        return not self.is_any and not self.types

    def union(self, other: TypeMask) -> TypeMask:
        if self.is_any or other.is_any:
            return ANY
        return TypeMask(self.types | other.types)

    def without(self, name: str) -> TypeMask:
        if self.is_any:
            return self
        return TypeMask(self.types - {name})

    def class_names(self) -> list[str]:
        return sorted(t for t in self.types if t not in PRIMITIVES)

    def is_only(self, *names: str) -> bool:
        return not self.is_any and bool(self.types) and self.types <= set(names)


ANY = TypeMask(frozenset(), True)
VOID = TypeMask(frozenset())


def union_all(masks: Iterable[TypeMask]) -> TypeMask:
    result = VOID
    for mask in masks:
        result = result.union(mask)
    return result


def mask_from_hint(name: str, nullable: bool = False, self_type: Optional[str] = None) -> TypeMask:
    lowered = name.lower()
    lowered = HINT_ALIASES.get(lowered, lowered)
    if lowered == "*":
        return ANY
    if lowered == "":
        return VOID
    if lowered in ("self", "static") and self_type:
        mask = TypeMask.of(self_type)
    elif lowered in PRIMITIVES:
        mask = TypeMask.of(lowered)
    else:
        mask = TypeMask.of(name)
    if nullable:
        mask = mask.union(TypeMask.of("null"))
    return mask


def mask_of_value(value) -> TypeMask:
    if value is None:
        return TypeMask.of("null")
    if isinstance(value, bool):
        return TypeMask.of("bool")
    if isinstance(value, int):
        return TypeMask.of("int")
    if isinstance(value, float):
        return TypeMask.of("float")
    if isinstance(value, str):
        return TypeMask.of("string")
    return ANY


class TypeContext:
    """Renders masks for one routine (`self` is shown as the containing class)."""

    __slots__ = ("routine_name", "self_type")

    def __init__(self, routine_name: str, self_type: Optional[str] = None):
        self.routine_name = routine_name
        self.self_type = self_type

    def to_string(self, mask: TypeMask) -> str:
        if mask.is_any:
            return "mixed"
        if mask.is_void:
            return "void"
        ordered = [t for t in PRIMITIVES if t in mask.types]
        ordered.extend(mask.class_names())
        return "|".join(ordered)

    def __repr__(self) -> str:
        return f"TypeContext({self.routine_name!r})"
