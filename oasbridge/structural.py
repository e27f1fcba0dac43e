"""Structural types: the host-side counterpart of contract schemas.

Named types live in the TypeRegistry; everything else refers to them
through Reference, never by holding the Record itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Primitive names
STRING = "string"
BYTES = "bytes"
INT64 = "int64"
INT32 = "int32"
DOUBLE = "double"
FLOAT = "float"
BOOL = "bool"
NIL = "nil"

SCALAR_NAMES = frozenset({STRING, BYTES, INT64, INT32, DOUBLE, FLOAT, BOOL})


@dataclass(frozen=True)
class Primitive:
    name: str
    format: str | None = None
    minimum: int | None = None
    maximum: int | None = None
    enum: tuple[Any, ...] | None = None


@dataclass(frozen=True)
class ArrayType:
    element: StructuralType


@dataclass(frozen=True)
class MapType:
    """Open mapping from string keys to ``value``."""

    value: StructuralType


@dataclass(frozen=True)
class Field:
    name: str
    type: StructuralType
    required: bool = False
    default: Any = None
    description: str = ""
    read_only: bool = False


@dataclass(frozen=True)
class Record:
    name: str | None
    fields: tuple[Field, ...] = ()
    description: str = ""

    def field_named(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class UnionType:
    members: tuple[StructuralType, ...]
    name: str | None = None


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Unknown:
    reason: str = field(default="", compare=False)


StructuralType = Union[Primitive, ArrayType, MapType, Record, UnionType, Reference, Unknown]


def primitive(name: str, fmt: str | None = None) -> Primitive:
    """Build a primitive, attaching the int32 range where it applies."""
    if name == INT32:
        return Primitive(INT32, fmt, minimum=INT32_MIN, maximum=INT32_MAX)
    return Primitive(name, fmt)


def is_nilable(type_: StructuralType) -> bool:
    if isinstance(type_, Primitive):
        return type_.name == NIL
    if isinstance(type_, UnionType):
        return any(is_nilable(m) for m in type_.members)
    return False

