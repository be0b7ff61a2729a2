"""Type descriptors consumed by the TypeScript type compiler.

A descriptor graph mirrors the shape of a request or response payload.
Descriptors are plain values: a self-referential type is expressed by a
``Named`` node whose fields eventually point back at a ``Named`` node with
the same qualified name, and the compiler is responsible for terminating
the cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import Union


class PrimitiveKind(StrEnum):
    """Scalar kinds. Every integer and float width collapses to ``number``."""

    STRING = auto()
    NUMBER = auto()
    BOOLEAN = auto()


class WireKind(StrEnum):
    """Library types with a fixed textual wire representation."""

    TIMESTAMP = auto()
    UUID = auto()


@dataclass(frozen=True, slots=True)
class Primitive:
    kind: PrimitiveKind


@dataclass(frozen=True, slots=True)
class Field:
    """A member of a composite type.

    ``alias`` is the serialization name when one was declared; otherwise the
    field's own identifier is used on the wire.
    """

    name: str
    type: TypeDescriptor
    required: bool = True
    alias: str | None = None

    @property
    def wire_name(self) -> str:
        return self.name if self.alias is None else self.alias


@dataclass(frozen=True, slots=True)
class Named:
    """A composite type with a stable qualified name (``module.Name``).

    Fields are compared by identity only through the qualified name, so
    ``fields`` is excluded from equality and hashing; this keeps cyclic
    graphs hashable.
    """

    qualified_name: str
    fields: tuple[Field, ...] = field(default=(), compare=False)


@dataclass(frozen=True, slots=True)
class Anonymous:
    """A composite type without a name. Always rendered inline."""

    fields: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class Sequence:
    """A list whose wire value may also be ``null``."""

    element: TypeDescriptor


@dataclass(frozen=True, slots=True)
class Optional:
    """A value that may be absent; makes the enclosing field optional."""

    inner: TypeDescriptor


@dataclass(frozen=True, slots=True)
class Wrapped:
    """A single-payload wrapper type (see ``forja.runtime.option.Option``).

    Compiles to its payload's type. A field holding a wrapper is always
    optional.
    """

    qualified_name: str
    payload: TypeDescriptor


@dataclass(frozen=True, slots=True)
class SpecialWire:
    kind: WireKind


@dataclass(frozen=True, slots=True)
class Unknown:
    pass


TypeDescriptor = Union[Primitive, Named, Anonymous, Sequence, Optional, Wrapped, SpecialWire, Unknown]

STRING = Primitive(PrimitiveKind.STRING)
NUMBER = Primitive(PrimitiveKind.NUMBER)
BOOLEAN = Primitive(PrimitiveKind.BOOLEAN)
UNKNOWN = Unknown()


def is_composite(t: TypeDescriptor) -> bool:
    """Check if a descriptor is a named or anonymous composite."""
    return isinstance(t, (Named, Anonymous))


def is_empty_composite(t: TypeDescriptor) -> bool:
    """Check if a descriptor is a composite with zero fields."""
    return is_composite(t) and len(t.fields) == 0


DESCRIPTOR_TYPES = (Primitive, Named, Anonymous, Sequence, Optional, Wrapped, SpecialWire, Unknown)


def is_descriptor(value: object) -> bool:
    """Check if a value is already a type descriptor rather than a Python type."""
    return isinstance(value, DESCRIPTOR_TYPES)
