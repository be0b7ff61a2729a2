"""Derive type descriptors from Python type annotations."""

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from collections import abc
from datetime import date, datetime
from typing import Any
from uuid import UUID

from forja.runtime.option import Wrapper

from . import types as td
from .typegen import GenerationError

# Well-known library types, matched by identity rather than by shape
SPECIAL_WIRE_TYPES: dict[type, td.WireKind] = {
    datetime: td.WireKind.TIMESTAMP,
    date: td.WireKind.TIMESTAMP,
    UUID: td.WireKind.UUID,
}

_SEQUENCE_ORIGINS = frozenset([list, tuple, set, frozenset, abc.Sequence, abc.Set, abc.Iterable])


def qualified_name(cls: type) -> str:
    """Return ``<last module segment>.<qualname>`` for a class."""
    module = cls.__module__.rsplit(".", 1)[-1]
    qualname = cls.__qualname__.replace("<locals>.", "")
    return f"{module}.{qualname}"


def wire_name(cls: type, f: dataclasses.Field) -> str | None:
    """Return the dataclasses-json serialization name for a field, if declared."""
    letter_case = f.metadata.get("dataclasses_json", {}).get("letter_case")
    if letter_case is None:
        letter_case = getattr(cls, "dataclass_json_config", None) or {}
        letter_case = letter_case.get("letter_case")
    if letter_case is None:
        return None
    if isinstance(letter_case, enum.Enum):
        letter_case = letter_case.value
    return letter_case(f.name)


class Reflector:
    """Build descriptors for Python types, reusing one node per dataclass."""

    def __init__(self) -> None:
        self._named: dict[type, td.Named] = {}
        self._expanding: set[type] = set()
        self._owners: dict[str, type] = {}

    def describe(self, tp: Any) -> td.TypeDescriptor:
        if tp is None or tp is type(None):
            return td.Anonymous()

        if tp is typing.Any or tp is object:
            return td.UNKNOWN

        origin = typing.get_origin(tp)
        if origin is not None:
            return self._describe_generic(origin, typing.get_args(tp))

        if not isinstance(tp, type):
            return td.UNKNOWN

        if tp in SPECIAL_WIRE_TYPES:
            return td.SpecialWire(SPECIAL_WIRE_TYPES[tp])

        # bool before int: bool is a subclass of int
        if tp is bool:
            return td.BOOLEAN
        if tp is str:
            return td.STRING
        if tp in (int, float):
            return td.NUMBER

        if issubclass(tp, Wrapper):
            return td.Wrapped(qualified_name(tp), td.UNKNOWN)

        if tp in _SEQUENCE_ORIGINS:
            return td.Sequence(td.UNKNOWN)

        if issubclass(tp, enum.Enum):
            return self._describe_enum(tp)

        if dataclasses.is_dataclass(tp):
            return self._describe_dataclass(tp)

        return td.UNKNOWN

    def _describe_generic(self, origin: Any, args: tuple[Any, ...]) -> td.TypeDescriptor:
        if origin is typing.Union or origin is types.UnionType:
            members = [a for a in args if a is not type(None)]
            if len(members) == 1 and len(members) < len(args):
                return td.Optional(self.describe(members[0]))
            return td.UNKNOWN

        if origin is typing.Annotated:
            return self.describe(args[0])

        if isinstance(origin, type) and issubclass(origin, Wrapper):
            return td.Wrapped(qualified_name(origin), self.describe(args[0]) if args else td.UNKNOWN)

        if origin in _SEQUENCE_ORIGINS:
            return td.Sequence(self.describe(args[0]) if args else td.UNKNOWN)

        return td.UNKNOWN

    def _describe_enum(self, tp: type[enum.Enum]) -> td.TypeDescriptor:
        values = [member.value for member in tp]
        if values and all(isinstance(v, str) for v in values):
            return td.STRING
        if values and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            return td.NUMBER
        return td.UNKNOWN

    def _describe_dataclass(self, tp: type) -> td.Named:
        if tp in self._named:
            return self._named[tp]

        name = qualified_name(tp)
        owner = self._owners.setdefault(name, tp)
        if owner is not tp:
            raise GenerationError(f"{owner!r} and {tp!r} share the qualified name {name}")

        if tp in self._expanding:
            # Back-reference inside a recursive type; the compiler resolves it by name
            return td.Named(name)

        self._expanding.add(tp)
        try:
            hints = typing.get_type_hints(tp)
            fields = tuple(
                td.Field(
                    name=f.name,
                    type=self.describe(hints.get(f.name, Any)),
                    alias=wire_name(tp, f),
                )
                for f in dataclasses.fields(tp)
            )
        finally:
            self._expanding.discard(tp)

        named = td.Named(name, fields)
        self._named[tp] = named
        return named


def describe(tp: Any) -> td.TypeDescriptor:
    """Describe a single Python type."""
    return Reflector().describe(tp)
