"""Compile type descriptors into TypeScript type expressions."""

import re

from .types import (
    Anonymous,
    Field,
    Named,
    Optional,
    Primitive,
    PrimitiveKind,
    Sequence,
    SpecialWire,
    TypeDescriptor,
    Unknown,
    Wrapped,
)

# Map primitive kinds to TypeScript types
PRIMITIVE_TYPE_MAP = {
    PrimitiveKind.STRING: "string",
    PrimitiveKind.NUMBER: "number",
    PrimitiveKind.BOOLEAN: "boolean",
}

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")


class GenerationError(RuntimeError):
    """Raised when a type graph cannot be compiled."""


def escape_field_name(name: str) -> str:
    """Quote a property name that is not a valid bare identifier."""
    if _IDENTIFIER.fullmatch(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def type_name(qualified_name: str) -> str:
    """Return the TypeScript name for a qualified type name."""
    if not qualified_name:
        raise GenerationError("Named type has an empty qualified name")
    name = qualified_name.replace(".", "_")
    if not _IDENTIFIER.fullmatch(name):
        raise GenerationError(f"Cannot derive a type name from {qualified_name!r}")
    return name


def is_optional_field(field: Field) -> bool:
    """A field is optional if declared so, or if it holds an Optional or a wrapper."""
    return not field.required or isinstance(field.type, (Optional, Wrapped))


class TypeCompiler:
    """Compile descriptors into TypeScript, collecting named definitions.

    One compiler is used per generation run. Named definitions are kept in
    first-completion order, which is the order they are emitted in.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, str] = {}
        self._processing: set[str] = set()
        self._owners: dict[str, str] = {}

    @property
    def definitions(self) -> list[str]:
        """Rendered named definitions in insertion order."""
        return list(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def compile(self, t: TypeDescriptor) -> str:
        """Return a type token for a descriptor.

        Named composites are registered as definitions and referenced by
        name; everything else is rendered inline.
        """
        if isinstance(t, Primitive):
            return PRIMITIVE_TYPE_MAP[t.kind]

        if isinstance(t, SpecialWire):
            return "string"

        if isinstance(t, Sequence):
            return f"({self.compile(t.element)}[] | null)"

        if isinstance(t, Optional):
            return self.compile(t.inner)

        if isinstance(t, Wrapped):
            return self.compile(t.payload)

        if isinstance(t, Named):
            return self._compile_named(t)

        if isinstance(t, Anonymous):
            return self._render_object(t.fields)

        if isinstance(t, Unknown):
            return "any"

        raise GenerationError(f"Unsupported type descriptor: {t!r}")

    def definition(self, t: TypeDescriptor) -> str:
        """Compile a descriptor and return its named definition text."""
        if not isinstance(t, Named):
            raise GenerationError(f"Anonymous type not supported here: {t!r}")

        self.compile(t)
        return self._definitions[t.qualified_name]

    def _compile_named(self, t: Named) -> str:
        name = type_name(t.qualified_name)
        owner = self._owners.setdefault(name, t.qualified_name)
        if owner != t.qualified_name:
            raise GenerationError(f"{owner} and {t.qualified_name} both compile to the type name {name}")

        # Already being expanded further up the stack: reference it by name
        if t.qualified_name in self._processing:
            return name

        if t.qualified_name in self._definitions:
            return name

        self._processing.add(t.qualified_name)
        try:
            body = self._render_object(t.fields)
        finally:
            self._processing.discard(t.qualified_name)

        self._definitions.setdefault(t.qualified_name, f"type {name} = {body}")
        return name

    def _render_object(self, fields: tuple[Field, ...]) -> str:
        if not fields:
            return "{}"

        lines = []
        for field in fields:
            optional = "?" if is_optional_field(field) else ""
            lines.append(f"  {escape_field_name(field.wire_name)}{optional}: {self.compile(field.type)}")
        return "{\n" + "\n".join(lines) + "\n}"
