"""Optional values and sum-type emulation for handler payloads.

``Option[T]`` travels on the wire as either its payload or ``null``. A
dataclass with several ``Option`` fields models a tagged union by
convention: at most one of them is expected to be set.

Example:
    @dataclass
    class Shape(DataClassJsonMixin):
        circle: Option[Circle] = option_field(of=Circle)
        square: Option[Square] = option_field(of=Square)
"""

from __future__ import annotations

from dataclasses import field
from typing import Any, Generic, TypeVar

from dataclasses_json import DataClassJsonMixin, config

T = TypeVar("T")


class Wrapper:
    """Marker base for single-payload wrapper types.

    The type reflector unwraps any generic subclass to its type argument,
    and a field holding a wrapper is always optional in generated types.
    """

    def to_wire(self) -> Any:
        """Return the JSON-compatible wire value. Subclasses override this."""
        raise NotImplementedError("to_wire() must be implemented by wrapper types")


class Option(Wrapper, Generic[T]):
    """A value that is either set or absent."""

    def __init__(self, value: T | None = None, *, is_valid: bool | None = None) -> None:
        self.value = value
        self.is_valid = value is not None if is_valid is None else is_valid

    @classmethod
    def some(cls, value: T) -> Option[T]:
        return cls(value, is_valid=True)

    @classmethod
    def none(cls) -> Option[T]:
        return cls(None, is_valid=False)

    def valid(self) -> bool:
        return self.is_valid

    def to_wire(self) -> Any:
        if not self.is_valid:
            return None
        if isinstance(self.value, DataClassJsonMixin):
            return self.value.to_dict()
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Option):
            return NotImplemented
        return self.is_valid == other.is_valid and self.value == other.value

    def __repr__(self) -> str:
        if not self.is_valid:
            return "Option.none()"
        return f"Option.some({self.value!r})"


def _option_decoder(of: type | None):
    def decode(data: Any) -> Option[Any]:
        if isinstance(data, Option):
            return data
        if data is None:
            return Option.none()
        if of is not None and issubclass(of, DataClassJsonMixin):
            return Option.some(of.from_dict(data))
        return Option.some(data)

    return decode


def option_field(*, of: type | None = None) -> Any:
    """Define an ``Option`` dataclass field with its wire encoding attached.

    Args:
        of: The payload type, needed to decode nested dataclasses.

    Returns:
        A dataclass field defaulting to ``Option.none()``.
    """
    metadata = config(encoder=lambda option: option.to_wire(), decoder=_option_decoder(of))
    return field(default_factory=Option.none, metadata=metadata)
