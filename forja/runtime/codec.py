"""JSON request decoding and response encoding for handler payloads."""

import dataclasses
import json
import types
import typing
from collections import abc
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from dataclasses_json import DataClassJsonMixin

from forja.generator.reflect import wire_name

from .option import Option, Wrapper

_SEQUENCE_ORIGINS = frozenset([list, tuple, set, frozenset, abc.Sequence, abc.Set, abc.Iterable])

# from_dict only needs a dataclass, mixin or not
_from_dict = DataClassJsonMixin.from_dict.__func__


class DecodeError(RuntimeError):
    """Raised when a request body cannot be decoded into the handler input."""


def decode(body: bytes, input_type: Any) -> Any:
    """Decode a request body into ``input_type``.

    An empty body is treated as ``{}``. Handlers that take no input
    (annotated ``None``) receive ``None`` regardless of the body. The
    error text of a ``DecodeError`` is the underlying decoder's message.
    """
    if input_type is None or input_type is type(None):
        return None

    try:
        data = json.loads(body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(str(e)) from e

    if not _is_class(input_type) or not dataclasses.is_dataclass(input_type):
        return data

    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object for {input_type.__name__}")

    try:
        data = _parse_timestamps(input_type, data)
        if issubclass(input_type, DataClassJsonMixin):
            value = input_type.from_dict(data)
        else:
            value = _from_dict(input_type, data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DecodeError(str(e)) from e
    return _restore_options(value)


def _is_class(tp: Any) -> bool:
    return typing.get_origin(tp) is None and isinstance(tp, type)


def _parse_timestamps(tp: Any, value: Any) -> Any:
    """Parse ISO-8601 text in ``value`` wherever ``tp`` expects a datetime or date.

    dataclasses-json reads datetime fields as POSIX timestamps and leaves
    date fields as text.
    """
    if value is None:
        return value

    if tp is datetime or tp is date:
        return tp.fromisoformat(value) if isinstance(value, str) else value

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in args if arg is not type(None)]
        return _parse_timestamps(members[0], value) if len(members) == 1 else value

    if origin is typing.Annotated:
        return _parse_timestamps(args[0], value)

    if isinstance(origin, type) and issubclass(origin, Wrapper):
        return _parse_timestamps(args[0], value) if args else value

    if origin in _SEQUENCE_ORIGINS:
        if not args or not isinstance(value, list):
            return value
        return [_parse_timestamps(args[0], item) for item in value]

    if _is_class(tp) and dataclasses.is_dataclass(tp) and isinstance(value, dict):
        hints = typing.get_type_hints(tp)
        parsed = dict(value)
        for f in dataclasses.fields(tp):
            key = wire_name(tp, f) or f.name
            if key in parsed:
                parsed[key] = _parse_timestamps(hints[f.name], parsed[key])
        return parsed

    return value


def _restore_options(value: Any) -> Any:
    """Replace None with Option.none() in Option fields.

    dataclasses-json passes a JSON null through as None without calling the
    field decoder.
    """
    if isinstance(value, list):
        for item in value:
            _restore_options(item)
        return value

    if not dataclasses.is_dataclass(value) or isinstance(value, type):
        return value

    hints = typing.get_type_hints(type(value))
    for f in dataclasses.fields(value):
        current = getattr(value, f.name)
        hint = hints.get(f.name)
        origin = typing.get_origin(hint) or hint
        if current is None and isinstance(origin, type) and issubclass(origin, Option):
            object.__setattr__(value, f.name, Option.none())
        else:
            _restore_options(current)
    return value


def to_wire(value: Any) -> Any:
    """Convert a handler result into JSON-compatible values."""
    if isinstance(value, DataClassJsonMixin):
        return to_wire(value.to_dict(encode_json=False))
    if isinstance(value, Wrapper):
        return to_wire(value.to_wire())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_wire(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_wire(v) for v in value]
    return value


def encode(value: Any) -> bytes:
    """Encode a handler result as a JSON response body."""
    return json.dumps(to_wire(value)).encode("utf-8")
