"""Tests for request decoding and response encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID

import pytest
from dataclasses_json import DataClassJsonMixin, LetterCase, config, dataclass_json

from forja.runtime.codec import DecodeError, decode, encode, to_wire
from forja.runtime.option import Option, option_field


class Color(Enum):
    RED = "red"


@dataclass
class Circle(DataClassJsonMixin):
    radius: float


@dataclass
class Square(DataClassJsonMixin):
    side: float


@dataclass
class Shape(DataClassJsonMixin):
    circle: Option[Circle] = option_field(of=Circle)
    square: Option[Square] = option_field(of=Square)


@dataclass
class Event(DataClassJsonMixin):
    user_id: int = field(metadata=config(field_name="userId"))
    tags: list[str] = field(default_factory=list)


@dataclass
class Plain:
    x: int
    y: int = 0


@dataclass
class Box:
    inner: Plain
    items: list[Plain] = field(default_factory=list)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class Calendar:
    starts_on: date
    ends_at: datetime | None = None
    holidays: list[date] = field(default_factory=list)


@dataclass
class Stamp:
    at: datetime
    id: UUID
    color: Color


def describe_decode():
    def decodes_dataclasses_json_types(expect):
        event = decode(b'{"userId": 7, "tags": ["a"]}', Event)

        expect(event) == Event(user_id=7, tags=["a"])

    def treats_an_empty_body_as_an_empty_object(expect):
        expect(decode(b"", Shape)) == Shape()

    def ignores_the_body_for_empty_inputs(expect):
        expect(decode(b"garbage", None)) == None

    def decodes_plain_dataclasses(expect):
        expect(decode(b'{"x": 1}', Plain)) == Plain(x=1)

    def passes_other_values_through(expect):
        expect(decode(b"[1, 2]", list[int])) == [1, 2]

    def decodes_options(expect):
        shape = decode(b'{"circle": {"radius": 2}}', Shape)

        expect(shape.circle) == Option.some(Circle(radius=2))
        expect(shape.square.valid()) == False

    def decodes_null_options_as_none(expect):
        shape = decode(b'{"circle": null}', Shape)

        expect(shape.circle) == Option.none()

    def rejects_invalid_json():
        with pytest.raises(DecodeError):
            decode(b"{nope", Event)

    def rejects_non_objects_for_structs():
        with pytest.raises(DecodeError):
            decode(b"[1]", Event)

    def rejects_missing_fields():
        with pytest.raises(DecodeError):
            decode(b"{}", Event)

    def ignores_unknown_fields(expect):
        expect(decode(b'{"x": 1, "z": 2}', Plain)) == Plain(x=1)

    def decodes_nested_plain_dataclasses(expect):
        box = decode(b'{"inner": {"x": 3}, "items": [{"x": 4, "y": 5}]}', Box)

        expect(box) == Box(inner=Plain(x=3), items=[Plain(x=4, y=5)])

    def reads_timestamps_as_iso_text(expect):
        stamp = Stamp(
            at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            id=UUID("12345678-1234-5678-1234-567812345678"),
            color=Color.RED,
        )

        expect(decode(encode(stamp), Stamp)) == stamp

    def reads_dates_behind_wire_names_and_containers(expect):
        body = b'{"startsOn": "2024-03-01", "endsAt": null, "holidays": ["2024-03-08"]}'

        calendar = decode(body, Calendar)

        expect(calendar.starts_on) == date(2024, 3, 1)
        expect(calendar.ends_at) == None
        expect(calendar.holidays) == [date(2024, 3, 8)]
        expect(decode(b'{"startsOn": "2024-03-01", "endsAt": "2024-03-31T00:00:00"}', Calendar).ends_at) == datetime(
            2024, 3, 31
        )

    def rejects_malformed_timestamps():
        with pytest.raises(DecodeError):
            decode(b'{"at": "yesterday", "id": "12345678-1234-5678-1234-567812345678", "color": "red"}', Stamp)

    def reports_the_decoder_message(expect):
        with pytest.raises(DecodeError) as e:
            decode(b"{nope", Event)

        expect(str(e.value)) == "Expecting property name enclosed in double quotes: line 1 column 2 (char 1)"


def describe_encode():
    def encodes_dataclasses_json_types_with_wire_names(expect):
        body = encode(Event(user_id=3, tags=["x"]))

        expect(json.loads(body)) == {"userId": 3, "tags": ["x"]}

    def encodes_options_as_payload_or_null(expect):
        body = encode(Shape(circle=Option.some(Circle(radius=1.5))))

        expect(json.loads(body)) == {"circle": {"radius": 1.5}, "square": None}

    def encodes_well_known_types_as_text(expect):
        at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        uid = UUID("12345678-1234-5678-1234-567812345678")

        wire = to_wire(Stamp(at=at, id=uid, color=Color.RED))

        expect(wire) == {
            "at": "2024-01-02T03:04:05+00:00",
            "id": "12345678-1234-5678-1234-567812345678",
            "color": "red",
        }

    def encodes_lists_and_none(expect):
        expect(json.loads(encode([Plain(x=1)]))) == [{"x": 1, "y": 0}]
        expect(encode(None)) == b"null"
