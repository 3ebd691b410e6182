from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from fitlog.core.firestore import (
    FirestoreValueError,
    decode_fields,
    decode_value,
    document_id,
    encode_fields,
    encode_value,
    format_timestamp,
    parse_timestamp,
)


def test_encode_fields_uses_firestore_value_kinds() -> None:
    fields = encode_fields(
        {
            "name": "Run",
            "duration": 30,
            "done": True,
            "pace": 5.5,
            "notes": None,
            "date": datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc),
        }
    )
    assert fields == {
        "name": {"stringValue": "Run"},
        "duration": {"integerValue": "30"},
        "done": {"booleanValue": True},
        "pace": {"doubleValue": 5.5},
        "notes": {"nullValue": None},
        "date": {"timestampValue": "2024-05-01T07:00:00.000000Z"},
    }


def test_nested_values_decode() -> None:
    raw = {
        "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "2"}]}},
        "meta": {"mapValue": {"fields": {"ok": {"booleanValue": False}}}},
        "empty": {"arrayValue": {}},
    }
    assert decode_fields(raw) == {"tags": ["a", 2], "meta": {"ok": False}, "empty": []}


def test_timestamp_converts_offset_to_utc() -> None:
    local = datetime(2024, 5, 1, 9, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2024-05-01T07:00:00.000000Z"


def test_parse_timestamp_truncates_nanoseconds() -> None:
    parsed = parse_timestamp("2024-05-01T07:00:00.123456789Z")
    assert parsed == datetime(2024, 5, 1, 7, 0, 0, 123456, tzinfo=timezone.utc)


def test_parse_timestamp_with_offset_and_short_fraction() -> None:
    parsed = parse_timestamp("2024-05-01T09:00:00.5+02:00")
    assert parsed == datetime(2024, 5, 1, 7, 0, 0, 500000, tzinfo=timezone.utc)


def test_parse_timestamp_rejects_garbage() -> None:
    with pytest.raises(FirestoreValueError):
        parse_timestamp("yesterday")


@pytest.mark.parametrize("value", [{}, {"stringValue": "a", "integerValue": "1"}, {"geoPointValue": {}}, "x"])
def test_decode_value_rejects_malformed(value) -> None:
    with pytest.raises(FirestoreValueError):
        decode_value(value)


def test_encode_value_rejects_unknown_type() -> None:
    with pytest.raises(FirestoreValueError):
        encode_value(object())


def test_document_id_from_resource_name() -> None:
    assert document_id({"name": "projects/p/databases/(default)/documents/workout_logs/xyz"}) == "xyz"
    with pytest.raises(FirestoreValueError):
        document_id({})
