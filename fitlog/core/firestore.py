"""Firestore REST value encoding.

Firestore documents travel as ``{"fields": {name: {"<type>Value": ...}}}``.
Integers are carried as decimal strings and timestamps as RFC 3339 strings
in UTC. Only the value kinds fitlog stores are supported.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class FirestoreValueError(ValueError):
    """Raised when a value cannot be encoded or decoded."""


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an RFC 3339 UTC timestamp.

    Naive datetimes are taken to be local time.
    """
    aware = value if value.tzinfo is not None else value.astimezone()
    return aware.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp (nanosecond precision allowed) to aware UTC."""
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Python parses at most microseconds.
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise FirestoreValueError(f"Invalid timestamp: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise FirestoreValueError(f"Unsupported value type: {type(value)!r}")


def decode_value(value: Dict[str, Any]) -> Any:
    if not isinstance(value, dict) or len(value) != 1:
        raise FirestoreValueError(f"Malformed Firestore value: {value!r}")

    kind, raw = next(iter(value.items()))
    if kind == "nullValue":
        return None
    if kind == "booleanValue":
        return bool(raw)
    if kind == "integerValue":
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise FirestoreValueError(f"Invalid integerValue: {raw!r}") from exc
    if kind == "doubleValue":
        return float(raw)
    if kind == "stringValue":
        return str(raw)
    if kind == "timestampValue":
        return parse_timestamp(str(raw))
    if kind == "mapValue":
        return decode_fields((raw or {}).get("fields", {}))
    if kind == "arrayValue":
        return [decode_value(item) for item in (raw or {}).get("values", [])]
    raise FirestoreValueError(f"Unsupported Firestore value kind: {kind}")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Encode a plain mapping into a Firestore ``fields`` payload."""
    return {key: encode_value(value) for key, value in data.items()}


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Decode a Firestore ``fields`` payload into a plain mapping."""
    return {key: decode_value(value) for key, value in fields.items()}


def document_id(document: Dict[str, Any]) -> str:
    """Return the trailing id segment of a document resource name."""
    name = str(document.get("name") or "")
    doc_id = name.rsplit("/", 1)[-1]
    if not doc_id:
        raise FirestoreValueError("Document has no resource name")
    return doc_id


def document_create_time(document: Dict[str, Any]) -> Optional[datetime]:
    raw = document.get("createTime")
    return parse_timestamp(str(raw)) if raw else None
