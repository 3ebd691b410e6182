"""Typed records exchanged between the store, the index and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from fitlog.core.firestore import (
    FirestoreValueError,
    decode_fields,
    document_create_time,
    document_id,
)

# Fields a caller may change on an existing log. ``date`` is fixed at creation.
EDITABLE_FIELDS = ("name", "duration", "calories", "notes")


class LogMappingError(ValueError):
    """Raised when a stored document does not map onto a WorkoutLog."""


def day_key(value: datetime) -> date:
    """Truncate a timestamp to its calendar day."""
    return value.date()


def _local(value: datetime) -> datetime:
    # Naive timestamps are wall-clock local time.
    return value if value.tzinfo is not None else value.astimezone()


def _require(data: Dict[str, Any], key: str, kind: type, doc_id: str) -> Any:
    if key not in data:
        raise LogMappingError(f"Log {doc_id} is missing field '{key}'")
    value = data[key]
    if kind is int and isinstance(value, bool):
        raise LogMappingError(f"Log {doc_id} field '{key}' must be {kind.__name__}")
    if not isinstance(value, kind):
        raise LogMappingError(f"Log {doc_id} field '{key}' must be {kind.__name__}")
    return value


@dataclass(frozen=True)
class LogDraft:
    """A workout log that has not been stored yet."""

    name: str
    date: datetime
    duration: int
    calories: int
    notes: str = ""

    @property
    def day(self) -> date:
        return day_key(self.date)

    def to_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "date": self.date,
            "duration": self.duration,
            "calories": self.calories,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class WorkoutLog:
    """One stored exercise session."""

    id: str
    name: str
    date: datetime
    duration: int
    calories: int
    notes: str = ""
    created_at: Optional[datetime] = None

    @property
    def day(self) -> date:
        return day_key(self.date)

    def same_entry(self, draft: LogDraft) -> bool:
        """True when this log records exactly what ``draft`` describes."""
        return (
            self.name == draft.name
            and _local(self.date) == _local(draft.date)
            and self.duration == draft.duration
            and self.calories == draft.calories
            and self.notes == draft.notes
        )

    @classmethod
    def from_draft(cls, log_id: str, draft: LogDraft, created_at: Optional[datetime] = None) -> "WorkoutLog":
        return cls(
            id=log_id,
            name=draft.name,
            date=draft.date,
            duration=draft.duration,
            calories=draft.calories,
            notes=draft.notes,
            created_at=created_at,
        )

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "WorkoutLog":
        """Map a Firestore document strictly; missing or mistyped fields raise."""
        try:
            doc_id = document_id(document)
            data = decode_fields(document.get("fields") or {})
            created_at = document_create_time(document)
        except FirestoreValueError as exc:
            raise LogMappingError(str(exc)) from exc

        name = _require(data, "name", str, doc_id)
        when = _require(data, "date", datetime, doc_id)
        duration = _require(data, "duration", int, doc_id)
        calories = _require(data, "calories", int, doc_id)
        notes = data.get("notes", "")
        if notes is None:
            notes = ""
        if not isinstance(notes, str):
            raise LogMappingError(f"Log {doc_id} field 'notes' must be str")

        return cls(
            id=doc_id,
            name=name,
            # Stored in UTC; the calendar groups by local day.
            date=when.astimezone(),
            duration=duration,
            calories=calories,
            notes=notes,
            created_at=created_at.astimezone() if created_at else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "day": self.day.isoformat(),
            "duration": self.duration,
            "calories": self.calories,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class DaySummary:
    """Aggregate totals for one calendar day."""

    count: int = 0
    duration: int = 0
    calories: int = 0

    def add(self, log: WorkoutLog) -> "DaySummary":
        return DaySummary(
            count=self.count + 1,
            duration=self.duration + log.duration,
            calories=self.calories + log.calories,
        )


@dataclass(frozen=True)
class UserProfile:
    """Profile document stored alongside each account."""

    uid: str
    name: str
    email: str
    bio: str = ""
    photo_url: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, uid: str, document: Dict[str, Any]) -> "UserProfile":
        data = decode_fields(document.get("fields") or {})
        created_at = data.get("createdAt")
        return cls(
            uid=uid,
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            bio=str(data.get("bio") or ""),
            photo_url=str(data.get("photoUrl") or ""),
            created_at=created_at if isinstance(created_at, datetime) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "name": self.name,
            "email": self.email,
            "bio": self.bio,
            "photoUrl": self.photo_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
