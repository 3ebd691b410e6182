"""Input checks applied before any remote call."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Tuple

from fitlog.core.models import EDITABLE_FIELDS, LogDraft


class ValidationError(ValueError):
    """Raised when user input is rejected before reaching the backend."""


def validate_credentials(email: Optional[str], password: Optional[str]) -> Tuple[str, str]:
    email = (email or "").strip()
    password = (password or "").strip()
    if not email or not password:
        raise ValidationError("Enter both email and password.")
    return email, password


def validate_registration(
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
    agreed_to_terms: bool,
) -> Tuple[str, str, str]:
    """Return (name, email, password) or raise on the first failed rule."""
    name = (name or "").strip()
    email = (email or "").strip()
    password = password or ""
    confirm_password = confirm_password or ""

    if not name or not email or not password or not confirm_password:
        raise ValidationError("All fields are required.")
    if password != confirm_password:
        raise ValidationError("Passwords do not match.")
    if not agreed_to_terms:
        raise ValidationError("You must agree to the terms of service.")
    return name, email, password


def validate_profile(name: Optional[str], bio: Optional[str]) -> Tuple[str, str]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required.")
    return name, (bio or "").strip()


def _non_negative_int(label: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative whole number.")
    return value


def validate_draft(draft: LogDraft) -> LogDraft:
    name = draft.name.strip()
    if not name:
        raise ValidationError("Workout name is required.")
    _non_negative_int("Duration", draft.duration)
    _non_negative_int("Calories", draft.calories)
    return replace(draft, name=name)


def validate_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Check an edit payload. ``date`` is reported separately by the caller."""
    cleaned: Dict[str, Any] = {}
    for key, value in changes.items():
        if key == "date":
            cleaned[key] = value
            continue
        if key not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown field '{key}'.")
        if key == "name":
            value = str(value or "").strip()
            if not value:
                raise ValidationError("Workout name is required.")
        elif key == "duration":
            value = _non_negative_int("Duration", value)
        elif key == "calories":
            value = _non_negative_int("Calories", value)
        elif key == "notes":
            value = "" if value is None else str(value)
        cleaned[key] = value
    if not cleaned:
        raise ValidationError("Nothing to update.")
    return cleaned
