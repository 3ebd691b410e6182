"""Parsing helpers for workout log files."""

from __future__ import annotations

import json
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from fitlog.core.models import LogDraft
from fitlog.core.validation import ValidationError


def _parse_when(raw: Any, clock: Optional[str]) -> datetime:
    # YAML turns bare dates/timestamps into date/datetime objects already.
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        try:
            moment = datetime.strptime(clock, "%H:%M").time() if clock else time(12, 0)
        except ValueError as exc:
            raise ValidationError(f"Invalid workout time '{clock}'.") from exc
        return datetime.combine(raw, moment)
    text = str(raw or "").strip()
    if not text:
        raise ValidationError("Each workout needs a date.")
    try:
        if len(text) == 10:
            day = datetime.strptime(text, "%Y-%m-%d").date()
        else:
            return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid workout date '{text}'.") from exc
    return _parse_when(day, clock)


def _clock(raw: Any) -> Optional[str]:
    # YAML 1.1 reads an unquoted 18:30 as the base-60 integer 1110.
    if isinstance(raw, int) and not isinstance(raw, bool):
        hours, minutes = divmod(raw, 60)
        return f"{hours:02d}:{minutes:02d}"
    if raw is None or raw == "":
        return None
    return str(raw)


def _as_int(item: Dict[str, Any], key: str) -> int:
    value = item.get(key, 0)
    if isinstance(value, bool):
        raise ValidationError(f"Field '{key}' must be a whole number.")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"Field '{key}' must be a whole number.") from exc


def draft_from_mapping(item: Dict[str, Any]) -> LogDraft:
    """Build a draft from one JSON/YAML entry."""
    if not isinstance(item, dict):
        raise ValidationError("Each workout entry must be a mapping.")
    return LogDraft(
        name=str(item.get("name") or ""),
        date=_parse_when(item.get("date"), _clock(item.get("time"))),
        duration=_as_int(item, "duration"),
        calories=_as_int(item, "calories"),
        notes=str(item.get("notes") or ""),
    )


def load_log_file(file_path: Path) -> List[LogDraft]:
    """Load drafts from a JSON or YAML file (a list, or a mapping with ``logs``)."""
    text = file_path.read_text()
    try:
        if file_path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValidationError(f"Could not parse {file_path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("logs", [data])
    if not isinstance(data, list):
        raise ValidationError(f"{file_path} must contain a list of workouts.")
    return [draft_from_mapping(item) for item in data]
