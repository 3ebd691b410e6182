from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from typer.testing import CliRunner

from fitlog.core.api import APIError, NotFoundError
from fitlog.core.models import LogDraft, WorkoutLog


class FakeStore:
    """In-memory stand-in for LogStore that records every call."""

    def __init__(self, logs: Optional[List[WorkoutLog]] = None) -> None:
        self.logs: Dict[str, WorkoutLog] = {log.id: log for log in logs or []}
        self.calls: List[Tuple[Any, ...]] = []
        self.fail_with: Optional[Exception] = None
        self._next_id = 100

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_all(self, user_id: str) -> List[WorkoutLog]:
        self.calls.append(("fetch_all", user_id))
        self._maybe_fail()
        return list(self.logs.values())

    def create(self, user_id: str, draft: LogDraft) -> WorkoutLog:
        self.calls.append(("create", user_id, draft))
        self._maybe_fail()
        log_id = f"log-{self._next_id}"
        self._next_id += 1
        log = WorkoutLog.from_draft(log_id, draft)
        self.logs[log_id] = log
        return log

    def update(self, log_id: str, changes: Dict[str, Any]) -> None:
        self.calls.append(("update", log_id, dict(changes)))
        self._maybe_fail()
        if log_id not in self.logs:
            raise NotFoundError(f"Not found: {log_id}", status_code=404)
        self.logs[log_id] = replace(self.logs[log_id], **changes)

    def delete(self, log_id: str) -> None:
        self.calls.append(("delete", log_id))
        self._maybe_fail()
        self.logs.pop(log_id, None)

    def writes(self) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] != "fetch_all"]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def log_1() -> WorkoutLog:
    return WorkoutLog(id="1", name="Morning run", date=datetime(2024, 5, 1, 7, 0), duration=30, calories=200)


@pytest.fixture()
def log_2() -> WorkoutLog:
    return WorkoutLog(
        id="2",
        name="Evening lift",
        date=datetime(2024, 5, 1, 18, 30),
        duration=45,
        calories=300,
        notes="Squat day",
    )


@pytest.fixture()
def log_3() -> WorkoutLog:
    return WorkoutLog(id="3", name="Swim", date=datetime(2024, 5, 2, 12, 0), duration=20, calories=100)


@pytest.fixture()
def sample_logs(log_1: WorkoutLog, log_2: WorkoutLog, log_3: WorkoutLog) -> List[WorkoutLog]:
    return [log_1, log_2, log_3]


@pytest.fixture()
def fake_store(sample_logs: List[WorkoutLog]) -> FakeStore:
    return FakeStore(sample_logs)


@pytest.fixture()
def store_factory():
    return FakeStore


@pytest.fixture()
def api_failure() -> APIError:
    return APIError("API request failed for POST /workout_logs: boom", status_code=503)


@pytest.fixture()
def log_document() -> Dict[str, Any]:
    return {
        "name": "projects/demo/databases/(default)/documents/workout_logs/abc123",
        "createTime": "2024-05-01T07:35:12.123456789Z",
        "updateTime": "2024-05-01T07:35:12.123456789Z",
        "fields": {
            "userId": {"stringValue": "user-1"},
            "name": {"stringValue": "Morning run"},
            "date": {"timestampValue": "2024-05-01T07:00:00Z"},
            "duration": {"integerValue": "30"},
            "calories": {"integerValue": "200"},
            "notes": {"stringValue": "Easy pace"},
        },
    }


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_text(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
