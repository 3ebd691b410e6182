from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from fitlog.core.api import NotFoundError
from fitlog.core.models import LogDraft
from fitlog.core.profile import ProfileService
from fitlog.core.store import LogStore


class RecordingAPI:
    """Captures FirestoreAPI calls and replays canned responses."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def document_name(self, path: str) -> str:
        return f"projects/demo/databases/(default)/documents/{path}"

    def _record(self, method: str, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((method, args, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get_document(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("get_document", *args, **kwargs)

    def create_document(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("create_document", *args, **kwargs)

    def patch_document(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("patch_document", *args, **kwargs)

    def delete_document(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("delete_document", *args, **kwargs)

    def run_query(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("run_query", *args, **kwargs)

    def commit(self, *args: Any, **kwargs: Any) -> Any:
        return self._record("commit", *args, **kwargs)


def test_fetch_all_filters_by_owner(log_document: Dict[str, Any]) -> None:
    api = RecordingAPI(response=[log_document])
    logs = LogStore(api).fetch_all("user-1")  # type: ignore[arg-type]

    method, args, _ = api.calls[0]
    assert method == "run_query"
    query = args[0]
    assert query["from"] == [{"collectionId": "workout_logs"}]
    assert query["where"]["fieldFilter"] == {
        "field": {"fieldPath": "userId"},
        "op": "EQUAL",
        "value": {"stringValue": "user-1"},
    }
    assert [log.id for log in logs] == ["abc123"]


def test_create_sends_owner_and_fields(log_document: Dict[str, Any]) -> None:
    api = RecordingAPI(response=log_document)
    draft = LogDraft(
        name="Morning run",
        date=datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc),
        duration=30,
        calories=200,
        notes="Easy pace",
    )

    created = LogStore(api, collection="logs").create("user-1", draft)  # type: ignore[arg-type]

    method, args, _ = api.calls[0]
    assert method == "create_document"
    assert args[0] == "logs"
    assert args[1] == {
        "userId": {"stringValue": "user-1"},
        "name": {"stringValue": "Morning run"},
        "date": {"timestampValue": "2024-05-01T07:00:00.000000Z"},
        "duration": {"integerValue": "30"},
        "calories": {"integerValue": "200"},
        "notes": {"stringValue": "Easy pace"},
    }
    assert created.id == "abc123"
    assert created.same_entry(draft)


def test_update_patches_only_changed_fields() -> None:
    api = RecordingAPI(response={})
    LogStore(api).update("abc123", {"notes": "Windy", "duration": 35})  # type: ignore[arg-type]

    method, args, kwargs = api.calls[0]
    assert method == "patch_document"
    assert args[0] == "workout_logs/abc123"
    assert args[1] == {"notes": {"stringValue": "Windy"}, "duration": {"integerValue": "35"}}
    assert kwargs == {"mask": ["duration", "notes"], "must_exist": True}


def test_delete_targets_document_path() -> None:
    api = RecordingAPI(response={})
    LogStore(api).delete("abc123")  # type: ignore[arg-type]
    assert api.calls == [("delete_document", ("workout_logs/abc123",), {})]


def test_profile_create_commits_server_timestamp() -> None:
    api = RecordingAPI(response={})
    ProfileService(api).create("u1", "Jordan", "j@example.com")  # type: ignore[arg-type]

    method, args, _ = api.calls[0]
    assert method == "commit"
    (write,) = args[0]
    assert write["update"]["name"] == "projects/demo/databases/(default)/documents/users/u1"
    assert write["update"]["fields"] == {
        "name": {"stringValue": "Jordan"},
        "email": {"stringValue": "j@example.com"},
        "photoUrl": {"stringValue": ""},
        "bio": {"stringValue": ""},
    }
    assert write["updateTransforms"] == [{"fieldPath": "createdAt", "setToServerValue": "REQUEST_TIME"}]


def test_profile_get_missing_returns_none() -> None:
    api = RecordingAPI(error=NotFoundError("Not found", status_code=404))
    assert ProfileService(api).get("u1") is None  # type: ignore[arg-type]


def test_profile_get_maps_document() -> None:
    api = RecordingAPI(
        response={
            "name": "projects/demo/databases/(default)/documents/users/u1",
            "fields": {"name": {"stringValue": "Jordan"}, "email": {"stringValue": "j@example.com"}},
        }
    )
    profile = ProfileService(api).get("u1")  # type: ignore[arg-type]
    assert profile is not None
    assert profile.uid == "u1"
    assert profile.bio == ""
    assert api.calls[0][1] == ("users/u1",)


def test_profile_update_masks_name_and_bio() -> None:
    api = RecordingAPI(response={})
    ProfileService(api).update("u1", "Jordan", "Runner")  # type: ignore[arg-type]

    method, args, kwargs = api.calls[0]
    assert method == "patch_document"
    assert args == ("users/u1", {"name": {"stringValue": "Jordan"}, "bio": {"stringValue": "Runner"}})
    assert kwargs == {"mask": ["bio", "name"], "must_exist": True}


def test_profile_update_missing_profile_propagates() -> None:
    api = RecordingAPI(error=NotFoundError("Not found", status_code=404))
    with pytest.raises(NotFoundError):
        ProfileService(api).update("u1", "Jordan", "")  # type: ignore[arg-type]
