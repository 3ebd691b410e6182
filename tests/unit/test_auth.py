from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
import requests

from fitlog.core.auth import AuthError, FirebaseAuth, Session, error_message


class DummyPostResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload)

    def json(self) -> Any:
        return self._payload


def _auth(tmp_path: Path) -> FirebaseAuth:
    return FirebaseAuth(config={}, api_key="key-1", session_file=tmp_path / "session.json")


def _signin_payload() -> Dict[str, Any]:
    return {
        "localId": "uid-1",
        "email": "a@example.com",
        "idToken": "id-token",
        "refreshToken": "refresh-token",
        "expiresIn": "3600",
    }


def test_sign_in_saves_session(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls: List[Dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any) -> DummyPostResponse:
        calls.append({"url": url, **kwargs})
        return DummyPostResponse(200, _signin_payload())

    monkeypatch.setattr("fitlog.core.auth.requests.post", fake_post)
    auth = _auth(tmp_path)

    session = auth.sign_in("a@example.com", "secret")

    assert session.uid == "uid-1"
    assert calls[0]["url"].endswith("/accounts:signInWithPassword")
    assert calls[0]["params"] == {"key": "key-1"}
    assert calls[0]["json"]["returnSecureToken"] is True
    stored = json.loads((tmp_path / "session.json").read_text())
    assert stored["uid"] == "uid-1"
    assert stored["refresh_token"] == "refresh-token"
    assert (tmp_path / "session.json").stat().st_mode & 0o777 == 0o600


def test_sign_up_uses_signup_endpoint(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    urls: List[str] = []

    def fake_post(url: str, **kwargs: Any) -> DummyPostResponse:
        urls.append(url)
        return DummyPostResponse(200, _signin_payload())

    monkeypatch.setattr("fitlog.core.auth.requests.post", fake_post)

    session = _auth(tmp_path).sign_up("a@example.com", "secret")

    assert urls[0].endswith("/accounts:signUp")
    assert session.email == "a@example.com"


@pytest.mark.parametrize(
    "code, expected",
    [
        ("EMAIL_NOT_FOUND", "No user exists with that email."),
        ("INVALID_PASSWORD", "Incorrect password."),
        ("EMAIL_EXISTS", "That email is already in use."),
        ("WEAK_PASSWORD : Password should be at least 6 characters", "Password is too weak."),
        ("OPERATION_NOT_ALLOWED : Password sign-in is disabled", "Password sign-in is disabled"),
    ],
)
def test_sign_in_maps_provider_errors(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    code: str,
    expected: str,
) -> None:
    monkeypatch.setattr(
        "fitlog.core.auth.requests.post",
        lambda *_, **__: DummyPostResponse(400, {"error": {"code": 400, "message": code}}),
    )
    auth = _auth(tmp_path)
    with pytest.raises(AuthError) as excinfo:
        auth.sign_in("a@example.com", "bad")
    assert str(excinfo.value) == expected
    assert not auth.session_file.exists()


def test_network_error_becomes_auth_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_post(*_: Any, **__: Any) -> None:
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("fitlog.core.auth.requests.post", fake_post)
    with pytest.raises(AuthError, match="Could not reach"):
        _auth(tmp_path).sign_in("a@example.com", "secret")


def test_error_message_falls_back() -> None:
    assert error_message(None, "fallback") == "fallback"
    assert error_message({"error": {}}, "fallback") == "fallback"
    assert error_message({"error": "UNKNOWN_CODE"}, "fallback") == "UNKNOWN_CODE"


def test_current_session_refreshes_expired_token(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    auth = _auth(tmp_path)
    auth.save_session(
        Session(uid="uid-1", email="a@example.com", id_token="old", refresh_token="r-old", expires_at=0)
    )
    seen: Dict[str, Any] = {}

    def fake_post(url: str, **kwargs: Any) -> DummyPostResponse:
        seen["url"] = url
        seen["data"] = kwargs.get("data")
        return DummyPostResponse(
            200,
            {"id_token": "new", "refresh_token": "r-new", "expires_in": "3600", "user_id": "uid-1"},
        )

    monkeypatch.setattr("fitlog.core.auth.requests.post", fake_post)

    session = auth.current_session()

    assert session is not None
    assert session.id_token == "new"
    assert seen["url"].endswith("/token")
    assert seen["data"] == {"grant_type": "refresh_token", "refresh_token": "r-old"}
    assert json.loads(auth.session_file.read_text())["id_token"] == "new"


def test_current_session_keeps_valid_token(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    auth = _auth(tmp_path)
    auth.save_session(
        Session(uid="uid-1", email="a@example.com", id_token="tok", refresh_token="r", expires_at=4102444800)
    )

    def fail_post(*_: Any, **__: Any) -> None:
        raise AssertionError("should not refresh")

    monkeypatch.setattr("fitlog.core.auth.requests.post", fail_post)
    session = auth.current_session()
    assert session is not None and session.id_token == "tok"


def test_require_session_without_login_raises(tmp_path: Path) -> None:
    with pytest.raises(AuthError, match="Not logged in"):
        _auth(tmp_path).require_session()


def test_corrupt_session_file_is_ignored(tmp_path: Path) -> None:
    auth = _auth(tmp_path)
    auth.session_file.write_text("{not json")
    assert auth.load_session() is None


def test_sign_out_removes_session(tmp_path: Path) -> None:
    auth = _auth(tmp_path)
    auth.session_file.write_text("{}")
    assert auth.sign_out() is True
    assert auth.sign_out() is False


def test_session_file_defaults_to_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("FITLOG_SESSION_STORE", raising=False)
    target = tmp_path / "custom-session.json"
    auth = FirebaseAuth(config={"auth": {"session_store": str(target)}}, api_key="k")
    assert auth.session_file == target.resolve()
