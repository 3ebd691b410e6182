"""Authentication against the Firebase identity REST endpoints."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from fitlog.core.config import resolve_session_store
from fitlog.core.constants import (
    AUTH_ERROR_MESSAGES,
    IDENTITY_BASE,
    SECURE_TOKEN_BASE,
    TOKEN_REFRESH_MARGIN,
)

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Raised when authentication fails."""


@dataclass
class Session:
    """Signed-in user plus the tokens needed to call the backend."""

    uid: str
    email: str
    id_token: str
    refresh_token: str
    expires_at: float

    def expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at - TOKEN_REFRESH_MARGIN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            uid=str(data["uid"]),
            email=str(data.get("email") or ""),
            id_token=str(data["id_token"]),
            refresh_token=str(data["refresh_token"]),
            expires_at=float(data["expires_at"]),
        )


def error_message(payload: Any, fallback: str) -> str:
    """Translate an identity-service error body into a user-facing message."""
    if not isinstance(payload, dict):
        return fallback
    error = payload.get("error")
    raw = ""
    if isinstance(error, dict):
        raw = str(error.get("message") or "")
    elif isinstance(error, str):
        raw = error
    if not raw:
        return fallback
    # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
    code, _, detail = raw.partition(" : ")
    code = code.strip().upper()
    if code in AUTH_ERROR_MESSAGES:
        return AUTH_ERROR_MESSAGES[code]
    return detail.strip() or raw


class FirebaseAuth:
    """Sign-in, sign-up and session persistence for one project."""

    def __init__(
        self,
        config: Dict[str, Any],
        api_key: str,
        session_file: Optional[Path] = None,
        timeout_seconds: int = 30,
    ) -> None:
        self.config = config
        self.api_key = api_key
        self.session_file = session_file or resolve_session_store(config)
        self.timeout_seconds = timeout_seconds

    def _post(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = requests.post(url, params={"key": self.api_key}, timeout=self.timeout_seconds, **kwargs)
        except requests.RequestException as exc:
            logger.error("Identity request failed: %s", exc)
            raise AuthError(f"Could not reach the authentication service: {exc}") from exc

        try:
            payload = response.json() if response.text else {}
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            message = error_message(payload, fallback=f"Authentication failed (HTTP {response.status_code})")
            logger.info("Identity service rejected request: %s", message)
            raise AuthError(message)
        if not isinstance(payload, dict):
            raise AuthError("Unexpected response from the authentication service")
        return payload

    def _session_from_signin(self, payload: Dict[str, Any]) -> Session:
        try:
            return Session(
                uid=str(payload["localId"]),
                email=str(payload.get("email") or ""),
                id_token=str(payload["idToken"]),
                refresh_token=str(payload["refreshToken"]),
                expires_at=time.time() + int(payload.get("expiresIn", 3600)),
            )
        except (KeyError, ValueError) as exc:
            raise AuthError("Authentication response is missing tokens") from exc

    def load_session(self) -> Optional[Session]:
        if not self.session_file.exists():
            return None
        try:
            return Session.from_dict(json.loads(self.session_file.read_text()))
        except (ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable session file %s", self.session_file)
            return None

    def save_session(self, session: Session) -> None:
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(json.dumps(asdict(session), indent=2) + "\n")
        os.chmod(self.session_file, 0o600)

    def sign_in(self, email: str, password: str) -> Session:
        payload = self._post(
            f"{IDENTITY_BASE}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        session = self._session_from_signin(payload)
        self.save_session(session)
        logger.info("Signed in as %s", session.email)
        return session

    def sign_up(self, email: str, password: str) -> Session:
        payload = self._post(
            f"{IDENTITY_BASE}/accounts:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        session = self._session_from_signin(payload)
        self.save_session(session)
        logger.info("Registered %s", session.email)
        return session

    def refresh(self, session: Session) -> Session:
        payload = self._post(
            f"{SECURE_TOKEN_BASE}/token",
            data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
        )
        try:
            refreshed = Session(
                uid=str(payload.get("user_id") or session.uid),
                email=session.email,
                id_token=str(payload["id_token"]),
                refresh_token=str(payload.get("refresh_token") or session.refresh_token),
                expires_at=time.time() + int(payload.get("expires_in", 3600)),
            )
        except (KeyError, ValueError) as exc:
            raise AuthError("Token refresh response is missing tokens") from exc
        self.save_session(refreshed)
        logger.debug("Refreshed id token for %s", refreshed.uid)
        return refreshed

    def current_session(self) -> Optional[Session]:
        """Return the signed-in session, refreshing its token when close to expiry."""
        session = self.load_session()
        if session is None:
            return None
        if session.expired():
            session = self.refresh(session)
        return session

    def require_session(self) -> Session:
        session = self.current_session()
        if session is None:
            raise AuthError("Not logged in. Run `fitlog login` first.")
        return session

    def sign_out(self) -> bool:
        """Delete the local session file."""
        if self.session_file.exists():
            self.session_file.unlink()
            logger.info("Signed out")
            return True
        return False
