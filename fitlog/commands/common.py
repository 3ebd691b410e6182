"""Shared command helpers."""

from __future__ import annotations

import json
from contextlib import contextmanager, nullcontext
from typing import Any, ContextManager, Dict, Iterator, NoReturn, Tuple

import typer

from fitlog.core.api import APIError, FirestoreAPI
from fitlog.core.auth import AuthError, FirebaseAuth, Session
from fitlog.core.config import ConfigError, resolve_firebase_settings
from fitlog.core.log_index import ImmutableFieldError, IndexNotReadyError, LogNotFoundError
from fitlog.core.logbook import DuplicateLogError, DuplicateSubmissionError, LogBook, LogStoreError
from fitlog.core.models import LogMappingError
from fitlog.core.profile import ProfileService
from fitlog.core.state import CLIState
from fitlog.core.store import LogStore
from fitlog.core.validation import ValidationError

USER_ERRORS = (
    APIError,
    AuthError,
    ConfigError,
    DuplicateLogError,
    DuplicateSubmissionError,
    ImmutableFieldError,
    IndexNotReadyError,
    LogMappingError,
    LogNotFoundError,
    LogStoreError,
    ValidationError,
)


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def make_auth(state: CLIState) -> FirebaseAuth:
    api_key, _ = resolve_firebase_settings(state.config)
    return FirebaseAuth(
        config=state.config,
        api_key=api_key,
        timeout_seconds=int(state.setting("api", "timeout_seconds", 30)),
    )


def make_api(state: CLIState, session: Session) -> FirestoreAPI:
    _, project_id = resolve_firebase_settings(state.config)
    return FirestoreAPI(
        token=session.id_token,
        project_id=project_id,
        database=str(state.setting("firebase", "database", "(default)")),
        rate_limit_delay=float(state.setting("api", "rate_limit_delay", 0.0)),
        max_retries=int(state.setting("api", "max_retries", 3)),
        timeout_seconds=int(state.setting("api", "timeout_seconds", 30)),
    )


def authenticate(state: CLIState) -> Tuple[Session, FirestoreAPI]:
    """Load the signed-in session and return (session, api_client)."""
    session = make_auth(state).require_session()
    return session, make_api(state, session)


def profile_service(state: CLIState, api: FirestoreAPI) -> ProfileService:
    return ProfileService(api, collection=str(state.setting("collections", "users", "users")))


def open_logbook(state: CLIState) -> LogBook:
    """Authenticate and return a log book loaded with the user's logs."""
    session, api = authenticate(state)
    store = LogStore(api, collection=str(state.setting("collections", "workout_logs", "workout_logs")))
    book = LogBook(store, user_id=session.uid)
    with status(state, "Loading workout logs..."):
        book.load()
    return book


def status(state: CLIState, message: str) -> ContextManager[Any]:
    """Spinner in rich mode; nothing in plain/JSON mode."""
    if state.plain_output or state.json_output:
        return nullcontext()
    return state.console.status(message)


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def fail(state: CLIState, message: str, prefix: str = "Error", code: int = 1) -> NoReturn:
    """Render an error in the active output mode and exit."""
    if state.json_output:
        print_json_payload(state, {"status": "error", "message": message})
    elif state.plain_output:
        typer.echo("status\terror")
        typer.echo(f"message\t{message}")
    else:
        state.console.print(f"{prefix}: {message}", markup=False)
    raise typer.Exit(code=code)


def print_fields(payload: Dict[str, Any]) -> None:
    """Plain-mode key<TAB>value lines."""
    for key, value in payload.items():
        typer.echo(f"{key}\t{'' if value is None else value}")


@contextmanager
def reported_errors(state: CLIState, prefix: str = "Error") -> Iterator[None]:
    """Turn domain errors raised inside the block into a rendered failure."""
    try:
        yield
    except USER_ERRORS as exc:
        fail(state, str(exc), prefix=prefix)
