"""Account commands: configure, signup, login, logout, whoami."""

from __future__ import annotations

from typing import Optional

import typer

from fitlog.commands.common import (
    authenticate,
    get_state,
    make_api,
    make_auth,
    print_fields,
    print_json_payload,
    profile_service,
    reported_errors,
    status,
)
from fitlog.core.auth import FirebaseAuth
from fitlog.core.config import save_config
from fitlog.core.validation import validate_credentials, validate_registration


def configure_command(
    ctx: typer.Context,
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Web API key of the backend project"),
    project_id: Optional[str] = typer.Option(None, "--project-id", help="Backend project id"),
    database: Optional[str] = typer.Option(None, help="Firestore database id"),
    week_start: Optional[str] = typer.Option(None, help="First day of the calendar week: monday|sunday"),
) -> None:
    """Write backend settings to the config file."""
    state = get_state(ctx)
    if week_start is not None and week_start.lower() not in {"monday", "sunday"}:
        raise typer.BadParameter("--week-start must be one of: monday, sunday")
    if api_key is None and project_id is None and database is None and week_start is None:
        raise typer.BadParameter("Provide at least one of --api-key, --project-id, --database, --week-start")

    config = state.config
    firebase = config.setdefault("firebase", {})
    if api_key is not None:
        firebase["api_key"] = api_key
    if project_id is not None:
        firebase["project_id"] = project_id
    if database is not None:
        firebase["database"] = database
    if week_start is not None:
        config.setdefault("defaults", {})["week_start"] = week_start.lower()

    path = save_config(config, state.config_path)
    payload = {"status": "saved", "config_path": str(path)}
    if state.json_output:
        print_json_payload(state, payload)
    elif state.plain_output:
        print_fields(payload)
    else:
        state.console.print(f"Configuration saved to {path}")


def signup_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, help="Display name"),
    email: Optional[str] = typer.Option(None, help="Account email", envvar="FITLOG_EMAIL"),
    password: Optional[str] = typer.Option(None, help="Account password", envvar="FITLOG_PASSWORD"),
    confirm_password: Optional[str] = typer.Option(None, "--confirm-password", help="Repeat the password"),
    agree_terms: bool = typer.Option(False, "--agree-terms", help="Accept the terms of service"),
) -> None:
    """Create an account and its profile."""
    state = get_state(ctx)

    with reported_errors(state, prefix="Sign-up failed"):
        name, email, password = validate_registration(name, email, password, confirm_password, agree_terms)
        auth = make_auth(state)
        with status(state, "Creating account..."):
            session = auth.sign_up(email, password)
            profile_service(state, make_api(state, session)).create(session.uid, name, email)

    payload = {"status": "success", "user": {"uid": session.uid, "email": session.email, "name": name}}
    if state.json_output:
        print_json_payload(state, payload)
        return
    if state.plain_output:
        print_fields({"status": "success", "uid": session.uid, "email": session.email, "name": name})
        return
    state.console.print("Sign-up successful")
    state.console.print(f"Welcome, {name} ({session.email})", markup=False)


def login_command(
    ctx: typer.Context,
    email: Optional[str] = typer.Option(None, help="Account email", envvar="FITLOG_EMAIL"),
    password: Optional[str] = typer.Option(None, help="Account password", envvar="FITLOG_PASSWORD"),
    force: bool = typer.Option(False, "--force", help="Sign in again even if a session exists"),
) -> None:
    """Sign in and cache the session locally."""
    state = get_state(ctx)

    with reported_errors(state, prefix="Login failed"):
        auth = make_auth(state)
        session = None if force else auth.current_session()
        if session is None:
            email, password = validate_credentials(email or state.setting("auth", "email"), password)
            with status(state, "Authenticating..."):
                session = auth.sign_in(email, password)

    payload = {
        "status": "success",
        "authenticated": True,
        "user": {"uid": session.uid, "email": session.email},
    }
    if state.json_output:
        print_json_payload(state, payload)
        return
    if state.plain_output:
        print_fields({"status": "success", "uid": session.uid, "email": session.email})
        return
    state.console.print("Login successful")
    state.console.print(f"User: {session.email} ({session.uid})", markup=False)


def logout_command(ctx: typer.Context) -> None:
    """Delete the cached local session."""
    state = get_state(ctx)
    with reported_errors(state):
        removed = FirebaseAuth(config=state.config, api_key="").sign_out()

    message = "Local session removed" if removed else "No local session found"
    if state.json_output:
        print_json_payload(state, {"status": "success", "logged_out": removed, "message": message})
        return
    if state.plain_output:
        print_fields({"status": "success", "logged_out": str(removed).lower(), "message": message})
        return
    state.console.print(message)


def whoami_command(ctx: typer.Context) -> None:
    """Show the signed-in user."""
    state = get_state(ctx)
    with reported_errors(state):
        session, _ = authenticate(state)

    payload = {"uid": session.uid, "email": session.email}
    if state.json_output:
        print_json_payload(state, payload)
    elif state.plain_output:
        print_fields(payload)
    else:
        state.console.print(f"{session.email} ({session.uid})", markup=False)
