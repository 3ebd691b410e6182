"""Profile commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from fitlog.commands.common import (
    authenticate,
    fail,
    get_state,
    print_fields,
    print_json_payload,
    profile_service,
    reported_errors,
    status,
)
from fitlog.core.validation import validate_profile

app = typer.Typer(help="View and edit your profile")


@app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Show the signed-in user's profile."""
    state = get_state(ctx)
    with reported_errors(state):
        session, api = authenticate(state)
        with status(state, "Loading profile..."):
            profile = profile_service(state, api).get(session.uid)

    if profile is None:
        fail(state, f"No profile stored for {session.email or session.uid}")

    payload = profile.to_dict()
    if state.json_output:
        print_json_payload(state, payload)
        return
    if state.plain_output:
        print_fields(payload)
        return

    table = Table(title="Profile")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Name", profile.name)
    table.add_row("Email", profile.email)
    table.add_row("Bio", profile.bio or "-")
    table.add_row("Joined", profile.created_at.strftime("%Y-%m-%d") if profile.created_at else "-")
    state.console.print(table)


@app.command("update")
def update_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, help="Display name (required)"),
    bio: Optional[str] = typer.Option(None, help="Short bio; omit to keep the current one"),
) -> None:
    """Change name and bio."""
    state = get_state(ctx)
    with reported_errors(state, prefix="Profile update failed"):
        name, _ = validate_profile(name, bio)
        session, api = authenticate(state)
        service = profile_service(state, api)
        if bio is None:
            current = service.get(session.uid)
            bio = current.bio if current else ""
        with status(state, "Saving profile..."):
            service.update(session.uid, name, bio.strip())

    payload = {"status": "updated", "name": name, "bio": bio.strip()}
    if state.json_output:
        print_json_payload(state, payload)
    elif state.plain_output:
        print_fields(payload)
    else:
        state.console.print("Profile updated")
