"""Entry point for fitlog."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from fitlog import __version__
from fitlog.commands import logs as log_commands
from fitlog.commands import profile as profile_commands
from fitlog.commands.auth import (
    configure_command,
    login_command,
    logout_command,
    signup_command,
    whoami_command,
)
from fitlog.core.config import ConfigError, default_config_path, load_config
from fitlog.core.state import CLIState
from fitlog.utils.log_config import configure_logging

app = typer.Typer(
    add_completion=False,
    help="Workout log tracker",
    invoke_without_command=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON where available"),
    plain_output: bool = typer.Option(
        False,
        "--plain",
        help="Output plain text (no rich formatting/tables)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Initialize global CLI state."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if json_output and plain_output:
        typer.echo("Options --json and --plain are mutually exclusive.")
        raise typer.Exit(code=2)

    cfg_path = (config or default_config_path()).expanduser().resolve()
    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    console = Console(
        quiet=quiet,
        no_color=plain_output,
        log_time=False,
        log_path=False,
    )
    configure_logging(
        Console(stderr=True, no_color=plain_output),
        verbose=verbose,
        quiet=quiet,
    )
    ctx.obj = CLIState(
        json_output=(json_output and not plain_output),
        plain_output=plain_output,
        verbose=verbose,
        quiet=quiet,
        config_path=cfg_path,
        config=cfg,
        console=console,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


# Top-level commands
app.command("configure")(configure_command)
app.command("signup")(signup_command)
app.command("login")(login_command)
app.command("logout")(logout_command)
app.command("whoami")(whoami_command)
app.add_typer(profile_commands.app, name="profile")
app.add_typer(log_commands.app, name="log")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
