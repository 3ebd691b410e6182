"""Workout log commands."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from fitlog.commands.common import (
    get_state,
    open_logbook,
    print_fields,
    print_json_payload,
    reported_errors,
    status,
)
from fitlog.core.config import resolve_week_start
from fitlog.core.logbook import DuplicateLogError, LogStoreError
from fitlog.core.models import LogDraft, WorkoutLog
from fitlog.core.state import CLIState
from fitlog.core.validation import validate_changes, validate_draft
from fitlog.utils.date_ranges import (
    combine_date_time,
    month_bounds,
    parse_date,
    parse_month,
    resolve_date_range,
    validate_date,
    validate_month,
    validate_time,
)
from fitlog.utils.formatting import (
    calendar_cell,
    format_calories,
    format_minutes,
    month_grid,
    truncate,
    weekday_headers,
)
from fitlog.utils.parsing import load_log_file

app = typer.Typer(help="Record and browse workout logs")


def _totals(logs: List[WorkoutLog]) -> Dict[str, int]:
    return {
        "count": len(logs),
        "duration": sum(log.duration for log in logs),
        "calories": sum(log.calories for log in logs),
    }


def _logs_table(title: str, logs: List[WorkoutLog], show_day: bool = False) -> Table:
    table = Table(title=title)
    if show_day:
        table.add_column("Date")
    table.add_column("Time")
    table.add_column("Workout")
    table.add_column("Duration", justify="right")
    table.add_column("Calories", justify="right")
    table.add_column("Notes")
    table.add_column("ID", style="dim")
    for log in logs:
        row = [
            log.date.strftime("%H:%M"),
            log.name,
            format_minutes(log.duration),
            format_calories(log.calories),
            truncate(log.notes) or "-",
            log.id,
        ]
        if show_day:
            row.insert(0, log.day.isoformat())
        table.add_row(*row)
    return table


def _print_logs(state: CLIState, title: str, logs: List[WorkoutLog], show_day: bool = False) -> None:
    totals = _totals(logs)
    if state.plain_output:
        typer.echo("id\tday\ttime\tname\tduration\tcalories\tnotes")
        for log in logs:
            typer.echo(
                "\t".join(
                    [
                        log.id,
                        log.day.isoformat(),
                        log.date.strftime("%H:%M"),
                        log.name,
                        str(log.duration),
                        str(log.calories),
                        truncate(log.notes, width=80),
                    ]
                )
            )
        typer.echo(f"total\t{totals['count']}")
        return

    if not logs:
        state.console.print(f"{title}: no workouts logged")
        return
    state.console.print(_logs_table(title, logs, show_day=show_day))
    state.console.print(
        f"{totals['count']} workout(s), {format_minutes(totals['duration'])}, "
        f"{format_calories(totals['calories'])}"
    )


def _print_result(state: CLIState, verb: str, log: WorkoutLog) -> None:
    payload = {"status": verb, "log": log.to_dict()}
    if state.json_output:
        print_json_payload(state, payload)
    elif state.plain_output:
        print_fields({"status": verb, **log.to_dict()})
    else:
        state.console.print(
            f"{verb.capitalize()} '{log.name}' on {log.day.isoformat()} ({log.id})",
            markup=False,
        )


@app.command("add")
def add_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, help="Workout name"),
    day: Optional[str] = typer.Option(None, "--date", help="Workout date YYYY-MM-DD (default today)", callback=validate_date),
    clock: Optional[str] = typer.Option(None, "--time", help="Start time HH:MM", callback=validate_time),
    duration: int = typer.Option(0, help="Duration in minutes"),
    calories: int = typer.Option(0, help="Calories burned (kcal)"),
    notes: str = typer.Option("", help="Free-text notes"),
    file: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="JSON/YAML file with workout(s)"
    ),
    force: bool = typer.Option(False, help="Save even if an identical workout exists that day"),
) -> None:
    """Log a workout."""
    state = get_state(ctx)

    with reported_errors(state, prefix="Could not add workout"):
        if file is not None:
            drafts = load_log_file(file)
        elif name is not None:
            drafts = [
                LogDraft(
                    name=name,
                    date=combine_date_time(day, clock),
                    duration=duration,
                    calories=calories,
                    notes=notes,
                )
            ]
        else:
            raise typer.BadParameter("Provide --file, or --name with the workout details")
        drafts = [validate_draft(draft) for draft in drafts]

        book = open_logbook(state)
        results: List[Dict[str, Any]] = []
        for draft in drafts:
            try:
                with status(state, f"Saving {draft.name}..."):
                    created = book.add(draft, force=force)
            except DuplicateLogError as exc:
                results.append(
                    {
                        "status": "skipped",
                        "reason": "already_exists",
                        "name": draft.name,
                        "day": draft.day.isoformat(),
                        "id": exc.existing.id,
                    }
                )
                continue
            except LogStoreError as exc:
                if len(drafts) == 1:
                    raise
                results.append(
                    {
                        "status": "failed",
                        "reason": str(exc),
                        "name": draft.name,
                        "day": draft.day.isoformat(),
                        "id": None,
                    }
                )
                continue
            results.append({"status": "created", **created.to_dict()})

    if len(drafts) == 1 and not state.json_output:
        result = results[0]
        if result["status"] == "skipped":
            if state.plain_output:
                print_fields(result)
            else:
                state.console.print(
                    f"Skipped '{result['name']}': already logged on {result['day']} ({result['id']}). "
                    "Use --force to save it anyway.",
                    markup=False,
                )
            return
        _print_result(state, "created", book.get(result["id"]))
        return

    if state.json_output:
        print_json_payload(state, {"results": results})
    elif state.plain_output:
        typer.echo(f"processed\t{len(results)}")
        for item in results:
            typer.echo(json.dumps(item, separators=(",", ":")))
    else:
        created_count = sum(1 for item in results if item["status"] == "created")
        state.console.print(f"Processed {len(results)} workout(s): {created_count} created")
        for item in results:
            state.console.print(
                f"  {item['status']}: {item['day']} {item['name']} ({item['id'] or item.get('reason')})",
                markup=False,
            )
    if any(item["status"] == "failed" for item in results):
        raise typer.Exit(code=1)


@app.command("edit")
def edit_command(
    ctx: typer.Context,
    log_id: str = typer.Argument(..., help="Workout log ID"),
    name: Optional[str] = typer.Option(None, help="New workout name"),
    duration: Optional[int] = typer.Option(None, help="New duration in minutes"),
    calories: Optional[int] = typer.Option(None, help="New calories (kcal)"),
    notes: Optional[str] = typer.Option(None, help="New notes"),
) -> None:
    """Change a logged workout. The date cannot be changed; delete and re-add instead."""
    state = get_state(ctx)
    changes: Dict[str, Any] = {
        key: value
        for key, value in {"name": name, "duration": duration, "calories": calories, "notes": notes}.items()
        if value is not None
    }
    if not changes:
        raise typer.BadParameter("Provide at least one of --name, --duration, --calories, --notes")

    with reported_errors(state, prefix="Could not update workout"):
        changes = validate_changes(changes)
        book = open_logbook(state)
        with status(state, "Saving..."):
            updated = book.edit(log_id, changes)

    _print_result(state, "updated", updated)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    log_id: str = typer.Argument(..., help="Workout log ID"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
) -> None:
    """Delete a logged workout."""
    state = get_state(ctx)

    if not force:
        confirmed = typer.confirm(f"Delete workout log {log_id}?", default=False)
        if not confirmed:
            raise typer.Exit(code=0)

    with reported_errors(state, prefix="Could not delete workout"):
        book = open_logbook(state)
        with status(state, "Deleting..."):
            removed = book.remove(log_id)

    _print_result(state, "deleted", removed)


@app.command("day")
def day_command(
    ctx: typer.Context,
    day: Optional[str] = typer.Argument(None, help="Day YYYY-MM-DD (default today)", callback=validate_date),
) -> None:
    """Show the workouts logged on one day."""
    state = get_state(ctx)
    selected = parse_date(day) if day else date.today()

    with reported_errors(state):
        book = open_logbook(state)
    logs = book.index.select(selected)

    if state.json_output:
        print_json_payload(
            state,
            {"day": selected.isoformat(), "logs": [log.to_dict() for log in logs], "totals": _totals(logs)},
        )
        return
    _print_logs(state, selected.strftime("%A %Y-%m-%d"), logs)


@app.command("month")
def month_command(
    ctx: typer.Context,
    month: Optional[str] = typer.Option(None, help="Month YYYY-MM (default current month)", callback=validate_month),
) -> None:
    """Calendar of a month with the days that have workouts marked."""
    state = get_state(ctx)
    today = date.today()
    year, month_no = parse_month(month) if month else (today.year, today.month)

    with reported_errors(state):
        first_weekday = resolve_week_start(state.config)
        book = open_logbook(state)
    summary = book.index.month_summary(year, month_no)
    start, end = month_bounds(year, month_no)
    logs = book.index.range_logs(start, end)

    if state.json_output:
        print_json_payload(
            state,
            {
                "month": f"{year:04d}-{month_no:02d}",
                "days": {
                    day.isoformat(): {"count": item.count, "duration": item.duration, "calories": item.calories}
                    for day, item in sorted(summary.items())
                },
                "totals": _totals(logs),
            },
        )
        return

    if state.plain_output:
        typer.echo("day\tcount\tduration\tcalories")
        for day, item in sorted(summary.items()):
            typer.echo(f"{day.isoformat()}\t{item.count}\t{item.duration}\t{item.calories}")
        typer.echo(f"total\t{len(logs)}")
        return

    table = Table(title=start.strftime("%B %Y"))
    for header in weekday_headers(first_weekday):
        table.add_column(header, justify="right")
    for week in month_grid(year, month_no, first_weekday):
        cells = []
        for day in week:
            text = calendar_cell(day, summary.get(day) if day else None)
            if day == today:
                text = f"[reverse]{text}[/reverse]"
            elif day in summary:
                text = f"[bold green]{text}[/bold green]"
            cells.append(text)
        table.add_row(*cells)
    state.console.print(table)
    totals = _totals(logs)
    state.console.print(
        f"{len(summary)} active day(s), {totals['count']} workout(s), "
        f"{format_minutes(totals['duration'])}, {format_calories(totals['calories'])}"
    )


@app.command("list")
def list_command(
    ctx: typer.Context,
    start_date: Optional[str] = typer.Option(None, help="Start date (YYYY-MM-DD)", callback=validate_date),
    end_date: Optional[str] = typer.Option(None, help="End date (YYYY-MM-DD)", callback=validate_date),
    last_days: Optional[int] = typer.Option(None, help="List last N days"),
    last_weeks: Optional[int] = typer.Option(None, help="List last N weeks"),
    this_week: bool = typer.Option(False, help="List this week"),
    last_week: bool = typer.Option(False, help="List previous week"),
    this_month: bool = typer.Option(False, help="List this month"),
    this_year: bool = typer.Option(False, help="List this year"),
    all_time: bool = typer.Option(False, "--all", help="List every logged workout"),
) -> None:
    """List workouts over a date range (default last 30 days)."""
    state = get_state(ctx)

    with reported_errors(state):
        start, end = resolve_date_range(
            start_date=start_date,
            end_date=end_date,
            last_days=last_days,
            last_weeks=last_weeks,
            this_week=this_week,
            last_week=last_week,
            this_month=this_month,
            this_year=this_year,
            all_time=all_time,
            week_start=resolve_week_start(state.config),
        )
        if start > end:
            raise typer.BadParameter("--start-date must not be after --end-date")
        book = open_logbook(state)
    logs = book.index.range_logs(start, end)

    if state.json_output:
        print_json_payload(
            state,
            {
                "logs": [log.to_dict() for log in logs],
                "totals": _totals(logs),
                "date_range": {"start": start.isoformat(), "end": end.isoformat()},
            },
        )
        return
    _print_logs(state, f"Workouts {start.isoformat()} to {end.isoformat()}", logs, show_day=True)
