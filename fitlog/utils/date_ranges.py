"""Date, time and range parsing helpers."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

import typer

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")


def validate_date(value: Optional[str]) -> Optional[str]:
    """Typer callback that validates YYYY-MM-DD format for date options."""
    if value is None:
        return value
    if not _DATE_RE.match(value):
        raise typer.BadParameter(
            f"Invalid date '{value}'. Expected format: YYYY-MM-DD (e.g. 2026-01-15)"
        )
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise typer.BadParameter(
            f"Invalid date '{value}'. Expected format: YYYY-MM-DD (e.g. 2026-01-15)"
        )
    return value


def validate_month(value: Optional[str]) -> Optional[str]:
    """Typer callback that validates YYYY-MM format."""
    if value is None:
        return value
    if not _MONTH_RE.match(value) or not 1 <= int(value[5:]) <= 12:
        raise typer.BadParameter(f"Invalid month '{value}'. Expected format: YYYY-MM (e.g. 2026-01)")
    return value


def validate_time(value: Optional[str]) -> Optional[str]:
    """Typer callback that validates HH:MM (24h)."""
    if value is None:
        return value
    try:
        if not _TIME_RE.match(value):
            raise ValueError(value)
        datetime.strptime(value, "%H:%M")
    except ValueError:
        raise typer.BadParameter(f"Invalid time '{value}'. Expected format: HH:MM (e.g. 07:30)")
    return value


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD date string."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_month(value: str) -> Tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    parsed = datetime.strptime(value, "%Y-%m")
    return parsed.year, parsed.month


def combine_date_time(day: Optional[str], clock: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Build a log timestamp from optional date/time options.

    Missing date means today; missing time means the current time when the
    date is today and noon otherwise.
    """
    current = now or datetime.now()
    target_day = parse_date(day) if day else current.date()
    if clock:
        moment = datetime.strptime(clock, "%H:%M").time()
    elif target_day == current.date():
        moment = current.time().replace(second=0, microsecond=0)
    else:
        moment = time(12, 0)
    return datetime.combine(target_day, moment)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def resolve_date_range(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    last_days: Optional[int] = None,
    last_weeks: Optional[int] = None,
    this_week: bool = False,
    last_week: bool = False,
    this_month: bool = False,
    this_year: bool = False,
    all_time: bool = False,
    today: Optional[date] = None,
    week_start: int = 0,
) -> Tuple[date, date]:
    """Resolve CLI date flags into concrete start/end dates."""
    now = today or date.today()
    week_offset = (now.weekday() - week_start) % 7

    if start_date and end_date:
        return parse_date(start_date), parse_date(end_date)
    if start_date and not end_date:
        return parse_date(start_date), now
    if end_date and not start_date:
        return date(2000, 1, 1), parse_date(end_date)

    if last_days:
        return now - timedelta(days=max(last_days - 1, 0)), now
    if last_weeks:
        days = max(last_weeks * 7 - 1, 0)
        return now - timedelta(days=days), now

    if this_week:
        start = now - timedelta(days=week_offset)
        return start, start + timedelta(days=6)

    if last_week:
        this_week_start = now - timedelta(days=week_offset)
        start = this_week_start - timedelta(days=7)
        return start, start + timedelta(days=6)

    if this_month:
        return month_bounds(now.year, now.month)

    if this_year:
        return date(now.year, 1, 1), date(now.year, 12, 31)

    if all_time:
        return date(2000, 1, 1), now

    # Default: last 30 days.
    return now - timedelta(days=29), now
