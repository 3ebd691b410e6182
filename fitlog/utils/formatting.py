"""Formatting helpers used by console output."""

from __future__ import annotations

import calendar
from datetime import date
from typing import List, Optional

from fitlog.core.constants import WEEKDAY_LABELS
from fitlog.core.models import DaySummary


def format_minutes(minutes: Optional[int]) -> str:
    """Format minutes as 45m or 1h05m."""
    if minutes is None:
        return "N/A"
    h, m = divmod(int(minutes), 60)
    if h:
        return f"{h}h{m:02d}m"
    return f"{m}m"


def format_calories(kcal: Optional[int]) -> str:
    if kcal is None:
        return "N/A"
    return f"{int(kcal):,} kcal"


def truncate(text: str, width: int = 40) -> str:
    """Single-line preview of free text."""
    flat = " ".join(text.split())
    if len(flat) <= width:
        return flat
    return flat[: width - 1].rstrip() + "…"


def weekday_headers(first_weekday: int = 0) -> List[str]:
    return [WEEKDAY_LABELS[(first_weekday + offset) % 7] for offset in range(7)]


def month_grid(year: int, month: int, first_weekday: int = 0) -> List[List[Optional[date]]]:
    """Weeks of the month as rows of dates; padding days from other months are None."""
    cal = calendar.Calendar(firstweekday=first_weekday)
    return [
        [day if day.month == month else None for day in week]
        for week in cal.monthdatescalendar(year, month)
    ]


def calendar_cell(day: Optional[date], summary: Optional[DaySummary], marker: str = "*") -> str:
    """Text for one calendar cell: day number, with a marker and count when logged."""
    if day is None:
        return ""
    if summary is None or not summary.count:
        return f"{day.day:>2}"
    suffix = f"{marker}{summary.count}" if summary.count > 1 else marker
    return f"{day.day:>2}{suffix}"
