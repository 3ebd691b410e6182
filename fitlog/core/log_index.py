"""Day-keyed in-memory index of workout logs.

The index is a rebuildable cache of the log store: it is filled from a full
fetch and then patched locally after each successful remote write, so a
command never has to refetch after saving. Buckets keep the order in which
logs were supplied and a bucket that empties is dropped.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from fitlog.core.models import DaySummary, WorkoutLog, day_key


class IndexState(str, Enum):
    LOADING = "loading"
    READY = "ready"


class LogNotFoundError(LookupError):
    """Raised when a log id is not present where it was expected."""


class ImmutableFieldError(ValueError):
    """Raised when an update tries to change a log's date."""


class IndexNotReadyError(RuntimeError):
    """Raised when a mutation is attempted while a load is outstanding."""


def build_index(logs: Iterable[WorkoutLog]) -> Dict[date, List[WorkoutLog]]:
    """Group logs by day, preserving the supplied order within each day."""
    buckets: Dict[date, List[WorkoutLog]] = {}
    for log in logs:
        buckets.setdefault(day_key(log.date), []).append(log)
    return buckets


class LogIndex:
    """Mapping of calendar day to the logs recorded on that day."""

    def __init__(self) -> None:
        self._buckets: Dict[date, List[WorkoutLog]] = {}
        self.state = IndexState.LOADING
        self._selected_day: Optional[date] = None
        self._selected_view: Optional[List[WorkoutLog]] = None

    @classmethod
    def from_logs(cls, logs: Iterable[WorkoutLog]) -> "LogIndex":
        index = cls()
        index.load(logs)
        return index

    @property
    def ready(self) -> bool:
        return self.state is IndexState.READY

    def begin_load(self) -> None:
        """Enter LOADING and drop everything derived from the previous load."""
        self.state = IndexState.LOADING
        self._buckets = {}
        self._invalidate()

    def load(self, logs: Iterable[WorkoutLog]) -> None:
        self._buckets = build_index(logs)
        self._invalidate()
        self.state = IndexState.READY

    def _require_ready(self) -> None:
        if not self.ready:
            raise IndexNotReadyError("Workout logs are still loading")

    def _invalidate(self, day: Optional[date] = None) -> None:
        if day is None or day == self._selected_day:
            self._selected_view = None

    # Reads

    def lookup(self, day: date) -> List[WorkoutLog]:
        if not self.ready:
            return []
        return list(self._buckets.get(day, ()))

    def select(self, day: date) -> List[WorkoutLog]:
        """Make ``day`` the selected day and return its logs."""
        if day != self._selected_day:
            self._selected_day = day
            self._selected_view = None
        return self.selected_view()

    def selected_view(self) -> List[WorkoutLog]:
        if self._selected_day is None:
            return []
        if self._selected_view is None:
            if not self.ready:
                return []
            self._selected_view = self.lookup(self._selected_day)
        return list(self._selected_view)

    @property
    def selected_day(self) -> Optional[date]:
        return self._selected_day

    def find(self, log_id: str) -> Optional[WorkoutLog]:
        for bucket in self._buckets.values():
            for log in bucket:
                if log.id == log_id:
                    return log
        return None

    def days(self) -> List[date]:
        return sorted(self._buckets)

    def buckets(self) -> Mapping[date, Tuple[WorkoutLog, ...]]:
        """Read-only snapshot of every bucket."""
        return {day: tuple(bucket) for day, bucket in self._buckets.items()}

    def range_logs(self, start: date, end: date) -> List[WorkoutLog]:
        """Logs from ``start`` to ``end`` inclusive, ordered by day."""
        result: List[WorkoutLog] = []
        for day in self.days():
            if start <= day <= end:
                result.extend(self._buckets[day])
        return result

    def month_summary(self, year: int, month: int) -> Dict[date, DaySummary]:
        summary: Dict[date, DaySummary] = {}
        for day, bucket in self._buckets.items():
            if day.year != year or day.month != month:
                continue
            totals = DaySummary()
            for log in bucket:
                totals = totals.add(log)
            summary[day] = totals
        return summary

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __iter__(self) -> Iterator[WorkoutLog]:
        for day in self.days():
            yield from self._buckets[day]

    # Mutations

    def insert(self, log: WorkoutLog) -> None:
        """Append ``log`` to its day. Inserting the same id twice stores it twice."""
        self._require_ready()
        day = day_key(log.date)
        self._buckets.setdefault(day, []).append(log)
        self._invalidate(day)

    def update(self, log_id: str, changes: Dict[str, Any], day: Optional[date] = None) -> WorkoutLog:
        """Replace the log in place with ``changes`` applied and return it."""
        self._require_ready()
        if "date" in changes:
            raise ImmutableFieldError("A workout's date cannot be changed after it is logged")

        if day is None:
            current = self.find(log_id)
            if current is None:
                raise LogNotFoundError(f"Workout log {log_id} not found")
            day = current.day

        bucket = self._buckets.get(day, [])
        for position, log in enumerate(bucket):
            if log.id == log_id:
                updated = replace(log, **changes)
                bucket[position] = updated
                self._invalidate(day)
                return updated
        raise LogNotFoundError(f"Workout log {log_id} not found on {day.isoformat()}")

    def delete(self, log_id: str, day: date) -> Optional[WorkoutLog]:
        """Remove ``log_id`` from ``day``; returns the removed log or None."""
        self._require_ready()
        bucket = self._buckets.get(day)
        if not bucket:
            return None
        for position, log in enumerate(bucket):
            if log.id == log_id:
                del bucket[position]
                if not bucket:
                    del self._buckets[day]
                self._invalidate(day)
                return log
        return None
