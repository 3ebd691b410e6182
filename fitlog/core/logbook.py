"""One user's workout logs: remote store plus the local day index."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, Sequence, Set, Tuple

from fitlog.core.api import APIError, NotFoundError
from fitlog.core.log_index import ImmutableFieldError, LogIndex, LogNotFoundError
from fitlog.core.models import LogDraft, WorkoutLog
from fitlog.core.validation import validate_changes, validate_draft

logger = logging.getLogger(__name__)


class LogStoreError(RuntimeError):
    """Raised when the backend rejects or fails a log read or write."""


class DuplicateLogError(RuntimeError):
    """Raised when an identical log already exists on the same day."""

    def __init__(self, existing: WorkoutLog) -> None:
        super().__init__(
            f"An identical workout '{existing.name}' is already logged on "
            f"{existing.day.isoformat()} ({existing.id})"
        )
        self.existing = existing


class DuplicateSubmissionError(RuntimeError):
    """Raised when the same draft is submitted while it is still being saved."""


class Store(Protocol):
    def fetch_all(self, user_id: str) -> Sequence[WorkoutLog]: ...

    def create(self, user_id: str, draft: LogDraft) -> WorkoutLog: ...

    def update(self, log_id: str, changes: Dict[str, Any]) -> None: ...

    def delete(self, log_id: str) -> None: ...


def load_order(log: WorkoutLog) -> Tuple[datetime, float, str]:
    """Deterministic order for fetched logs: time logged, then creation, then id."""
    created = log.created_at.timestamp() if log.created_at else 0.0
    return log.date, created, log.id


class LogBook:
    """Owns the index for one user and applies each change after the store accepts it."""

    def __init__(self, store: Store, user_id: str, index: Optional[LogIndex] = None) -> None:
        self.store = store
        self.user_id = user_id
        self.index = index if index is not None else LogIndex()
        self._in_flight: Set[LogDraft] = set()

    def load(self) -> LogIndex:
        """Full reload; any local changes since the last load are discarded.

        A failed fetch puts back what was indexed before, so a loaded book
        stays usable.
        """
        previous = list(self.index) if self.index.ready else None
        self.index.begin_load()
        try:
            logs = self.store.fetch_all(self.user_id)
        except APIError as exc:
            logger.error("Loading workout logs failed: %s", exc)
            if previous is not None:
                self.index.load(previous)
            raise LogStoreError("Could not load workout logs.") from exc
        self.index.load(sorted(logs, key=load_order))
        logger.debug("Indexed %d logs across %d days", len(self.index), len(self.index.days()))
        return self.index

    def get(self, log_id: str) -> WorkoutLog:
        log = self.index.find(log_id)
        if log is None:
            raise LogNotFoundError(f"Workout log {log_id} not found")
        return log

    def find_identical(self, draft: LogDraft) -> Optional[WorkoutLog]:
        for log in self.index.lookup(draft.day):
            if log.same_entry(draft):
                return log
        return None

    def add(self, draft: LogDraft, force: bool = False) -> WorkoutLog:
        draft = validate_draft(draft)
        if draft in self._in_flight:
            raise DuplicateSubmissionError("This workout is already being saved")
        if not force:
            existing = self.find_identical(draft)
            if existing is not None:
                raise DuplicateLogError(existing)

        self._in_flight.add(draft)
        try:
            created = self.store.create(self.user_id, draft)
        except APIError as exc:
            logger.error("Saving workout log failed: %s", exc)
            raise LogStoreError("Could not save the workout log.") from exc
        finally:
            self._in_flight.discard(draft)

        self.index.insert(created)
        return created

    def edit(self, log_id: str, changes: Dict[str, Any]) -> WorkoutLog:
        changes = validate_changes(changes)
        if "date" in changes:
            raise ImmutableFieldError("A workout's date cannot be changed after it is logged")
        current = self.get(log_id)

        try:
            self.store.update(log_id, changes)
        except NotFoundError as exc:
            logger.warning("Workout log %s vanished from the store", log_id)
            raise LogNotFoundError(f"Workout log {log_id} not found") from exc
        except APIError as exc:
            logger.error("Updating workout log %s failed: %s", log_id, exc)
            raise LogStoreError("Could not update the workout log.") from exc

        return self.index.update(log_id, changes, day=current.day)

    def remove(self, log_id: str) -> WorkoutLog:
        current = self.get(log_id)
        try:
            self.store.delete(log_id)
        except APIError as exc:
            logger.error("Deleting workout log %s failed: %s", log_id, exc)
            raise LogStoreError("Could not delete the workout log.") from exc

        self.index.delete(log_id, current.day)
        return current
