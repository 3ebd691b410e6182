"""Workout log persistence in the Firestore ``workout_logs`` collection."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fitlog.core.api import FirestoreAPI
from fitlog.core.constants import WORKOUT_LOGS_COLLECTION
from fitlog.core.firestore import encode_fields, encode_value
from fitlog.core.models import LogDraft, WorkoutLog

logger = logging.getLogger(__name__)


class LogStore:
    """Create, read, update and delete workout logs owned by a user."""

    def __init__(self, api: FirestoreAPI, collection: str = WORKOUT_LOGS_COLLECTION) -> None:
        self.api = api
        self.collection = collection

    def _path(self, log_id: str) -> str:
        return f"{self.collection}/{log_id}"

    def fetch_all(self, user_id: str) -> List[WorkoutLog]:
        """Every log owned by ``user_id``, in whatever order the backend returns."""
        documents = self.api.run_query(
            {
                "from": [{"collectionId": self.collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "userId"},
                        "op": "EQUAL",
                        "value": encode_value(user_id),
                    }
                },
            }
        )
        logs = [WorkoutLog.from_document(document) for document in documents]
        logger.debug("Fetched %d workout logs for %s", len(logs), user_id)
        return logs

    def create(self, user_id: str, draft: LogDraft) -> WorkoutLog:
        """Store ``draft`` and return it with the id the backend assigned."""
        fields: Dict[str, Any] = {"userId": user_id, **draft.to_fields()}
        document = self.api.create_document(self.collection, encode_fields(fields))
        created = WorkoutLog.from_document(document)
        logger.info("Created workout log %s on %s", created.id, created.day.isoformat())
        return created

    def update(self, log_id: str, changes: Dict[str, Any]) -> None:
        """Patch only the given fields; the log must already exist."""
        self.api.patch_document(
            self._path(log_id),
            encode_fields(changes),
            mask=sorted(changes),
            must_exist=True,
        )
        logger.info("Updated workout log %s (%s)", log_id, ", ".join(sorted(changes)))

    def delete(self, log_id: str) -> None:
        self.api.delete_document(self._path(log_id))
        logger.info("Deleted workout log %s", log_id)
