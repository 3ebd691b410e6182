"""Firestore REST client with retry and rate limiting."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from fitlog.core.constants import FIRESTORE_BASE

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class APIError(RuntimeError):
    """Raised for API failures after retries."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(APIError):
    """Raised when the addressed document does not exist."""


class FirestoreAPI:
    """Thin wrapper around the Firestore v1 REST API for one project database."""

    def __init__(
        self,
        token: str,
        project_id: str,
        database: str = "(default)",
        base_url: str = FIRESTORE_BASE,
        rate_limit_delay: float = 0.0,
        max_retries: int = 3,
        timeout_seconds: int = 30,
    ) -> None:
        self.token = token
        self.project_id = project_id
        self.database = database
        self.base_url = base_url.rstrip("/")
        self.rate_limit_delay = rate_limit_delay
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self._has_sent_request = False

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    @property
    def documents_root(self) -> str:
        """Resource name prefix shared by every document in the database."""
        return f"projects/{self.project_id}/databases/{self.database}/documents"

    def document_name(self, path: str) -> str:
        return f"{self.documents_root}/{path.strip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        retry: bool = True,
    ) -> Any:
        url = f"{self.base_url}/{self.documents_root}{path}"
        attempts = self.max_retries if retry else 1
        last_error: Optional[Exception] = None
        last_status: Optional[int] = None

        for attempt in range(1, attempts + 1):
            try:
                if self.rate_limit_delay > 0 and self._has_sent_request:
                    time.sleep(self.rate_limit_delay)

                self._has_sent_request = True
                logger.debug("%s %s (attempt %d/%d)", method, path, attempt, attempts)
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                    timeout=self.timeout_seconds,
                )
                last_status = response.status_code
                if response.status_code == 404:
                    raise NotFoundError(f"Not found: {method} {path}", status_code=404)
                if response.status_code in (401, 403):
                    raise APIError(
                        f"Permission denied for {method} {path}: {response.text}",
                        status_code=response.status_code,
                    )
                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(response.text, response=response)
                response.raise_for_status()

                if not response.text:
                    return {}
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                logger.warning("Request %s %s failed: %s", method, path, exc)
                if attempt >= attempts:
                    break
                time.sleep(min(2**attempt, 8))

        raise APIError(f"API request failed for {method} {path}: {last_error}", status_code=last_status)

    def get_document(self, path: str) -> Dict[str, Any]:
        return self._request("GET", f"/{path.strip('/')}")

    def create_document(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create a document with a store-assigned id. Never retried."""
        return self._request("POST", f"/{collection.strip('/')}", json_data={"fields": fields}, retry=False)

    def patch_document(
        self,
        path: str,
        fields: Dict[str, Any],
        mask: Optional[List[str]] = None,
        must_exist: bool = False,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if mask:
            params["updateMask.fieldPaths"] = list(mask)
        if must_exist:
            params["currentDocument.exists"] = "true"
        return self._request("PATCH", f"/{path.strip('/')}", params=params or None, json_data={"fields": fields})

    def delete_document(self, path: str) -> Any:
        return self._request("DELETE", f"/{path.strip('/')}")

    def run_query(self, structured_query: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Run a structured query and return the matching documents."""
        rows = self._request("POST", ":runQuery", json_data={"structuredQuery": structured_query})
        if not isinstance(rows, list):
            return []
        return [row["document"] for row in rows if isinstance(row, dict) and row.get("document")]

    def commit(self, writes: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Apply writes atomically. Never retried."""
        return self._request("POST", ":commit", json_data={"writes": writes}, retry=False)
