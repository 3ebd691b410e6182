"""User profile documents in the ``users`` collection."""

from __future__ import annotations

import logging
from typing import Optional

from fitlog.core.api import FirestoreAPI, NotFoundError
from fitlog.core.constants import USERS_COLLECTION
from fitlog.core.firestore import encode_fields
from fitlog.core.models import UserProfile

logger = logging.getLogger(__name__)


class ProfileService:
    """Create, read and update the profile stored under each user id."""

    def __init__(self, api: FirestoreAPI, collection: str = USERS_COLLECTION) -> None:
        self.api = api
        self.collection = collection

    def _path(self, uid: str) -> str:
        return f"{self.collection}/{uid}"

    def create(self, uid: str, name: str, email: str) -> None:
        """Write a fresh profile; ``createdAt`` is stamped by the server."""
        self.api.commit(
            [
                {
                    "update": {
                        "name": self.api.document_name(self._path(uid)),
                        "fields": encode_fields({"name": name, "email": email, "photoUrl": "", "bio": ""}),
                    },
                    "updateTransforms": [
                        {"fieldPath": "createdAt", "setToServerValue": "REQUEST_TIME"},
                    ],
                }
            ]
        )
        logger.info("Created profile for %s", uid)

    def get(self, uid: str) -> Optional[UserProfile]:
        try:
            document = self.api.get_document(self._path(uid))
        except NotFoundError:
            return None
        return UserProfile.from_document(uid, document)

    def update(self, uid: str, name: str, bio: str) -> None:
        self.api.patch_document(
            self._path(uid),
            encode_fields({"name": name, "bio": bio}),
            mask=["bio", "name"],
            must_exist=True,
        )
        logger.info("Updated profile for %s", uid)
