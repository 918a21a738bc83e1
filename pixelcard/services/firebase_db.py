"""Firebase Realtime Database helper utilities.

Pixel card rows live under a single node, keyed by their identifier:

/pixel_cards/{id} -> {id, user_name, image_path, image_url,
                      created_at, updated_at, file_size, mime_type}

The database assigns neither identifiers nor timestamps, so :meth:`insert`
does: a random UUID and microsecond-precision UTC ISO strings, which sort
chronologically as plain strings.

Queries order on ``created_at`` and filter on ``user_name``; both should be
declared in the database rules for server-side indexing::

    {"rules": {"pixel_cards": {".indexOn": ["created_at", "user_name"]}}}

Backend failures surface as ``firebase_admin.exceptions.FirebaseError``
subclasses; a missing node is returned as ``None``.
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import firebase_admin
from firebase_admin import credentials, db

from pixelcard.config import Settings
from pixelcard.models import PixelCardInsert
from pixelcard.utils.transform import format_timestamp

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "pixelcard"


def initialize_firebase(settings: Settings) -> firebase_admin.App:
    """Create (or reuse) the named Firebase app for this service."""

    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    if settings.firebase_credentials_json:
        # Accept path or JSON string
        cred_obj: credentials.Base = (
            credentials.Certificate(settings.firebase_credentials_json)
            if settings.firebase_credentials_json.endswith(".json")
            else credentials.Certificate(json.loads(settings.firebase_credentials_json))
        )
    else:
        # Attempt default credentials (useful on Cloud Run with workload identity)
        cred_obj = credentials.ApplicationDefault()

    options: dict[str, Any] = {
        "databaseURL": settings.firebase_database_url,
        "storageBucket": settings.bucket_name,
    }
    if settings.project_id:
        options["projectId"] = settings.project_id

    app = firebase_admin.initialize_app(cred_obj, options, name=FIREBASE_APP_NAME)
    logger.info("Firebase Admin SDK initialised for %s.", settings.firebase_database_url)
    return app


def _sorted_newest_first(raw_items: dict[str, Any] | None) -> list[dict[str, Any]]:
    items = [item for item in (raw_items or {}).values() if isinstance(item, dict)]
    items.sort(key=lambda row: row.get("created_at", ""), reverse=True)
    return items


class FirebaseCardStore:
    """Wrapper around the pixel card node of the Realtime Database."""

    def __init__(self, app: firebase_admin.App | None = None, path: str = "pixel_cards") -> None:
        self._ref = db.reference(f"/{path.strip('/')}", app=app)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def count(self, user_name: str | None = None) -> int:
        if user_name is None:
            # Shallow read returns {key: True} without the row bodies
            keys = self._ref.get(shallow=True) or {}
            return len(keys)
        return len(self._ref.order_by_child("user_name").equal_to(user_name).get() or {})

    def fetch_page(self, offset: int, limit: int, user_name: str | None = None) -> list[dict[str, Any]]:
        """Rows ordered by ``created_at`` descending, sliced to one page."""

        if user_name is None:
            query = self._ref.order_by_child("created_at").limit_to_last(offset + limit)
        else:
            query = self._ref.order_by_child("user_name").equal_to(user_name)
        logger.debug("Fetching pixel cards offset=%s limit=%s user_name=%s", offset, limit, user_name)
        rows = _sorted_newest_first(query.get())
        return rows[offset : offset + limit]

    def fetch_recent(self, limit: int) -> list[dict[str, Any]]:
        query = self._ref.order_by_child("created_at").limit_to_last(limit)
        return _sorted_newest_first(query.get())

    def get(self, card_id: str) -> dict[str, Any] | None:
        data = self._ref.child(card_id).get()
        if data is None:
            return None
        return data

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------

    def insert(self, payload: PixelCardInsert) -> dict[str, Any]:
        now = format_timestamp(datetime.now(timezone.utc))
        row = {
            "id": str(uuid.uuid4()),
            **payload.model_dump(mode="json"),
            "created_at": now,
            "updated_at": now,
        }
        self._ref.child(row["id"]).set(row)
        logger.debug("Inserted pixel card id=%s", row["id"])
        return row
