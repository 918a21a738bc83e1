"""Write side: persist a stylized portrait and its metadata.

The sequence is validate -> decode -> name -> upload -> insert -> map; each
step gates the next.  Every failure carries ``step`` so callers can tell
"your input was invalid" apart from "upload succeeded but the metadata
write failed".

The blob upload and the metadata insert are not transactional.  When the
insert fails the freshly uploaded blob is deleted again (best effort,
controlled by ``cleanup_orphans``); if that delete also fails the orphan is
logged and the original ``DatabaseError`` is still raised.
"""
from __future__ import annotations

import logging
from typing import Any

from firebase_admin import exceptions as firebase_exceptions

from pixelcard.errors import DatabaseError, PixelCardValidationError, StorageError
from pixelcard.models import CreatePixelCardRequest, PixelCardResponse
from pixelcard.services.repository import CardStore
from pixelcard.services.storage import StorageService
from pixelcard.utils.transform import (
    build_insert,
    decode_image_data,
    entity_to_response,
    generate_image_path,
    generate_unique_filename,
    row_to_entity,
)
from pixelcard.utils.validation import parse_create_request, sanitize_user_name

logger = logging.getLogger(__name__)


class PixelCardService:
    def __init__(self, store: CardStore, storage: StorageService, *, cleanup_orphans: bool = True) -> None:
        self._store = store
        self._storage = storage
        self._cleanup_orphans = cleanup_orphans

    def save_pixel_card(self, request: CreatePixelCardRequest | dict[str, Any]) -> PixelCardResponse:
        """Validate, upload and record a pixel card, returning its API view."""

        # 1. Validate
        parsed = parse_create_request(request)
        if not isinstance(parsed, CreatePixelCardRequest):
            raise PixelCardValidationError(
                f"Validation failed: {', '.join(parsed.errors)}",
                details=parsed.errors,
                step="validate",
            )

        # 2. Decode
        image = decode_image_data(parsed.image_data)

        # 3. Name
        image_path = generate_image_path(generate_unique_filename(image.mime_type))

        # 4. Upload
        _, image_url = self._storage.upload_image(image.data, image_path, content_type=image.mime_type)
        logger.info("Uploaded pixel card image %s (%s bytes)", image_path, image.file_size)

        # 5. Insert
        payload = build_insert(
            user_name=sanitize_user_name(parsed.user_name),
            image_path=image_path,
            image_url=image_url,
            file_size=image.file_size,
            mime_type=image.mime_type,
        )
        try:
            row = self._store.insert(payload)
        except firebase_exceptions.FirebaseError as exc:
            self._discard_orphan(image_path)
            raise DatabaseError(f"Database insert failed: {exc}", step="insert") from exc

        if not row:
            self._discard_orphan(image_path)
            raise DatabaseError("Insert succeeded but no data returned", step="insert")

        # 6. Map
        try:
            card = row_to_entity(row)
        except ValueError as exc:
            raise DatabaseError(f"Inserted row is malformed: {exc}", step="insert") from exc

        logger.info("Saved pixel card id=%s for %s", card.id, card.user_name)
        return entity_to_response(card)

    def _discard_orphan(self, image_path: str) -> None:
        if not self._cleanup_orphans:
            logger.warning("Metadata insert failed; blob %s left in storage", image_path)
            return
        try:
            self._storage.delete_image(image_path)
        except StorageError:
            logger.exception("Metadata insert failed and orphaned blob %s could not be deleted", image_path)
