"""Read side of the pixel card store: gallery pages, lookups, existence checks."""
from __future__ import annotations

import logging
import math
from typing import Any, Protocol

from firebase_admin import exceptions as firebase_exceptions

from pixelcard.errors import DatabaseError, PixelCardValidationError
from pixelcard.models import GalleryResponse, PaginationInfo, PixelCard, PixelCardInsert, PixelCardResponse
from pixelcard.utils.transform import row_to_entity, row_to_response
from pixelcard.utils.validation import MAX_LIMIT, is_valid_uuid, normalize_pagination

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 6


class CardStore(Protocol):
    """Backend operations the repository and upload service rely on."""

    def count(self, user_name: str | None = None) -> int: ...

    def fetch_page(self, offset: int, limit: int, user_name: str | None = None) -> list[dict[str, Any]]: ...

    def fetch_recent(self, limit: int) -> list[dict[str, Any]]: ...

    def get(self, card_id: str) -> dict[str, Any] | None: ...

    def insert(self, payload: PixelCardInsert) -> dict[str, Any]: ...


class PixelCardRepository:
    """Query pixel cards; backend failures are wrapped in ``DatabaseError``."""

    def __init__(self, store: CardStore) -> None:
        self._store = store

    def list_pixel_cards(self, page: int | None = None, limit: int | None = None) -> GalleryResponse:
        return self._paginate(page, limit, user_name=None)

    def list_by_user_name(
        self, user_name: str, page: int | None = None, limit: int | None = None
    ) -> GalleryResponse:
        if not user_name or not user_name.strip():
            raise PixelCardValidationError("User name is required")
        return self._paginate(page, limit, user_name=user_name)

    def get_pixel_card(self, card_id: str) -> PixelCard | None:
        if not is_valid_uuid(card_id):
            raise PixelCardValidationError("Invalid pixel card ID format", details={"id": card_id})

        row = self._lookup(card_id, action="fetch pixel card")
        if row is None:
            return None
        try:
            return row_to_entity(row)
        except ValueError as exc:
            raise DatabaseError(f"Stored pixel card {card_id} is malformed: {exc}") from exc

    def exists(self, card_id: str) -> bool:
        if not is_valid_uuid(card_id):
            return False
        return self._lookup(card_id, action="check pixel card existence") is not None

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[PixelCardResponse]:
        safe_limit = min(max(1, limit), MAX_LIMIT)
        try:
            rows = self._store.fetch_recent(safe_limit)
        except firebase_exceptions.FirebaseError as exc:
            raise DatabaseError(f"Failed to fetch recent pixel cards: {exc}") from exc
        return self._to_responses(rows)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lookup(self, card_id: str, *, action: str) -> dict[str, Any] | None:
        try:
            return self._store.get(card_id)
        except firebase_exceptions.NotFoundError:
            return None
        except firebase_exceptions.FirebaseError as exc:
            raise DatabaseError(f"Failed to {action}: {exc}") from exc

    def _paginate(self, page: int | None, limit: int | None, *, user_name: str | None) -> GalleryResponse:
        pagination = normalize_pagination(page, limit)

        try:
            total = self._store.count(user_name=user_name)
        except firebase_exceptions.FirebaseError as exc:
            raise DatabaseError(f"Failed to get total count: {exc}") from exc

        if total == 0:
            return GalleryResponse(
                pixel_cards=[],
                pagination=PaginationInfo(page=pagination.page, limit=pagination.limit, total=0, total_pages=0),
            )

        try:
            rows = self._store.fetch_page(pagination.offset, pagination.limit, user_name=user_name)
        except firebase_exceptions.FirebaseError as exc:
            raise DatabaseError(f"Failed to fetch pixel cards: {exc}") from exc

        return GalleryResponse(
            pixel_cards=self._to_responses(rows),
            pagination=PaginationInfo(
                page=pagination.page,
                limit=pagination.limit,
                total=total,
                total_pages=math.ceil(total / pagination.limit),
            ),
        )

    @staticmethod
    def _to_responses(rows: list[dict[str, Any]]) -> list[PixelCardResponse]:
        try:
            return [row_to_response(row) for row in rows]
        except ValueError as exc:
            raise DatabaseError(f"Stored pixel card is malformed: {exc}") from exc
