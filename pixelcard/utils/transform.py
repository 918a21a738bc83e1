"""Mapping between the three shapes of a pixel card, plus data-URI helpers.

Shapes:

* persisted row  -- ``PixelCardRow`` / plain dict, snake_case, string timestamps
* entity         -- ``PixelCard``, ``datetime`` timestamps
* API response   -- ``PixelCardResponse``, camelCase, no storage path or MIME type

Images travel as data URIs: ``data:image/png;base64,<payload>``.  Storage
objects are laid out as ``{YYYY}/{MM}/{uuid}.{ext}``.
"""
from __future__ import annotations

import base64
import binascii
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import ValidationError

from pixelcard.errors import PixelCardValidationError
from pixelcard.models import (
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE_BYTES,
    DecodedImage,
    PixelCard,
    PixelCardInsert,
    PixelCardResponse,
    PixelCardRow,
)

_DATA_URI_MIME = re.compile(r"^data:([^;]+);base64,")


# ---------------------------------------------------------------------------
# Row <-> entity <-> response
# ---------------------------------------------------------------------------


def _validate_row(row: Mapping[str, Any] | PixelCardRow) -> PixelCardRow:
    if isinstance(row, PixelCardRow):
        return row
    try:
        return PixelCardRow.model_validate(row)
    except ValidationError as exc:
        raise ValueError(f"Invalid pixel card row data: {exc.error_count()} problem(s)") from exc


def row_to_entity(row: Mapping[str, Any] | PixelCardRow) -> PixelCard:
    """Convert a persisted row to a ``PixelCard``.

    Raises ``ValueError`` when a required field is missing, has the wrong type
    or the MIME type is outside the allowed set.
    """

    valid = _validate_row(row)
    try:
        return PixelCard(
            id=valid.id,
            user_name=valid.user_name,
            image_path=valid.image_path,
            image_url=valid.image_url,
            created_at=valid.created_at,
            updated_at=valid.updated_at,
            file_size=valid.file_size,
            mime_type=valid.mime_type,
        )
    except ValidationError as exc:
        raise ValueError(f"Invalid pixel card row data: {exc.error_count()} problem(s)") from exc


def entity_to_row(card: PixelCard) -> dict[str, Any]:
    return {
        "id": card.id,
        "user_name": card.user_name,
        "image_path": card.image_path,
        "image_url": card.image_url,
        "created_at": format_timestamp(card.created_at),
        "updated_at": format_timestamp(card.updated_at),
        "file_size": card.file_size,
        "mime_type": card.mime_type,
    }


def entity_to_response(card: PixelCard) -> PixelCardResponse:
    return PixelCardResponse(
        id=card.id,
        user_name=card.user_name,
        image_url=card.image_url,
        created_at=format_timestamp(card.created_at),
        file_size=card.file_size,
    )


def row_to_response(row: Mapping[str, Any] | PixelCardRow) -> PixelCardResponse:
    """Skip the entity step; the stored ``created_at`` string is passed through."""

    valid = _validate_row(row)
    return PixelCardResponse(
        id=valid.id,
        user_name=valid.user_name,
        image_url=valid.image_url,
        created_at=valid.created_at,
        file_size=valid.file_size,
    )


def build_insert(
    user_name: str,
    image_path: str,
    image_url: str,
    file_size: int,
    mime_type: str,
) -> PixelCardInsert:
    return PixelCardInsert(
        user_name=user_name.strip(),
        image_path=image_path,
        image_url=image_url,
        file_size=file_size,
        mime_type=mime_type,
    )


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with fixed microsecond precision so strings sort chronologically."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


# ---------------------------------------------------------------------------
# Data URI helpers
# ---------------------------------------------------------------------------


def split_data_uri(data_uri: str) -> str:
    """Return the base64 payload of a data URI (the input itself if it has no prefix)."""

    if "," in data_uri:
        return data_uri.split(",", 1)[1]
    return data_uri


def calculate_base64_file_size(base64_data: str) -> int:
    """Decoded byte length of a base64 string without decoding it.

    ``floor(len * 3 / 4) - padding`` where padding is the number of ``=``.
    A data URI prefix, if present, is ignored.
    """

    content = split_data_uri(base64_data)
    padding = content.count("=")
    return (len(content) * 3) // 4 - padding


def extract_mime_type(data_uri: str) -> str | None:
    match = _DATA_URI_MIME.match(data_uri or "")
    return match.group(1) if match else None


def extract_and_validate_mime_type(data_uri: str) -> str:
    mime_type = extract_mime_type(data_uri)
    if mime_type is None:
        raise PixelCardValidationError("Invalid data URI format", step="decode")
    if mime_type not in ALLOWED_MIME_TYPES:
        raise PixelCardValidationError(
            f"Unsupported MIME type: {mime_type}. Only PNG and JPEG are allowed.",
            details={"allowed": list(ALLOWED_MIME_TYPES)},
            step="decode",
        )
    return mime_type


def decode_image_data(data_uri: str, *, max_bytes: int = MAX_FILE_SIZE_BYTES) -> DecodedImage:
    """Turn a data URI into raw bytes, rejecting empty or oversized payloads."""

    mime_type = extract_and_validate_mime_type(data_uri)
    payload = split_data_uri(data_uri)
    if not payload:
        raise PixelCardValidationError("No image data found", step="decode")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PixelCardValidationError("Invalid base64 encoding", step="decode") from exc

    if not data:
        raise PixelCardValidationError("Image data is empty", step="decode")
    if len(data) > max_bytes:
        raise PixelCardValidationError(
            f"File size exceeds maximum allowed size of {max_bytes // (1024 * 1024)}MB",
            details={"file_size": len(data), "max_bytes": max_bytes},
            step="decode",
        )
    return DecodedImage(data=data, mime_type=mime_type, file_size=len(data))


def encode_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


# ---------------------------------------------------------------------------
# Storage naming
# ---------------------------------------------------------------------------


def mime_type_to_extension(mime_type: str) -> str:
    return "png" if mime_type == "image/png" else "jpg"


def generate_unique_filename(mime_type: str) -> str:
    return f"{uuid.uuid4()}.{mime_type_to_extension(mime_type)}"


def generate_image_path(filename: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{now.year}/{now.month:02d}/{filename}"
