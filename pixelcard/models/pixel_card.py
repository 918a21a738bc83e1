from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MimeType = Literal["image/png", "image/jpeg"]

ALLOWED_MIME_TYPES: tuple[str, ...] = ("image/png", "image/jpeg")
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MiB


class PixelCard(BaseModel):
    """One generated pixel-art portrait plus its metadata."""

    id: str
    user_name: str = Field(..., min_length=1, max_length=50)
    image_path: str
    image_url: str
    created_at: datetime
    updated_at: datetime
    file_size: int = Field(..., gt=0, le=MAX_FILE_SIZE_BYTES)
    mime_type: MimeType


class PixelCardRow(BaseModel):
    """Persisted row as stored under the pixel card database node."""

    model_config = ConfigDict(strict=True, extra="ignore")

    id: str
    user_name: str
    image_path: str
    image_url: str
    created_at: str
    updated_at: str
    file_size: int
    mime_type: MimeType


class PixelCardInsert(BaseModel):
    """Fields supplied by the write path; id and timestamps come from the store."""

    user_name: str
    image_path: str
    image_url: str
    file_size: int = Field(..., gt=0)
    mime_type: MimeType
