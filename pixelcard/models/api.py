"""Wire shapes for the HTTP API.

Field names are snake_case in Python and camelCase on the wire
(``userName``, ``imageUrl``, ``totalPages`` ...).  Both spellings are
accepted on input.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePixelCardRequest(_CamelModel):
    user_name: str
    image_data: str = Field(..., description="Base64 data URI (data:image/png;base64,...)")


class PixelCardResponse(_CamelModel):
    """Outward view of a pixel card; storage path and MIME type are omitted."""

    id: str
    user_name: str
    image_url: str
    created_at: str
    file_size: int


class PaginationInfo(_CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class GalleryResponse(_CamelModel):
    pixel_cards: list[PixelCardResponse] = []
    pagination: PaginationInfo


class PixelateRequest(_CamelModel):
    image_data: str


class PixelateResponse(_CamelModel):
    image_data: str


class GenerateRequest(_CamelModel):
    """Photo straight from the camera plus the owner name; stylized then saved."""

    user_name: str
    image_data: str


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Any = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
    timestamp: str
    path: str
