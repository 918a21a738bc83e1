from __future__ import annotations

from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Outcome of a validator: never raised, always returned."""

    is_valid: bool
    errors: list[str] = []

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=100)
    offset: int = Field(..., ge=0)


class DecodedImage(BaseModel):
    data: bytes
    mime_type: str
    file_size: int
