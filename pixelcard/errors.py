"""Error taxonomy shared by every layer of the pixel card service.

Each failure kind is a tagged subclass of :class:`PixelCardError` so callers
can branch on the exception type (or on ``exc.code``) instead of parsing
messages.  The HTTP layer renders any of them with
:func:`build_error_response`:

    {"error": {"code", "message", "details"}, "timestamp", "path"}
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PixelCardError(Exception):
    """Base class for all expected failures.

    ``step`` names the write-path step that failed (``validate``, ``decode``,
    ``upload``, ``insert``) when the error comes out of the upload sequence.
    """

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    status_code: int = 500

    def __init__(self, message: str, *, details: Any = None, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.step = step

    def to_response(self, path: str = "") -> dict[str, Any]:
        return build_error_response(self.code, self.message, self.details, path)


class PixelCardValidationError(PixelCardError):
    """Bad input shape or bounds; the caller can fix it and retry."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class NotFoundError(PixelCardError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class StorageError(PixelCardError):
    """Blob upload, URL resolution or deletion failed."""

    code = ErrorCode.STORAGE_ERROR
    status_code = 500


class DatabaseError(PixelCardError):
    """Metadata read or write failed."""

    code = ErrorCode.DATABASE_ERROR
    status_code = 500


class NetworkError(PixelCardError):
    """Transport-level failure talking to an external dependency."""

    code = ErrorCode.NETWORK_ERROR
    status_code = 502


class ImageGenerationError(PixelCardError):
    """The AI service answered but produced no usable image."""

    code = ErrorCode.UNKNOWN_ERROR
    status_code = 502


class UnknownError(PixelCardError):
    code = ErrorCode.UNKNOWN_ERROR
    status_code = 500


def build_error_response(
    code: ErrorCode | str,
    message: str,
    details: Any = None,
    path: str = "",
) -> dict[str, Any]:
    """Return the JSON-ready error envelope."""

    error: dict[str, Any] = {
        "code": ErrorCode(code).value,
        "message": message,
    }
    if details is not None:
        error["details"] = details
    return {
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path or "",
    }
