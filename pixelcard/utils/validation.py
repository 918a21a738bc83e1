"""Input validators for pixel card data.

Validators return a :class:`~pixelcard.models.ValidationResult` and never
raise for bad input; every applicable violation is collected so a caller can
show the full explanation at once.  Converting a failed result into an
exception is left to the service boundary.
"""
from __future__ import annotations

import math
import re
from typing import Any, Mapping

from pixelcard.models import (
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE_BYTES,
    CreatePixelCardRequest,
    Pagination,
    ValidationResult,
)
from pixelcard.utils.transform import calculate_base64_file_size, split_data_uri

USER_NAME_MIN_LENGTH = 1
USER_NAME_MAX_LENGTH = 50
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_MAX_MB = MAX_FILE_SIZE_BYTES // (1024 * 1024)

_USER_NAME_PATTERN = re.compile(r"[a-zA-Z0-9 \-_'.]+")
_IMAGE_PREFIX_PATTERN = re.compile(r"^data:image/(png|jpeg);base64,")
_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]*={0,2}")
_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_WHITESPACE_RUN = re.compile(r"\s+")


def validate_user_name(user_name: Any) -> ValidationResult:
    """Names are trimmed, then must be 1-50 chars of letters, digits, spaces, ``-_'.``.

    Length is counted after trimming, so surrounding whitespace never makes a
    name too long. Tabs and newlines are not allowed inside a name.
    """

    if not user_name or not isinstance(user_name, str):
        return ValidationResult.from_errors(["User name is required"])

    errors: list[str] = []
    trimmed = user_name.strip()

    if len(trimmed) < USER_NAME_MIN_LENGTH:
        errors.append("User name cannot be empty")
    if len(trimmed) > USER_NAME_MAX_LENGTH:
        errors.append(f"User name cannot exceed {USER_NAME_MAX_LENGTH} characters")
    if not _USER_NAME_PATTERN.fullmatch(trimmed):
        errors.append(
            "User name contains invalid characters. Only letters, numbers, spaces, "
            "hyphens, underscores, apostrophes, and periods are allowed"
        )

    return ValidationResult.from_errors(errors)


def validate_image_data(image_data: Any) -> ValidationResult:
    if not image_data or not isinstance(image_data, str):
        return ValidationResult.from_errors(["Image data is required"])

    if not _IMAGE_PREFIX_PATTERN.match(image_data):
        return ValidationResult.from_errors(["Image data must be a valid PNG or JPEG in base64 format"])

    payload = split_data_uri(image_data)
    if not payload:
        return ValidationResult.from_errors(["Invalid base64 image format"])

    if not _BASE64_PATTERN.fullmatch(payload):
        return ValidationResult.from_errors(["Invalid base64 encoding"])

    errors: list[str] = []
    if calculate_base64_file_size(payload) > MAX_FILE_SIZE_BYTES:
        errors.append(f"Image size exceeds maximum limit of {_MAX_MB}MB")
    return ValidationResult.from_errors(errors)


def validate_mime_type(mime_type: Any) -> ValidationResult:
    if not mime_type or not isinstance(mime_type, str):
        return ValidationResult.from_errors(["MIME type is required"])
    if mime_type not in ALLOWED_MIME_TYPES:
        return ValidationResult.from_errors(
            [f"Invalid MIME type. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"]
        )
    return ValidationResult.from_errors([])


def validate_file_size(file_size: Any) -> ValidationResult:
    if isinstance(file_size, bool) or not isinstance(file_size, int) or file_size <= 0:
        return ValidationResult.from_errors(["File size must be a positive number"])
    if file_size > MAX_FILE_SIZE_BYTES:
        return ValidationResult.from_errors([f"File size exceeds maximum limit of {_MAX_MB}MB"])
    return ValidationResult.from_errors([])


def _request_fields(request: Any) -> tuple[Any, Any] | None:
    if isinstance(request, CreatePixelCardRequest):
        return request.user_name, request.image_data
    if isinstance(request, Mapping):
        user_name = request.get("userName", request.get("user_name"))
        image_data = request.get("imageData", request.get("image_data"))
        return user_name, image_data
    return None


def validate_create_request(request: Any) -> ValidationResult:
    """Validate name and image independently and merge their violations."""

    fields = _request_fields(request)
    if fields is None:
        return ValidationResult.from_errors(["Request data is required"])

    user_name, image_data = fields
    errors = validate_user_name(user_name).errors + validate_image_data(image_data).errors
    return ValidationResult.from_errors(errors)


def parse_create_request(request: Any) -> CreatePixelCardRequest | ValidationResult:
    """Return a typed request when valid, otherwise the failing result."""

    result = validate_create_request(request)
    if not result.is_valid:
        return result
    user_name, image_data = _request_fields(request)  # type: ignore[misc]
    return CreatePixelCardRequest(user_name=user_name, image_data=image_data)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_pagination_params(page: Any = None, limit: Any = None) -> ValidationResult:
    errors: list[str] = []
    if page is not None and (not _is_int(page) or page < 1):
        errors.append("Page must be a positive number starting from 1")
    if limit is not None and (not _is_int(limit) or limit < 1 or limit > MAX_LIMIT):
        errors.append(f"Limit must be a number between 1 and {MAX_LIMIT}")
    return ValidationResult.from_errors(errors)


def _finite_or(value: Any, default: int) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or not value:
        return default
    return value


def normalize_pagination(page: float | None = None, limit: float | None = None) -> Pagination:
    """Clamp page/limit into range; missing, zero or non-finite values take the defaults."""

    safe_page = max(1, math.floor(_finite_or(page, DEFAULT_PAGE)))
    safe_limit = min(MAX_LIMIT, max(1, math.floor(_finite_or(limit, DEFAULT_LIMIT))))
    return Pagination(page=safe_page, limit=safe_limit, offset=(safe_page - 1) * safe_limit)


def sanitize_user_name(user_name: Any) -> str:
    if not user_name or not isinstance(user_name, str):
        return ""
    return _WHITESPACE_RUN.sub(" ", user_name.strip())[:USER_NAME_MAX_LENGTH]


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and _UUID_PATTERN.fullmatch(value) is not None
