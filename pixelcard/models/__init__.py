from .api import (
    CreatePixelCardRequest,
    ErrorDetail,
    ErrorResponse,
    GalleryResponse,
    GenerateRequest,
    PaginationInfo,
    PixelateRequest,
    PixelateResponse,
    PixelCardResponse,
)
from .pixel_card import (
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE_BYTES,
    MimeType,
    PixelCard,
    PixelCardInsert,
    PixelCardRow,
)
from .results import DecodedImage, Pagination, ValidationResult

__all__ = [
    "ALLOWED_MIME_TYPES",
    "MAX_FILE_SIZE_BYTES",
    "CreatePixelCardRequest",
    "DecodedImage",
    "ErrorDetail",
    "ErrorResponse",
    "GalleryResponse",
    "GenerateRequest",
    "MimeType",
    "Pagination",
    "PaginationInfo",
    "PixelateRequest",
    "PixelateResponse",
    "PixelCard",
    "PixelCardInsert",
    "PixelCardResponse",
    "PixelCardRow",
    "ValidationResult",
]
