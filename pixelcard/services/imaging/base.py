from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, ImageOps, UnidentifiedImageError

from pixelcard.errors import ImageGenerationError, PixelCardValidationError
from pixelcard.utils.transform import decode_image_data, encode_data_uri

logger = logging.getLogger(__name__)

PIXEL_ART_PROMPT = (
    "Convert the person in this photo into a consistent 16-bit pixel art character portrait. "
    "Frame it as a head-and-shoulders portrait with the person facing forward, even if the "
    "photo was taken at an angle. Remove the background and replace it with solid plain white. "
    "Use the same style for every image: detailed 16-bit pixel art in the manner of a character "
    "portrait from a classic 90s Japanese RPG, with clear outlines and a limited, intentional "
    "color palette. The result must contain only the pixelated character on the white background."
)

_FORMAT_TO_MIME = {"PNG": "image/png", "JPEG": "image/jpeg"}


class ImageStyleProvider(ABC):
    """Abstract interface for an image stylization service."""

    name: str = "abstract"

    async def pixelate(self, image_data_uri: str) -> str:
        """Stylize a captured photo and return the result as a data URI.

        The photo is normalised to an upright RGB PNG before it is sent.
        Raises ``PixelCardValidationError`` for unusable input,
        ``NetworkError`` for transport failures and ``ImageGenerationError``
        when the service returns no image.
        """

        photo = decode_image_data(image_data_uri)
        source_png = normalize_photo(photo.data)

        logger.debug("Requesting pixel art from %s (%s bytes)", self.name, len(source_png))
        result = await self._stylize(source_png)
        if not result:
            raise ImageGenerationError("No image was returned from the API.")

        output, mime_type = ensure_supported_format(result)
        logger.info("Received %s pixel art from %s (%s bytes)", mime_type, self.name, len(output))
        return encode_data_uri(output, mime_type)

    @abstractmethod
    async def _stylize(self, png_bytes: bytes) -> bytes:
        """Send one PNG to the service and return the raw output image bytes."""

    async def close(self) -> None:
        """Release network resources held by the provider."""


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------


def normalize_photo(file_bytes: bytes) -> bytes:
    """Apply EXIF orientation and re-encode as RGB PNG."""

    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            upright = ImageOps.exif_transpose(img).convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise PixelCardValidationError("Image data is not a readable image", step="decode") from exc

    buffer = io.BytesIO()
    upright.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def ensure_supported_format(file_bytes: bytes) -> tuple[bytes, str]:
    """Return (bytes, mime_type); anything but PNG/JPEG is converted to PNG."""

    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            mime_type = _FORMAT_TO_MIME.get(img.format or "")
            if mime_type:
                return file_bytes, mime_type
            buffer = io.BytesIO()
            img.convert("RGBA").save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageGenerationError("The API returned data that is not an image.") from exc
    return buffer.getvalue(), "image/png"
