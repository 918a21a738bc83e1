from __future__ import annotations

import logging

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from pixelcard.config import Settings
from pixelcard.errors import ImageGenerationError, NetworkError

from .base import PIXEL_ART_PROMPT, ImageStyleProvider

logger = logging.getLogger(__name__)


class GeminiImageProvider(ImageStyleProvider):
    """Stylize photos with a Gemini image model (image response modality)."""

    name = "gemini"

    def __init__(self, settings: Settings, *, client: genai.Client | None = None) -> None:
        self._model = settings.gemini_image_model
        self._client = client or genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=int(settings.image_request_timeout * 1000)),
        )

    async def _stylize(self, png_bytes: bytes) -> bytes:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=[
                    types.Part.from_bytes(data=png_bytes, mime_type="image/png"),
                    PIXEL_ART_PROMPT,
                ],
                config=types.GenerateContentConfig(response_modalities=["IMAGE"]),
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Could not reach Gemini: {exc}") from exc
        except genai_errors.APIError as exc:
            raise ImageGenerationError(f"Gemini image generation failed ({exc.code}): {exc.message}") from exc

        for candidate in response.candidates or []:
            content = candidate.content
            for part in (content.parts if content else None) or []:
                if part.inline_data and part.inline_data.data:
                    return part.inline_data.data

        logger.warning("Gemini response carried no inline image (model=%s)", self._model)
        raise ImageGenerationError("No image was returned from the API.")
