from __future__ import annotations

import base64
import binascii
import logging

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from pixelcard.config import Settings
from pixelcard.errors import ImageGenerationError, NetworkError

from .base import PIXEL_ART_PROMPT, ImageStyleProvider

logger = logging.getLogger(__name__)


class OpenAIImageProvider(ImageStyleProvider):
    """Stylize photos through the OpenAI image edit endpoint."""

    name = "openai"

    def __init__(self, settings: Settings, *, client: AsyncOpenAI | None = None) -> None:
        self._model = settings.openai_image_model
        self._size = settings.openai_image_size
        self._timeout = settings.image_request_timeout
        self._client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.image_request_timeout,
            max_retries=0,
        )

    async def _stylize(self, png_bytes: bytes) -> bytes:
        try:
            response = await self._client.images.edit(
                model=self._model,
                image=("portrait.png", png_bytes, "image/png"),
                prompt=PIXEL_ART_PROMPT,
                size=self._size,
                n=1,
            )
        except APIConnectionError as exc:
            raise NetworkError(f"Could not reach OpenAI: {exc}") from exc
        except APIStatusError as exc:
            raise ImageGenerationError(f"OpenAI image edit failed ({exc.status_code}): {exc.message}") from exc

        item = response.data[0] if response.data else None
        if item is None:
            raise ImageGenerationError("No image was returned from the API.")

        if item.b64_json:
            try:
                return base64.b64decode(item.b64_json)
            except (binascii.Error, ValueError) as exc:
                raise ImageGenerationError("The API returned malformed base64 image data.") from exc
        if item.url:
            return await self._download(item.url)
        raise ImageGenerationError("No image was returned from the API.")

    async def _download(self, url: str) -> bytes:
        logger.debug("GET generated image %s", url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to download generated image: {exc}") from exc
        if resp.status_code >= 400:
            raise ImageGenerationError(f"Failed to download generated image ({resp.status_code})")
        return resp.content

    async def close(self) -> None:
        await self._client.close()
