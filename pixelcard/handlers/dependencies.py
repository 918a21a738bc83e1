"""Request-scoped access to the backend handles stored on ``app.state``."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from fastapi import Request

from pixelcard.services.imaging import ImageStyleProvider
from pixelcard.services.pixel_card_service import PixelCardService
from pixelcard.services.repository import PixelCardRepository


@dataclass
class AppServices:
    repository: PixelCardRepository
    pixel_card_service: PixelCardService
    image_provider: ImageStyleProvider
    on_close: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False)

    async def close(self) -> None:
        await self.image_provider.close()
        if self.on_close is not None:
            await self.on_close()


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_repository(request: Request) -> PixelCardRepository:
    return get_services(request).repository


def get_pixel_card_service(request: Request) -> PixelCardService:
    return get_services(request).pixel_card_service


def get_image_provider(request: Request) -> ImageStyleProvider:
    return get_services(request).image_provider
