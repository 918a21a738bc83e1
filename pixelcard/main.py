"""FastAPI application for the pixel card service.

Backend handles (metadata store, blob storage, AI provider) are built once
in the lifespan context and kept on ``app.state.services``.  Tests pass a
ready-made :class:`AppServices` to :func:`create_app` instead, in which case
the app neither builds nor closes them.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import firebase_admin
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from firebase_admin import storage as firebase_storage

from pixelcard import __version__
from pixelcard.config import Settings, get_settings
from pixelcard.errors import ErrorCode, PixelCardError, build_error_response
from pixelcard.handlers import pixel_cards, pixelate
from pixelcard.handlers.dependencies import AppServices
from pixelcard.services.firebase_db import FirebaseCardStore, initialize_firebase
from pixelcard.services.imaging import create_provider
from pixelcard.services.pixel_card_service import PixelCardService
from pixelcard.services.repository import PixelCardRepository
from pixelcard.services.storage import StorageService

logger = logging.getLogger(__name__)


def build_services(settings: Settings) -> AppServices:
    """Wire the production backends from settings."""

    firebase_app = initialize_firebase(settings)
    store = FirebaseCardStore(firebase_app, settings.pixel_cards_path)
    storage_service = StorageService(
        firebase_storage.bucket(settings.bucket_name, app=firebase_app),
        public=settings.public_images,
        cache_control=settings.image_cache_control,
        expires=timedelta(days=settings.signed_url_expiry_days),
    )

    async def _shutdown_firebase() -> None:
        firebase_admin.delete_app(firebase_app)

    return AppServices(
        repository=PixelCardRepository(store),
        pixel_card_service=PixelCardService(
            store, storage_service, cleanup_orphans=settings.cleanup_orphaned_uploads
        ),
        image_provider=create_provider(settings),
        on_close=_shutdown_firebase,
    )


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if services is not None:
            app.state.services = services
            yield
            return

        app.state.services = build_services(get_settings())
        logger.info("Pixel card backends initialised.")
        try:
            yield
        finally:
            await app.state.services.close()
            logger.info("Pixel card backends closed.")

    app = FastAPI(title="Pixel Card API", version=__version__, lifespan=lifespan)
    app.include_router(pixel_cards.router)
    app.include_router(pixelate.router)

    @app.exception_handler(PixelCardError)
    async def pixel_card_error_handler(request: Request, exc: PixelCardError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code.value, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response(request.url.path))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        content = build_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            jsonable_encoder(exc.errors()),
            request.url.path,
        )
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        content = build_error_response(ErrorCode.UNKNOWN_ERROR, "An unexpected error occurred", path=request.url.path)
        return JSONResponse(status_code=500, content=content)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    """Launch the uvicorn ASGI server."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("pixelcard.main:app", host=settings.server_host, port=settings.server_port, reload=False)


if __name__ == "__main__":
    main()
