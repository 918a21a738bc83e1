"""AI stylization endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from pixelcard.errors import PixelCardValidationError
from pixelcard.handlers.dependencies import get_image_provider, get_pixel_card_service
from pixelcard.models import CreatePixelCardRequest, GenerateRequest, PixelateRequest, PixelateResponse, PixelCardResponse
from pixelcard.services.imaging import ImageStyleProvider
from pixelcard.services.pixel_card_service import PixelCardService
from pixelcard.utils.validation import validate_image_data, validate_user_name

router = APIRouter(prefix="/api", tags=["pixelate"])
logger = logging.getLogger(__name__)


def _reject_invalid_photo(image_data: str) -> None:
    result = validate_image_data(image_data)
    if not result.is_valid:
        raise PixelCardValidationError(f"Invalid image: {', '.join(result.errors)}", details=result.errors)


@router.post("/pixelate", response_model=PixelateResponse)
async def pixelate(req: PixelateRequest, provider: ImageStyleProvider = Depends(get_image_provider)):
    _reject_invalid_photo(req.image_data)
    return PixelateResponse(image_data=await provider.pixelate(req.image_data))


@router.post("/pixel-cards/generate", response_model=PixelCardResponse, status_code=201)
async def generate_pixel_card(
    req: GenerateRequest,
    provider: ImageStyleProvider = Depends(get_image_provider),
    service: PixelCardService = Depends(get_pixel_card_service),
):
    """Stylize a captured photo and save the result in one call."""

    errors = validate_user_name(req.user_name).errors + validate_image_data(req.image_data).errors
    if errors:
        raise PixelCardValidationError(f"Validation failed: {', '.join(errors)}", details=errors, step="validate")

    pixelated = await provider.pixelate(req.image_data)
    request = CreatePixelCardRequest(user_name=req.user_name, image_data=pixelated)
    response = await run_in_threadpool(service.save_pixel_card, request)
    logger.info("Generated pixel card %s for %s", response.id, response.user_name)
    return response
