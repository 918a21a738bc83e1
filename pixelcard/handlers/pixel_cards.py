"""Gallery and persistence endpoints."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response

from pixelcard.errors import NotFoundError
from pixelcard.handlers.dependencies import get_pixel_card_service, get_repository
from pixelcard.models import GalleryResponse, PixelCardResponse
from pixelcard.services.pixel_card_service import PixelCardService
from pixelcard.services.repository import DEFAULT_RECENT_LIMIT, PixelCardRepository
from pixelcard.utils.transform import entity_to_response

router = APIRouter(prefix="/api", tags=["pixel-cards"])
logger = logging.getLogger(__name__)


@router.get("/pixel-cards", response_model=GalleryResponse)
def list_pixel_cards(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    repository: PixelCardRepository = Depends(get_repository),
):
    return repository.list_pixel_cards(page, limit)


@router.get("/pixel-cards/recent", response_model=list[PixelCardResponse])
def recent_pixel_cards(
    limit: int = Query(DEFAULT_RECENT_LIMIT),
    repository: PixelCardRepository = Depends(get_repository),
):
    return repository.recent(limit)


@router.head("/pixel-cards/{card_id}")
def pixel_card_exists(card_id: str, repository: PixelCardRepository = Depends(get_repository)):
    return Response(status_code=200 if repository.exists(card_id) else 404)


@router.get("/pixel-cards/{card_id}", response_model=PixelCardResponse)
def get_pixel_card(card_id: str, repository: PixelCardRepository = Depends(get_repository)):
    card = repository.get_pixel_card(card_id)
    if card is None:
        raise NotFoundError(f"Pixel card {card_id} not found")
    return entity_to_response(card)


@router.get("/users/{user_name}/pixel-cards", response_model=GalleryResponse)
def list_user_pixel_cards(
    user_name: str,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    repository: PixelCardRepository = Depends(get_repository),
):
    return repository.list_by_user_name(user_name, page, limit)


@router.post("/pixel-cards", response_model=PixelCardResponse, status_code=201)
def create_pixel_card(
    payload: Any = Body(...),
    service: PixelCardService = Depends(get_pixel_card_service),
):
    response = service.save_pixel_card(payload)
    logger.info("Created pixel card %s", response.id)
    return response
