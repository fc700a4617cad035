"""
Schedule endpoints with Redis caching on the list operation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.db.session import get_db
from ticket_manager.schemas.game import GameResponse, PromotionResponse
from ticket_manager.schemas.ticket import TicketDetail
from ticket_manager.services import inventory_service, schedule_service
from ticket_manager.services.cache_service import get_cached_games, set_cached_games
from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/games", tags=["Games"])


@router.get("", response_model=list[GameResponse])
async def list_games_endpoint(
    month: Optional[int] = Query(None, ge=1, le=12),
    home_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    List the schedule, optionally one month and/or home games only.
    Cached in Redis until the next schedule ingestion.
    """
    cached = await get_cached_games(month, home_only)
    if cached is not None:
        return cached

    games = await schedule_service.list_games(db, month=month, home_only=home_only)
    response_data = [GameResponse.model_validate(g).model_dump(mode="json") for g in games]
    await set_cached_games(month, home_only, response_data)
    return response_data


@router.get("/{game_pk}", response_model=GameResponse)
async def get_game_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    return await schedule_service.get_game(db, game_pk)


@router.get("/{game_pk}/promotions", response_model=list[PromotionResponse])
async def list_promotions_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    await schedule_service.get_game(db, game_pk)
    return await schedule_service.promotions_for_game(db, game_pk)


@router.get("/{game_pk}/tickets", response_model=list[TicketDetail])
async def list_game_tickets_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    """Every ticket for the game with seat identity and assignee. Not cached."""
    await schedule_service.get_game(db, game_pk)
    return await inventory_service.tickets_for_game(db, game_pk)
