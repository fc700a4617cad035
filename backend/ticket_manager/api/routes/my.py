"""
Member self-service endpoints: own requests and own tickets.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import get_current_user
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import ReleaseResult
from ticket_manager.schemas.request import (
    RequestBatchCreate,
    RequestBatchResult,
    RequestUpdate,
    TicketRequestResponse,
)
from ticket_manager.schemas.ticket import TicketDetail
from ticket_manager.services import allocation_service, inventory_service, request_service

router = APIRouter(prefix="/my", tags=["Members"])


@router.get("/requests", response_model=list[TicketRequestResponse])
async def list_my_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.list_for_user(db, user)


@router.post("/requests", response_model=RequestBatchResult, status_code=status.HTTP_201_CREATED)
async def create_my_requests(
    batch: RequestBatchCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Request seats for one or more upcoming home games.

    Entries are independent: the response lists the created requests and,
    separately, each rejected entry with its index and reason.
    """
    return await request_service.create_requests(db, user, batch.requests)


@router.patch("/requests/{request_id}", response_model=TicketRequestResponse)
async def update_my_request(
    request_id: int,
    update: RequestUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the seat count of a pending request."""
    return await request_service.update_request(db, request_id, user, update.seats_requested)


@router.delete("/requests/{request_id}", response_model=TicketRequestResponse)
async def withdraw_my_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a request; any seats already assigned for that game are released."""
    return await request_service.withdraw_request(db, request_id, user)


@router.get("/games", response_model=list[TicketDetail])
async def list_my_tickets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await inventory_service.tickets_for_user(db, user.id)


@router.post("/games/{game_pk}/release", response_model=ReleaseResult)
async def release_my_tickets(
    game_pk: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Give back every ticket assigned to the caller for one game."""
    return await allocation_service.release_all_for_game(db, user, game_pk)
