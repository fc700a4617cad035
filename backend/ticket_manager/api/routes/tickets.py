"""
Ticket inventory endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.ticket import TicketResponse, TicketSummary, TicketUpdate
from ticket_manager.services import inventory_service

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/summary", response_model=list[TicketSummary])
async def ticket_summary_endpoint(db: AsyncSession = Depends(get_db)):
    """Total and available ticket counts per home game."""
    return await inventory_service.summary_for_games(db)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket_endpoint(
    ticket_id: int,
    update: TicketUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Administrative status/notes correction. Unknown statuses are rejected with 400."""
    return await inventory_service.update_status(db, ticket_id, update.status, update.notes)
