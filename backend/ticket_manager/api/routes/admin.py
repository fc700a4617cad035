"""
Administrator endpoints: allocation, request review and schedule ingestion.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import (
    AllocateRequest,
    AllocationResult,
    AllocationSummaryRow,
    GameAllocationDetail,
)
from ticket_manager.schemas.game import IngestResponse, ScrapeScheduleRequest
from ticket_manager.schemas.request import TicketRequestResponse
from ticket_manager.schemas.ticket import TicketDetail, TicketResponse
from ticket_manager.services import (
    allocation_service,
    inventory_service,
    request_service,
    schedule_client,
    schedule_service,
    user_service,
)
from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/allocation", response_model=list[AllocationSummaryRow])
async def allocation_summary_endpoint(db: AsyncSession = Depends(get_db)):
    """Per home game seat counts, outstanding demand and oversubscription flag."""
    return await allocation_service.allocation_summary(db)


@router.get("/allocation/by-user/{user_id}", response_model=list[TicketDetail])
async def allocation_by_user_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    await user_service.get_user(db, user_id)
    return await inventory_service.tickets_for_user(db, user_id)


@router.get("/allocation/{game_pk}", response_model=GameAllocationDetail)
async def game_allocation_endpoint(game_pk: int, db: AsyncSession = Depends(get_db)):
    """Tickets and requests for one game, as needed to drive assignment."""
    return await allocation_service.game_detail(db, game_pk)


@router.post("/allocate", response_model=AllocationResult)
async def allocate_endpoint(batch: AllocateRequest, db: AsyncSession = Depends(get_db)):
    """
    Assign tickets to members. The batch is atomic: if any ticket is no
    longer available the call fails with 409 and nothing is assigned.
    """
    return await allocation_service.allocate(db, batch.assignments)


@router.delete("/allocate/{ticket_id}", response_model=TicketResponse)
async def revoke_endpoint(ticket_id: int, db: AsyncSession = Depends(get_db)):
    return await allocation_service.revoke(db, ticket_id)


@router.get("/requests", response_model=list[TicketRequestResponse])
async def list_requests_endpoint(
    status: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.list_all(db, status=status)


@router.post("/requests/{request_id}/decline", response_model=TicketRequestResponse)
async def decline_request_endpoint(request_id: int, db: AsyncSession = Depends(get_db)):
    return await request_service.decline_request(db, request_id)


@router.post("/scrape-schedule", response_model=IngestResponse)
async def scrape_schedule_endpoint(
    body: Optional[ScrapeScheduleRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Fetch a season from the schedule feed and ingest it (current year by default)."""
    season = body.season if body and body.season else datetime.now(timezone.utc).year
    logger.info("schedule_scrape_requested", season=season, admin_id=admin.id)
    data = await schedule_client.fetch_schedule(season)
    return await schedule_service.ingest_schedule(db, data)
