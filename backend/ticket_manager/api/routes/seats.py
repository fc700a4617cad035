"""
Seat registry endpoints. Reads are public; writes require an admin.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import require_admin
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.seat import (
    SeatBatchCreate,
    SeatCreate,
    SeatGroupUpdate,
    SeatNotesUpdate,
    SeatResponse,
)
from ticket_manager.services import seat_service

router = APIRouter(prefix="/seats", tags=["Seats"])


@router.get("", response_model=list[SeatResponse])
async def list_seats_endpoint(db: AsyncSession = Depends(get_db)):
    return await seat_service.list_seats(db)


@router.post("", response_model=SeatResponse, status_code=status.HTTP_201_CREATED)
async def create_seat_endpoint(
    seat_data: SeatCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Register one seat; tickets for every home game are generated with it."""
    return await seat_service.register_seat(
        db, seat_data.section, seat_data.row, seat_data.seat, seat_data.notes
    )


@router.post("/batch", response_model=list[SeatResponse], status_code=status.HTTP_201_CREATED)
async def create_seat_batch_endpoint(
    batch: SeatBatchCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Register a numeric range of seats in one section/row.
    All-or-nothing: one existing seat rejects the whole range with 409.
    """
    return await seat_service.register_seats(
        db, batch.section, batch.row, batch.seat_start, batch.seat_end, batch.notes
    )


@router.patch("/group", response_model=list[SeatResponse])
async def update_group_notes_endpoint(
    group: SeatGroupUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await seat_service.update_group_notes(db, group.section, group.row, group.notes)


@router.patch("/{seat_id}", response_model=SeatResponse)
async def update_seat_notes_endpoint(
    seat_id: int,
    update: SeatNotesUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await seat_service.update_seat_notes(db, seat_id, update.notes)


@router.delete("/{seat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_seat_endpoint(
    seat_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a seat together with all of its game tickets."""
    await seat_service.delete_seat(db, seat_id)
