"""
Seat registry: season-ticket seats and their notes.

Registration is all-or-nothing per call and generates the seat's tickets in
the same transaction. Deletion removes the seat's game_tickets first, then
the seat, so referential integrity never depends on ON DELETE CASCADE.
"""

from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import ConflictError, NotFoundError, ValidationError
from ticket_manager.core.logging import get_logger
from ticket_manager.db.session import atomic
from ticket_manager.models.seat import Seat
from ticket_manager.models.ticket import GameTicket
from ticket_manager.services import inventory_service
from ticket_manager.services.inventory_service import natural_key, seat_sort_key

logger = get_logger(__name__)
settings = get_settings()


def _clean(field: str, value: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} must not be empty", field=field)
    return cleaned


def _sorted(seats: list[Seat]) -> list[Seat]:
    return sorted(seats, key=lambda s: seat_sort_key(s.section, s.row, s.seat))


async def _register(
    db: AsyncSession,
    section: str,
    row: str,
    labels: list[str],
    notes: Optional[str],
) -> list[Seat]:
    async with atomic(db):
        result = await db.execute(
            select(Seat.seat).where(
                Seat.section == section,
                Seat.row == row,
                Seat.seat.in_(labels),
            )
        )
        taken = sorted(result.scalars().all(), key=natural_key)
        if taken:
            raise ConflictError(
                f"Section {section} row {row} already has seat(s) {', '.join(taken)}",
                entity="seat",
                section=section,
                row=row,
                seats=taken,
            )

        seats = [Seat(section=section, row=row, seat=label, notes=notes) for label in labels]
        db.add_all(seats)
        # A concurrent registration of the same triple fails here with IntegrityError
        await db.flush()

        generated = 0
        for seat in seats:
            generated += await inventory_service.generate_for_new_seat(db, seat)

    logger.info(
        "seats_registered",
        section=section,
        row=row,
        seats=len(seats),
        tickets_generated=generated,
    )
    return seats


async def register_seat(
    db: AsyncSession,
    section: str,
    row: str,
    seat: str,
    notes: Optional[str] = None,
) -> Seat:
    """Register a single seat with an arbitrary label."""
    seats = await _register(
        db,
        _clean("section", section),
        _clean("row", row),
        [_clean("seat", seat)],
        notes,
    )
    return seats[0]


async def register_seats(
    db: AsyncSession,
    section: str,
    row: str,
    seat_start: int,
    seat_end: int,
    notes: Optional[str] = None,
) -> list[Seat]:
    """
    Register seats seat_start..seat_end (inclusive) in one section/row.

    Raises ValidationError for an empty section/row, a reversed range or a
    range above MAX_SEAT_BATCH; ConflictError if any of the seats exists, in
    which case none are created.
    """
    section = _clean("section", section)
    row = _clean("row", row)
    if seat_start > seat_end:
        raise ValidationError(
            f"seat_start ({seat_start}) must be <= seat_end ({seat_end})",
            field="seat_start",
        )
    if seat_end - seat_start + 1 > settings.MAX_SEAT_BATCH:
        raise ValidationError(
            f"Maximum {settings.MAX_SEAT_BATCH} seats per batch",
            field="seat_end",
        )

    labels = [str(n) for n in range(seat_start, seat_end + 1)]
    return await _register(db, section, row, labels, notes)


async def get_seat(db: AsyncSession, seat_id: int) -> Seat:
    result = await db.execute(
        select(Seat).where(Seat.id == seat_id).execution_options(populate_existing=True)
    )
    seat = result.scalar_one_or_none()
    if seat is None:
        raise NotFoundError(f"Seat {seat_id} not found", entity="seat", id=seat_id)
    return seat


async def list_seats(db: AsyncSession) -> list[Seat]:
    """All seats by section, row, then seat label with numbers in numeric order."""
    result = await db.execute(select(Seat).execution_options(populate_existing=True))
    return _sorted(list(result.scalars().all()))


async def list_group(db: AsyncSession, section: str, row: str) -> list[Seat]:
    result = await db.execute(
        select(Seat)
        .where(Seat.section == section, Seat.row == row)
        .execution_options(populate_existing=True)
    )
    return _sorted(list(result.scalars().all()))


async def update_seat_notes(db: AsyncSession, seat_id: int, notes: Optional[str]) -> Seat:
    async with atomic(db):
        result = await db.execute(
            update(Seat)
            .where(Seat.id == seat_id)
            .values(notes=notes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Seat {seat_id} not found", entity="seat", id=seat_id)
    return await get_seat(db, seat_id)


async def update_group_notes(
    db: AsyncSession,
    section: str,
    row: str,
    notes: Optional[str],
) -> list[Seat]:
    """Set notes on every seat in a section/row. An empty group yields []."""
    section = _clean("section", section)
    row = _clean("row", row)
    async with atomic(db):
        result = await db.execute(
            update(Seat)
            .where(Seat.section == section, Seat.row == row)
            .values(notes=notes)
            .execution_options(synchronize_session=False)
        )
    logger.info("seat_group_notes_updated", section=section, row=row, seats=result.rowcount)
    return await list_group(db, section, row)


async def delete_seat(db: AsyncSession, seat_id: int) -> int:
    """
    Delete a seat and every game ticket for it, atomically.
    Returns the number of tickets removed with the seat.
    """
    async with atomic(db):
        tickets = await db.execute(
            delete(GameTicket)
            .where(GameTicket.seat_id == seat_id)
            .execution_options(synchronize_session=False)
        )
        seats = await db.execute(
            delete(Seat)
            .where(Seat.id == seat_id)
            .execution_options(synchronize_session=False)
        )
        if seats.rowcount == 0:
            raise NotFoundError(f"Seat {seat_id} not found", entity="seat", id=seat_id)

    logger.info("seat_deleted", seat_id=seat_id, tickets_deleted=tickets.rowcount)
    return tickets.rowcount
