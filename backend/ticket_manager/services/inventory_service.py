"""
Ticket inventory: the seats x home-games cross product.

BACKFILL STRATEGY: INSERT ... SELECT ... ON CONFLICT DO NOTHING
===============================================================

A game_tickets row must exist for every (home game, seat) pair. Rows are
created from two directions:
  - a seat is registered -> one ticket per existing home game
  - games are ingested   -> one ticket per existing seat for each home game

Both directions run the same statement shape:

  INSERT INTO game_tickets (game_pk, seat_id, status)
  SELECT games.game_pk, seats.id, 'available'
  FROM games JOIN seats ON true
  WHERE games.home_team_id = :team [AND <new seat / new games>]
  ON CONFLICT (game_pk, seat_id) DO NOTHING

Because the unique constraint decides, re-running is a no-op, existing
(possibly assigned) rows are never overwritten, and two concurrent
generators cannot produce duplicates.

The generate_* functions participate in the caller's transaction: they
flush but never commit, so a seat registration or schedule ingestion either
lands together with its tickets or not at all.
"""

import re
from typing import Iterable, Optional

from sqlalchemy import case, func, literal, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_tickets_generated
from ticket_manager.db.session import atomic, dialect_insert
from ticket_manager.models.game import Game
from ticket_manager.models.seat import Seat
from ticket_manager.models.ticket import GameTicket, TicketStatus
from ticket_manager.models.user import User
from ticket_manager.schemas.ticket import TicketDetail, TicketSummary

logger = get_logger(__name__)

_DIGITS = re.compile(r"(\d+)")


def natural_key(label: str) -> tuple:
    """Sort key that orders "2" before "10" and "A9" before "A10"."""
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in _DIGITS.split(label)
        if part
    )


def seat_sort_key(section: str, row: str, seat: str) -> tuple:
    return (natural_key(section), natural_key(row), natural_key(seat))


async def _insert_tickets(db: AsyncSession, source) -> int:
    stmt = (
        dialect_insert(db, GameTicket)
        .from_select(["game_pk", "seat_id", "status"], source)
        .on_conflict_do_nothing(index_elements=["game_pk", "seat_id"])
    )
    result = await db.execute(stmt)
    return max(result.rowcount or 0, 0)


def _home_games_x_seats():
    return (
        select(Game.game_pk, Seat.id, literal(TicketStatus.AVAILABLE.value))
        .select_from(Game)
        .join(Seat, true())
        .where(Game.is_home_clause())
    )


async def generate_for_new_seat(db: AsyncSession, seat: Seat) -> int:
    """Create the missing tickets for one seat across every home game."""
    created = await _insert_tickets(db, _home_games_x_seats().where(Seat.id == seat.id))
    record_tickets_generated("seat", created)
    logger.debug("tickets_generated", trigger="seat", seat_id=seat.id, created=created)
    return created


async def generate_for_new_games(db: AsyncSession, game_pks: Iterable[int]) -> int:
    """Create the missing tickets for the given games (home games only) across every seat."""
    keys = sorted(set(game_pks))
    if not keys:
        return 0
    created = await _insert_tickets(db, _home_games_x_seats().where(Game.game_pk.in_(keys)))
    record_tickets_generated("games", created)
    logger.info("tickets_generated", trigger="games", games=len(keys), created=created)
    return created


async def generate_for_all_seats(db: AsyncSession) -> int:
    """Full backfill of seats x home games."""
    created = await _insert_tickets(db, _home_games_x_seats())
    record_tickets_generated("backfill", created)
    logger.info("tickets_generated", trigger="backfill", created=created)
    return created


async def get_ticket(db: AsyncSession, ticket_id: int) -> GameTicket:
    result = await db.execute(
        select(GameTicket)
        .where(GameTicket.id == ticket_id)
        .execution_options(populate_existing=True)
    )
    ticket = result.scalar_one_or_none()
    if ticket is None:
        raise NotFoundError(f"Ticket {ticket_id} not found", entity="game_ticket", id=ticket_id)
    return ticket


async def update_status(
    db: AsyncSession,
    ticket_id: int,
    status: str,
    notes: Optional[str] = None,
) -> GameTicket:
    """
    Administrative correction of a ticket's status and notes.

    Does not apply the allocation state machine; any recognized status may be
    set. Leaving 'assigned' clears the assignee.
    """
    target = TicketStatus.parse(status)
    values = {"status": target.value, "notes": notes}
    if target is not TicketStatus.ASSIGNED:
        values["assigned_to"] = None

    async with atomic(db):
        result = await db.execute(
            update(GameTicket)
            .where(GameTicket.id == ticket_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Ticket {ticket_id} not found", entity="game_ticket", id=ticket_id)

    logger.info("ticket_status_updated", ticket_id=ticket_id, status=target.value)
    return await get_ticket(db, ticket_id)


async def release_assigned(db: AsyncSession, user_id: int, game_pk: int) -> int:
    """Return a user's assigned tickets for one game to the pool (caller's transaction)."""
    result = await db.execute(
        update(GameTicket)
        .where(
            GameTicket.game_pk == game_pk,
            GameTicket.assigned_to == user_id,
            GameTicket.status == TicketStatus.ASSIGNED.value,
        )
        .values(status=TicketStatus.AVAILABLE.value, assigned_to=None)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def summary_for_games(db: AsyncSession) -> list[TicketSummary]:
    """Ticket and still-available counts per home game (0/0 for games without tickets)."""
    available = func.coalesce(
        func.sum(case((GameTicket.status == TicketStatus.AVAILABLE.value, 1), else_=0)), 0
    )
    result = await db.execute(
        select(Game.game_pk, func.count(GameTicket.id), available)
        .select_from(Game)
        .outerjoin(GameTicket, GameTicket.game_pk == Game.game_pk)
        .where(Game.is_home_clause())
        .group_by(Game.game_pk)
        .order_by(Game.game_pk)
    )
    return [
        TicketSummary(game_pk=game_pk, total=total, available=int(avail))
        for game_pk, total, avail in result.all()
    ]


def _detail_query():
    return (
        select(GameTicket, Seat.section, Seat.row, Seat.seat, User.name)
        .join(Seat, Seat.id == GameTicket.seat_id)
        .outerjoin(User, User.id == GameTicket.assigned_to)
        .execution_options(populate_existing=True)
    )


def _to_detail(ticket: GameTicket, section: str, row: str, seat: str, user_name: Optional[str]) -> TicketDetail:
    return TicketDetail(
        id=ticket.id,
        game_pk=ticket.game_pk,
        seat_id=ticket.seat_id,
        section=section,
        row=row,
        seat=seat,
        status=ticket.status,
        notes=ticket.notes,
        assigned_to=ticket.assigned_to,
        assigned_user_name=user_name,
    )


async def tickets_for_game(db: AsyncSession, game_pk: int) -> list[TicketDetail]:
    """Every ticket for one game with its seat identity and assignee name, in seat order."""
    result = await db.execute(_detail_query().where(GameTicket.game_pk == game_pk))
    details = [_to_detail(*row) for row in result.all()]
    details.sort(key=lambda d: seat_sort_key(d.section, d.row, d.seat))
    return details


async def tickets_for_user(db: AsyncSession, user_id: int) -> list[TicketDetail]:
    """Tickets currently assigned to a user, ordered by game date then seat."""
    result = await db.execute(
        _detail_query()
        .join(Game, Game.game_pk == GameTicket.game_pk)
        .where(
            GameTicket.assigned_to == user_id,
            GameTicket.status == TicketStatus.ASSIGNED.value,
        )
        .order_by(Game.game_date, GameTicket.game_pk)
    )
    rows = result.all()
    # order_by already grouped by game; stable sort keeps that and orders seats within it
    game_order = {}
    for ticket, *_ in rows:
        game_order.setdefault(ticket.game_pk, len(game_order))
    details = [_to_detail(*row) for row in rows]
    details.sort(key=lambda d: (game_order[d.game_pk], seat_sort_key(d.section, d.row, d.seat)))
    return details


async def count_tickets(db: AsyncSession, game_pk: Optional[int] = None) -> int:
    stmt = select(func.count(GameTicket.id))
    if game_pk is not None:
        stmt = stmt.where(GameTicket.game_pk == game_pk)
    return (await db.execute(stmt)).scalar_one()
