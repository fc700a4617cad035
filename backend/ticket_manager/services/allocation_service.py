"""
Allocation engine: turns member demand into seat assignments.

CONCURRENCY STRATEGY: Status-guarded conditional UPDATE
=======================================================

Problem:
  Two admins assign the same ticket at the same moment. Both read
  status='available', both write their member in. Result: the first
  assignment is silently overwritten.

Solution:
  The status check and the write are one statement:

    UPDATE game_tickets SET status = 'assigned', assigned_to = :user
    WHERE id = :ticket AND status = 'available'

  rowcount == 0 means someone else got there first (or the ticket was never
  available) -> ConflictError. Exactly one concurrent caller wins; no row
  locks are held beyond the statement, and there is nothing to retry since
  a retry would hit the same conflict.

  A whole allocate() batch runs inside one transaction: one losing pairing
  rolls back every pairing before it.

The engine owns no tables. It orchestrates updates to game_tickets and
ticket_requests; the oversubscription summary is advisory and never blocks
an allocation.
"""

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import ConflictError, NotFoundError, TicketManagerError, ValidationError
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_allocation_attempt, record_tickets_released, tickets_assigned
from ticket_manager.db.session import atomic
from ticket_manager.models.game import Game
from ticket_manager.models.request import RequestStatus, TicketRequest
from ticket_manager.models.ticket import GameTicket, TicketStatus
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import (
    AllocationResult,
    AllocationSummaryRow,
    Assignment,
    GameAllocationDetail,
    ReleaseResult,
)
from ticket_manager.schemas.game import GameResponse
from ticket_manager.services import inventory_service, request_service, schedule_service

logger = get_logger(__name__)

_OPEN_STATUSES = (RequestStatus.PENDING.value, RequestStatus.APPROVED.value)


def _reject_duplicates(assignments: list[Assignment]) -> None:
    seen = set()
    for a in assignments:
        if a.game_ticket_id in seen:
            raise ValidationError(
                f"Ticket {a.game_ticket_id} appears more than once in the batch",
                field="game_ticket_id",
                id=a.game_ticket_id,
            )
        seen.add(a.game_ticket_id)


async def _check_users_exist(db: AsyncSession, assignments: list[Assignment]) -> None:
    wanted = {a.user_id for a in assignments}
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    missing = sorted(wanted - set(result.scalars().all()))
    if missing:
        raise NotFoundError(f"User {missing[0]} not found", entity="user", id=missing[0])


async def _check_request(db: AsyncSession, assignment: Assignment, ticket: GameTicket) -> None:
    request = await request_service.get_request(db, assignment.request_id)
    if request.user_id != assignment.user_id or request.game_pk != ticket.game_pk:
        raise ValidationError(
            f"Request {request.id} does not belong to user {assignment.user_id} "
            f"for game {ticket.game_pk}",
            field="request_id",
            id=request.id,
        )
    if not request.state.can_transition_to(RequestStatus.APPROVED):
        raise ConflictError(
            f"Request {request.id} is {request.status} and cannot be approved",
            entity="ticket_request",
            id=request.id,
            status=request.status,
        )


async def _assign_one(db: AsyncSession, assignment: Assignment) -> None:
    ticket = await inventory_service.get_ticket(db, assignment.game_ticket_id)
    if assignment.request_id is not None:
        await _check_request(db, assignment, ticket)

    result = await db.execute(
        update(GameTicket)
        .where(
            GameTicket.id == assignment.game_ticket_id,
            GameTicket.status == TicketStatus.AVAILABLE.value,
        )
        .values(status=TicketStatus.ASSIGNED.value, assigned_to=assignment.user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConflictError(
            f"Ticket {assignment.game_ticket_id} is not available",
            entity="game_ticket",
            id=assignment.game_ticket_id,
            status=ticket.status,
        )

    if assignment.request_id is not None:
        result = await db.execute(
            update(TicketRequest)
            .where(
                TicketRequest.id == assignment.request_id,
                TicketRequest.status.in_(_OPEN_STATUSES),
            )
            .values(
                seats_approved=TicketRequest.seats_approved + 1,
                status=RequestStatus.APPROVED.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(
                f"Request {assignment.request_id} changed while allocating",
                entity="ticket_request",
                id=assignment.request_id,
            )


async def allocate(db: AsyncSession, assignments: list[Assignment]) -> AllocationResult:
    """
    Assign tickets to members as one atomic batch.

    Any unavailable ticket, unknown ticket/user/request or mismatched request
    fails the whole call and nothing is committed.
    """
    _reject_duplicates(assignments)

    try:
        async with atomic(db):
            await _check_users_exist(db, assignments)
            for assignment in assignments:
                await _assign_one(db, assignment)
    except TicketManagerError as e:
        record_allocation_attempt(e.code)
        logger.warning("allocation_rejected", pairings=len(assignments), error=e.code, message=e.message)
        raise

    record_allocation_attempt("success")
    tickets_assigned.inc(len(assignments))
    logger.info(
        "tickets_allocated",
        assigned=len(assignments),
        tickets=[a.game_ticket_id for a in assignments],
    )
    return AllocationResult(assigned_count=len(assignments))


async def revoke(db: AsyncSession, game_ticket_id: int) -> GameTicket:
    """
    Return an assigned ticket to the pool.

    The originating request's seats_approved is left as-is; administrators
    reconcile requests by hand.
    """
    async with atomic(db):
        ticket = await inventory_service.get_ticket(db, game_ticket_id)
        result = await db.execute(
            update(GameTicket)
            .where(
                GameTicket.id == game_ticket_id,
                GameTicket.status == TicketStatus.ASSIGNED.value,
            )
            .values(status=TicketStatus.AVAILABLE.value, assigned_to=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(
                f"Ticket {game_ticket_id} is not assigned",
                entity="game_ticket",
                id=game_ticket_id,
                status=ticket.status,
            )

    record_tickets_released("revoke", 1)
    logger.info("ticket_revoked", ticket_id=game_ticket_id)
    return await inventory_service.get_ticket(db, game_ticket_id)


async def release_all_for_game(db: AsyncSession, user: User, game_pk: int) -> ReleaseResult:
    """
    Give back every ticket the caller holds for one game.

    When anything was released the caller's approved request for that game
    is withdrawn with it.
    """
    user_id = user.id
    async with atomic(db):
        await schedule_service.get_game(db, game_pk)
        released = await inventory_service.release_assigned(db, user_id, game_pk)
        if released:
            await db.execute(
                update(TicketRequest)
                .where(
                    TicketRequest.user_id == user_id,
                    TicketRequest.game_pk == game_pk,
                    TicketRequest.status == RequestStatus.APPROVED.value,
                )
                .values(status=RequestStatus.WITHDRAWN.value)
                .execution_options(synchronize_session=False)
            )

    record_tickets_released("release", released)
    logger.info("tickets_released", user_id=user_id, game_pk=game_pk, released=released)
    return ReleaseResult(released_count=released)


async def allocation_summary(db: AsyncSession) -> list[AllocationSummaryRow]:
    """
    Per home game with tickets: seat counts, outstanding demand and the
    oversubscribed flag (outstanding requested seats > available seats).
    """
    assigned = func.sum(case((GameTicket.status == TicketStatus.ASSIGNED.value, 1), else_=0))
    available = func.sum(case((GameTicket.status == TicketStatus.AVAILABLE.value, 1), else_=0))
    inventory = await db.execute(
        select(
            Game.game_pk,
            Game.official_date,
            Game.away_team_name,
            func.count(GameTicket.id),
            assigned,
            available,
        )
        .join(GameTicket, GameTicket.game_pk == Game.game_pk)
        .where(Game.is_home_clause())
        .group_by(Game.game_pk, Game.official_date, Game.away_team_name, Game.game_date)
        .order_by(Game.game_date, Game.game_pk)
    )

    outstanding = TicketRequest.seats_requested - TicketRequest.seats_approved
    demand = await db.execute(
        select(
            TicketRequest.game_pk,
            func.sum(case((outstanding > 0, outstanding), else_=0)),
        )
        .where(TicketRequest.status.in_(_OPEN_STATUSES))
        .group_by(TicketRequest.game_pk)
    )
    requested_by_game = {game_pk: int(total or 0) for game_pk, total in demand.all()}

    rows = []
    for game_pk, official_date, opponent, total, n_assigned, n_available in inventory.all():
        requested = requested_by_game.get(game_pk, 0)
        rows.append(
            AllocationSummaryRow(
                game_pk=game_pk,
                official_date=official_date,
                opponent=opponent,
                total_seats=total,
                assigned=int(n_assigned or 0),
                available=int(n_available or 0),
                total_requested=requested,
                oversubscribed=requested > int(n_available or 0),
            )
        )
    return rows


async def game_detail(db: AsyncSession, game_pk: int) -> GameAllocationDetail:
    game = await schedule_service.get_game(db, game_pk)
    return GameAllocationDetail(
        game=GameResponse.model_validate(game),
        tickets=await inventory_service.tickets_for_game(db, game_pk),
        requests=await request_service.list_for_game(db, game_pk),
    )
