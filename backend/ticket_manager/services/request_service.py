"""
Request ledger: members' demand for seats, one request per (user, game).

BATCH SEMANTICS
===============
create_requests validates every entry independently. Invalid entries are
reported back as EntryError rows while the valid ones are still created, all
within one transaction. Uniqueness is decided by the store:

  INSERT ... ON CONFLICT (user_id, game_pk) DO NOTHING

so a concurrent duplicate (or the same game twice in one batch) loses as a
"conflict" entry instead of producing a second row.

A withdrawn request is not a blocker: requesting the same game again reopens
that row as a fresh pending request.

State machine (RequestStatus.can_transition_to):
  pending  -> approved | declined | withdrawn
  approved -> approved (more seats) | withdrawn
  declined, withdrawn: terminal
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TicketManagerError,
    ValidationError,
)
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_request_operation, record_tickets_released
from ticket_manager.db.base import utcnow
from ticket_manager.db.session import atomic, dialect_insert
from ticket_manager.models.game import Game
from ticket_manager.models.request import RequestStatus, TicketRequest
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import RequestWithUser
from ticket_manager.schemas.request import EntryError, RequestBatchResult, RequestEntry, TicketRequestResponse
from ticket_manager.services import inventory_service

logger = get_logger(__name__)
settings = get_settings()


def _check_seat_count(seats_requested: int) -> None:
    limit = settings.MAX_SEATS_PER_REQUEST
    if not 1 <= seats_requested <= limit:
        raise ValidationError(
            f"seats_requested must be between 1 and {limit}, got {seats_requested}",
            field="seats_requested",
        )


async def _load_for_update(db: AsyncSession, request_id: int) -> TicketRequest:
    result = await db.execute(
        select(TicketRequest)
        .where(TicketRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError(f"Request {request_id} not found", entity="ticket_request", id=request_id)
    return request


async def get_request(db: AsyncSession, request_id: int) -> TicketRequest:
    result = await db.execute(
        select(TicketRequest)
        .where(TicketRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError(f"Request {request_id} not found", entity="ticket_request", id=request_id)
    return request


def _entry_error(index: int, entry: RequestEntry, exc: TicketManagerError, code: str) -> EntryError:
    return EntryError(index=index, game_pk=entry.game_pk, error=code, message=exc.message)


def _validate_entry(entry: RequestEntry, game: Optional[Game], now: datetime) -> None:
    _check_seat_count(entry.seats_requested)
    if game is None:
        raise NotFoundError(f"Game {entry.game_pk} not found", entity="game", id=entry.game_pk)
    if not game.is_home:
        raise ValidationError(f"Game {entry.game_pk} is not a home game", field="game_pk")
    if not game.starts_after(now):
        raise ValidationError(f"Game {entry.game_pk} has already started", field="game_pk")


async def _reopen(db: AsyncSession, request_id: int, entry: RequestEntry) -> bool:
    result = await db.execute(
        update(TicketRequest)
        .where(
            TicketRequest.id == request_id,
            TicketRequest.status == RequestStatus.WITHDRAWN.value,
        )
        .values(
            status=RequestStatus.PENDING.value,
            seats_requested=entry.seats_requested,
            seats_approved=0,
            notes=entry.notes,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _insert(db: AsyncSession, user_id: int, entry: RequestEntry) -> bool:
    result = await db.execute(
        dialect_insert(db, TicketRequest)
        .values(
            user_id=user_id,
            game_pk=entry.game_pk,
            seats_requested=entry.seats_requested,
            seats_approved=0,
            status=RequestStatus.PENDING.value,
            notes=entry.notes,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "game_pk"])
    )
    return result.rowcount == 1


async def create_requests(
    db: AsyncSession,
    user: User,
    entries: list[RequestEntry],
) -> RequestBatchResult:
    """
    Create one pending request per entry for future home games.

    Each entry fails on its own (validation / not_found / conflict) without
    aborting the rest; returns the created rows in entry order plus the
    per-entry errors.
    """
    user_id = user.id
    errors: list[EntryError] = []
    created_games: list[int] = []
    now = utcnow()

    async with atomic(db):
        keys = {e.game_pk for e in entries}
        games = {
            g.game_pk: g
            for g in (await db.execute(select(Game).where(Game.game_pk.in_(keys)))).scalars()
        }
        existing = {
            r.game_pk: (r.id, r.state)
            for r in (
                await db.execute(
                    select(TicketRequest)
                    .where(
                        TicketRequest.user_id == user_id,
                        TicketRequest.game_pk.in_(keys),
                    )
                    .execution_options(populate_existing=True)
                )
            ).scalars()
        }

        for index, entry in enumerate(entries):
            try:
                _validate_entry(entry, games.get(entry.game_pk), now)
            except ValidationError as e:
                errors.append(_entry_error(index, entry, e, "validation"))
                continue
            except NotFoundError as e:
                errors.append(_entry_error(index, entry, e, "not_found"))
                continue

            prior = existing.get(entry.game_pk)
            if prior is not None and prior[1] is RequestStatus.WITHDRAWN:
                ok = await _reopen(db, prior[0], entry)
            elif prior is not None:
                ok = False
            else:
                ok = await _insert(db, user_id, entry)

            if not ok:
                errors.append(
                    EntryError(
                        index=index,
                        game_pk=entry.game_pk,
                        error="conflict",
                        message=f"A request for game {entry.game_pk} already exists",
                    )
                )
                continue
            created_games.append(entry.game_pk)

    for _ in created_games:
        record_request_operation("create")
    for _ in errors:
        record_request_operation("create", ok=False)

    created: list[TicketRequestResponse] = []
    if created_games:
        result = await db.execute(
            select(TicketRequest)
            .where(
                TicketRequest.user_id == user_id,
                TicketRequest.game_pk.in_(created_games),
            )
            .execution_options(populate_existing=True)
        )
        by_game = {r.game_pk: r for r in result.scalars()}
        created = [TicketRequestResponse.model_validate(by_game[pk]) for pk in created_games]

    logger.info(
        "requests_created",
        user_id=user_id,
        created=len(created),
        rejected=len(errors),
    )
    return RequestBatchResult(created=created, errors=errors)


async def update_request(
    db: AsyncSession,
    request_id: int,
    user: User,
    seats_requested: int,
) -> TicketRequest:
    """Change the seat count of the caller's own pending request."""
    _check_seat_count(seats_requested)
    user_id = user.id

    async with atomic(db):
        request = await _load_for_update(db, request_id)
        if request.user_id != user_id:
            record_request_operation("update", ok=False)
            raise ForbiddenError("Only the requesting member may edit this request", id=request_id)
        if request.state is not RequestStatus.PENDING:
            record_request_operation("update", ok=False)
            raise ForbiddenError(
                f"Request {request_id} is {request.status}; only pending requests can be edited",
                id=request_id,
                status=request.status,
            )
        request.seats_requested = seats_requested

    record_request_operation("update")
    logger.info("request_updated", request_id=request_id, seats_requested=seats_requested)
    return request


async def withdraw_request(db: AsyncSession, request_id: int, user: User) -> TicketRequest:
    """
    Withdraw the caller's own pending or approved request. An approved
    request also returns the caller's assigned tickets for that game in the
    same transaction.
    """
    user_id = user.id

    async with atomic(db):
        request = await _load_for_update(db, request_id)
        if request.user_id != user_id:
            record_request_operation("withdraw", ok=False)
            raise ForbiddenError("Only the requesting member may withdraw this request", id=request_id)
        if not request.state.can_transition_to(RequestStatus.WITHDRAWN):
            record_request_operation("withdraw", ok=False)
            raise ConflictError(
                f"Request {request_id} is {request.status} and cannot be withdrawn",
                id=request_id,
                status=request.status,
            )
        released = 0
        # Tickets handed out without a request stay with the member.
        if request.state is RequestStatus.APPROVED:
            released = await inventory_service.release_assigned(db, user_id, request.game_pk)
        request.status = RequestStatus.WITHDRAWN.value

    record_request_operation("withdraw")
    record_tickets_released("withdraw", released)
    logger.info(
        "request_withdrawn",
        request_id=request_id,
        game_pk=request.game_pk,
        tickets_released=released,
    )
    return request


async def decline_request(db: AsyncSession, request_id: int) -> TicketRequest:
    async with atomic(db):
        request = await _load_for_update(db, request_id)
        if not request.state.can_transition_to(RequestStatus.DECLINED):
            record_request_operation("decline", ok=False)
            raise ConflictError(
                f"Request {request_id} is {request.status} and cannot be declined",
                id=request_id,
                status=request.status,
            )
        request.status = RequestStatus.DECLINED.value

    record_request_operation("decline")
    logger.info("request_declined", request_id=request_id)
    return request


async def list_for_user(db: AsyncSession, user: User) -> list[TicketRequest]:
    result = await db.execute(
        select(TicketRequest)
        .join(Game, Game.game_pk == TicketRequest.game_pk)
        .where(TicketRequest.user_id == user.id)
        .order_by(Game.game_date, TicketRequest.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_all(db: AsyncSession, status: Optional[str] = None) -> list[TicketRequest]:
    query = select(TicketRequest)
    if status is not None:
        try:
            wanted = RequestStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown request status '{status}'", field="status")
        query = query.where(TicketRequest.status == wanted.value)
    result = await db.execute(
        query.order_by(TicketRequest.game_pk, TicketRequest.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_for_game(db: AsyncSession, game_pk: int) -> list[RequestWithUser]:
    """Every request for one game with the requester's display name, oldest first."""
    result = await db.execute(
        select(TicketRequest, User.name)
        .join(User, User.id == TicketRequest.user_id)
        .where(TicketRequest.game_pk == game_pk)
        .order_by(TicketRequest.created_at, TicketRequest.id)
        .execution_options(populate_existing=True)
    )
    return [
        RequestWithUser(
            id=request.id,
            user_id=request.user_id,
            user_name=user_name,
            seats_requested=request.seats_requested,
            seats_approved=request.seats_approved,
            status=request.status,
            notes=request.notes,
        )
        for request, user_name in result.all()
    ]
