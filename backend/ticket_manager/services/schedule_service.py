"""
Schedule store: games and promotions ingested from the schedule feed.

Games are upserted by game_pk and promotions by (offer_id, game_pk), so a
re-run of the same feed is harmless. Ingestion backfills tickets for the
ingested home games inside the same transaction.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import schedule_ingest_latency
from ticket_manager.db.base import utcnow
from ticket_manager.db.session import atomic, dialect_insert
from ticket_manager.models.game import Game, Promotion
from ticket_manager.schemas.game import GameIn, IngestResponse, PromotionIn, ScheduleData
from ticket_manager.services import inventory_service
from ticket_manager.services.cache_service import invalidate_schedule_cache

logger = get_logger(__name__)

# Columns a later feed run may correct. Team ids are deliberately absent:
# home/away re-classification is not supported once tickets exist.
GAME_UPDATE_COLUMNS = (
    "game_guid",
    "game_date",
    "official_date",
    "status_abstract",
    "status_detailed",
    "status_code",
    "start_time_tbd",
    "away_score",
    "away_is_winner",
    "home_score",
    "home_is_winner",
    "day_night",
    "description",
    "is_tie",
)

PROMOTION_UPDATE_COLUMNS = (
    "name",
    "offer_type",
    "description",
    "distribution",
    "presented_by",
    "alt_page_url",
    "ticket_link",
    "thumbnail_url",
    "image_url",
    "display_order",
)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


async def upsert_games(db: AsyncSession, games: list[GameIn]) -> list[int]:
    """Insert or update games by game_pk. Returns the keys that did not exist before."""
    if not games:
        return []

    keys = {g.game_pk for g in games}
    result = await db.execute(select(Game.game_pk).where(Game.game_pk.in_(keys)))
    existing = set(result.scalars().all())

    for game in games:
        values = game.model_dump()
        values["game_date"] = _as_utc(game.game_date)
        stmt = dialect_insert(db, Game).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["game_pk"],
            set_={
                **{col: stmt.excluded[col] for col in GAME_UPDATE_COLUMNS},
                "updated_at": utcnow(),
            },
        )
        await db.execute(stmt)

    return sorted(keys - existing)


async def upsert_promotions(db: AsyncSession, promotions: list[PromotionIn]) -> int:
    """Insert or update promotions by (offer_id, game_pk)."""
    for promo in promotions:
        stmt = dialect_insert(db, Promotion).values(**promo.model_dump())
        stmt = stmt.on_conflict_do_update(
            index_elements=["offer_id", "game_pk"],
            set_={
                **{col: stmt.excluded[col] for col in PROMOTION_UPDATE_COLUMNS},
                "updated_at": utcnow(),
            },
        )
        await db.execute(stmt)
    return len(promotions)


async def ingest_schedule(db: AsyncSession, data: ScheduleData) -> IngestResponse:
    """
    Upsert a parsed schedule batch and backfill tickets for its home games,
    all in one transaction.
    """
    with schedule_ingest_latency.time():
        async with atomic(db):
            new_keys = await upsert_games(db, data.games)
            promotions = await upsert_promotions(db, data.promotions)
            # Every ingested key, not just new ones: generation is idempotent and
            # this also repairs coverage for games seen before any seat existed.
            tickets = await inventory_service.generate_for_new_games(
                db, [g.game_pk for g in data.games]
            )

    await invalidate_schedule_cache()

    logger.info(
        "schedule_ingested",
        games=len(data.games),
        new_games=len(new_keys),
        promotions=promotions,
        tickets=tickets,
    )
    return IngestResponse(
        games=len(data.games),
        new_games=len(new_keys),
        promotions=promotions,
        tickets=tickets,
    )


async def list_games(
    db: AsyncSession,
    month: Optional[int] = None,
    home_only: bool = False,
) -> list[Game]:
    query = select(Game)
    if month is not None:
        query = query.where(extract("month", Game.official_date) == month)
    if home_only:
        query = query.where(Game.is_home_clause())
    result = await db.execute(
        query.order_by(Game.game_date, Game.game_pk).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_game(db: AsyncSession, game_pk: int) -> Game:
    result = await db.execute(
        select(Game).where(Game.game_pk == game_pk).execution_options(populate_existing=True)
    )
    game = result.scalar_one_or_none()
    if game is None:
        raise NotFoundError(f"Game {game_pk} not found", entity="game", id=game_pk)
    return game


async def promotions_for_game(db: AsyncSession, game_pk: int) -> list[Promotion]:
    result = await db.execute(
        select(Promotion)
        .where(Promotion.game_pk == game_pk)
        .order_by(Promotion.display_order, Promotion.offer_id)
    )
    return list(result.scalars().all())
