"""
Client for the MLB Stats API schedule endpoint.

Fetches one regular season for the tracked team and converts the feed's
camelCase payload into GameIn / PromotionIn records. Nothing here touches
the database; `schedule_service.ingest_schedule` consumes the result.
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import UpstreamError
from ticket_manager.core.logging import get_logger
from ticket_manager.schemas.game import GameIn, PromotionIn, ScheduleData

logger = get_logger(__name__)
settings = get_settings()


def _parse_game(raw: dict[str, Any]) -> GameIn:
    status = raw["status"]
    away = raw["teams"]["away"]
    home = raw["teams"]["home"]
    return GameIn(
        game_pk=raw["gamePk"],
        game_guid=raw.get("gameGuid"),
        game_type=raw.get("gameType", "R"),
        season=str(raw["season"]),
        game_date=raw["gameDate"],
        official_date=raw["officialDate"],
        status_abstract=status["abstractGameState"],
        status_detailed=status["detailedState"],
        status_code=status["statusCode"],
        start_time_tbd=status.get("startTimeTBD") or False,
        away_team_id=away["team"]["id"],
        away_team_name=away["team"]["name"],
        away_score=away.get("score"),
        away_is_winner=away.get("isWinner"),
        home_team_id=home["team"]["id"],
        home_team_name=home["team"]["name"],
        home_score=home.get("score"),
        home_is_winner=home.get("isWinner"),
        venue_id=raw["venue"]["id"],
        venue_name=raw["venue"]["name"],
        day_night=raw.get("dayNight"),
        description=raw.get("description"),
        series_description=raw.get("seriesDescription"),
        series_game_number=raw.get("seriesGameNumber"),
        games_in_series=raw.get("gamesInSeries"),
        double_header=raw.get("doubleHeader") or "N",
        game_number=raw.get("gameNumber") or 1,
        scheduled_innings=raw.get("scheduledInnings") or 9,
        is_tie=raw.get("isTie") or False,
    )


def _parse_promotion(game_pk: int, raw: dict[str, Any]) -> PromotionIn:
    return PromotionIn(
        offer_id=raw["offerId"],
        game_pk=game_pk,
        name=raw["name"],
        offer_type=raw.get("offerType"),
        description=raw.get("description"),
        distribution=raw.get("distribution"),
        presented_by=raw.get("presentedBy"),
        alt_page_url=raw.get("altPageUrl"),
        ticket_link=raw.get("ticketLink"),
        thumbnail_url=raw.get("thumbnailUrl"),
        image_url=raw.get("imageUrl"),
        display_order=raw.get("displayOrder") or 0,
    )


def parse_schedule(payload: dict[str, Any]) -> ScheduleData:
    """Convert a schedule response body. Any malformed game fails the whole batch."""
    data = ScheduleData()
    for date_entry in payload.get("dates", []):
        for raw in date_entry.get("games", []):
            try:
                game = _parse_game(raw)
                promotions = [
                    _parse_promotion(game.game_pk, promo)
                    for promo in raw.get("promotions", [])
                ]
            except (KeyError, TypeError, PydanticValidationError) as e:
                raise UpstreamError(
                    f"Malformed game in schedule feed: {e}",
                    game_pk=raw.get("gamePk") if isinstance(raw, dict) else None,
                ) from e
            data.games.append(game)
            data.promotions.extend(promotions)
    return data


async def fetch_schedule(season: int, client: Optional[httpx.AsyncClient] = None) -> ScheduleData:
    """Fetch and parse one regular season for the tracked team."""
    params = {
        "teamId": settings.TEAM_ID,
        "season": season,
        "sportId": 1,
        "gameType": "R",
        "hydrate": "game(promotions)",
    }
    logger.info("schedule_fetch_started", season=season, team_id=settings.TEAM_ID)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.SCHEDULE_TIMEOUT) as owned:
                response = await owned.get(settings.SCHEDULE_API_URL, params=params)
        else:
            response = await client.get(settings.SCHEDULE_API_URL, params=params)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPError as e:
        logger.error("schedule_fetch_failed", season=season, error=str(e))
        raise UpstreamError(f"Schedule feed request failed: {e}", season=season) from e
    except ValueError as e:
        raise UpstreamError(f"Schedule feed returned invalid JSON: {e}", season=season) from e

    data = parse_schedule(payload)
    logger.info(
        "schedule_fetched",
        season=season,
        games=len(data.games),
        promotions=len(data.promotions),
    )
    return data
