"""
Tests for the schedule feed client and schedule ingestion.
"""

import httpx
import pytest

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import NotFoundError, UpstreamError
from ticket_manager.schemas.game import ScheduleData
from ticket_manager.services import inventory_service, schedule_service
from ticket_manager.services.schedule_client import fetch_schedule, parse_schedule

from tests.conftest import game_in

settings = get_settings()


def _feed_game(game_pk: int, home_id: int, away_id: int, promotions=None) -> dict:
    game = {
        "gamePk": game_pk,
        "gameGuid": f"guid-{game_pk}",
        "gameType": "R",
        "season": "2027",
        "gameDate": "2027-04-02T02:45:00Z",
        "officialDate": "2027-04-01",
        "status": {
            "abstractGameState": "Preview",
            "detailedState": "Scheduled",
            "statusCode": "S",
            "startTimeTBD": False,
        },
        "teams": {
            "away": {"team": {"id": away_id, "name": "Away Club"}},
            "home": {"team": {"id": home_id, "name": "Home Club"}},
        },
        "venue": {"id": 2395, "name": "Oracle Park"},
        "dayNight": "night",
        "seriesDescription": "Regular Season",
        "seriesGameNumber": 1,
        "gamesInSeries": 3,
        "doubleHeader": "N",
        "gameNumber": 1,
        "scheduledInnings": 9,
    }
    if promotions is not None:
        game["promotions"] = promotions
    return game


PROMO = {
    "offerId": 555,
    "name": "Bobblehead Night",
    "offerType": "Giveaway",
    "distribution": "First 20,000 fans",
    "displayOrder": 1,
}


def _payload() -> dict:
    return {
        "dates": [
            {
                "date": "2027-04-01",
                "games": [
                    _feed_game(7001, settings.TEAM_ID, 119, promotions=[PROMO]),
                    _feed_game(7002, 119, settings.TEAM_ID),
                ],
            }
        ]
    }


def test_parse_schedule_maps_games_and_promotions():
    data = parse_schedule(_payload())

    assert [g.game_pk for g in data.games] == [7001, 7002]
    home = data.games[0]
    assert home.home_team_id == settings.TEAM_ID
    assert home.status_detailed == "Scheduled"
    assert home.official_date.isoformat() == "2027-04-01"
    assert home.game_date.tzinfo is not None
    assert [(p.offer_id, p.game_pk, p.name) for p in data.promotions] == [(555, 7001, "Bobblehead Night")]


def test_parse_schedule_rejects_malformed_game():
    payload = _payload()
    del payload["dates"][0]["games"][1]["teams"]
    with pytest.raises(UpstreamError) as exc:
        parse_schedule(payload)
    assert exc.value.details["game_pk"] == 7002


@pytest.mark.asyncio
async def test_fetch_schedule_sends_team_and_season():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=_payload())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        data = await fetch_schedule(2027, client=client)

    assert len(data.games) == 2
    assert seen["teamId"] == str(settings.TEAM_ID)
    assert seen["season"] == "2027"
    assert seen["hydrate"] == "game(promotions)"


@pytest.mark.asyncio
async def test_fetch_schedule_upstream_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamError):
            await fetch_schedule(2027, client=client)


@pytest.mark.asyncio
async def test_ingest_parsed_feed(db_session, seats):
    result = await schedule_service.ingest_schedule(db_session, parse_schedule(_payload()))

    assert (result.games, result.new_games, result.promotions, result.tickets) == (2, 2, 1, 2)
    promos = await schedule_service.promotions_for_game(db_session, 7001)
    assert promos[0].name == "Bobblehead Night"
    assert await inventory_service.count_tickets(db_session, 7002) == 0


@pytest.mark.asyncio
async def test_reingest_updates_instead_of_duplicating(db_session):
    await schedule_service.ingest_schedule(db_session, ScheduleData(games=[game_in(1)]))

    changed = game_in(1)
    changed.status_detailed = "Postponed"
    result = await schedule_service.ingest_schedule(db_session, ScheduleData(games=[changed]))

    assert result.new_games == 0
    games = await schedule_service.list_games(db_session)
    assert len(games) == 1
    assert games[0].status_detailed == "Postponed"


@pytest.mark.asyncio
async def test_list_games_filters(db_session, schedule):
    home_only = await schedule_service.list_games(db_session, home_only=True)
    assert {g.game_pk for g in home_only} == {schedule["home"], schedule["past"]}
    assert all(g.is_home for g in home_only)

    everything = await schedule_service.list_games(db_session)
    assert len(everything) == 3

    away = next(g for g in everything if g.game_pk == schedule["away"])
    assert away.opponent == "Los Angeles Dodgers"

    with pytest.raises(NotFoundError):
        await schedule_service.get_game(db_session, 123)
