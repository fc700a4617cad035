"""
Pydantic schemas for schedule records.

GameIn / PromotionIn are what the schedule client produces and what the
ingestion service consumes; the *Response models are the API view.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class GameIn(BaseModel):
    game_pk: int
    game_guid: Optional[str] = None
    game_type: str = "R"
    season: str
    game_date: datetime
    official_date: date
    status_abstract: str = "Preview"
    status_detailed: str = "Scheduled"
    status_code: str = "S"
    start_time_tbd: bool = False
    away_team_id: int
    away_team_name: str
    away_score: Optional[int] = None
    away_is_winner: Optional[bool] = None
    home_team_id: int
    home_team_name: str
    home_score: Optional[int] = None
    home_is_winner: Optional[bool] = None
    venue_id: int
    venue_name: str
    day_night: Optional[str] = None
    description: Optional[str] = None
    series_description: Optional[str] = None
    series_game_number: Optional[int] = None
    games_in_series: Optional[int] = None
    double_header: str = "N"
    game_number: int = 1
    scheduled_innings: int = 9
    is_tie: bool = False


class PromotionIn(BaseModel):
    offer_id: int
    game_pk: int
    name: str
    offer_type: Optional[str] = None
    description: Optional[str] = None
    distribution: Optional[str] = None
    presented_by: Optional[str] = None
    alt_page_url: Optional[str] = None
    ticket_link: Optional[str] = None
    thumbnail_url: Optional[str] = None
    image_url: Optional[str] = None
    display_order: int = 0


class ScheduleData(BaseModel):
    games: list[GameIn] = Field(default_factory=list)
    promotions: list[PromotionIn] = Field(default_factory=list)


class GameResponse(GameIn):
    is_home: bool
    opponent: str

    model_config = {"from_attributes": True}


class PromotionResponse(PromotionIn):
    model_config = {"from_attributes": True}


class ScrapeScheduleRequest(BaseModel):
    season: Optional[int] = Field(None, ge=1900, le=2200)


class IngestResponse(BaseModel):
    games: int
    new_games: int
    promotions: int
    tickets: int
