"""
Schedule records ingested from the league schedule feed.

Games are keyed by the feed's own game_pk and upserted, never duplicated.
Promotions are keyed by (offer_id, game_pk).
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from ticket_manager.core.config import get_settings
from ticket_manager.db.base import Base, TimestampMixin

settings = get_settings()


class Game(Base, TimestampMixin):
    __tablename__ = "games"

    game_pk = Column(Integer, primary_key=True, autoincrement=False)
    game_guid = Column(String(64), nullable=True)
    game_type = Column(String(4), nullable=False, default="R")
    season = Column(String(8), nullable=False)
    game_date = Column(DateTime(timezone=True), nullable=False)
    official_date = Column(Date, nullable=False)
    status_abstract = Column(String(32), nullable=False, default="Preview")
    status_detailed = Column(String(64), nullable=False, default="Scheduled")
    status_code = Column(String(8), nullable=False, default="S")
    start_time_tbd = Column(Boolean, nullable=False, default=False)
    away_team_id = Column(Integer, nullable=False)
    away_team_name = Column(String(128), nullable=False)
    away_score = Column(Integer, nullable=True)
    away_is_winner = Column(Boolean, nullable=True)
    home_team_id = Column(Integer, nullable=False)
    home_team_name = Column(String(128), nullable=False)
    home_score = Column(Integer, nullable=True)
    home_is_winner = Column(Boolean, nullable=True)
    venue_id = Column(Integer, nullable=False)
    venue_name = Column(String(128), nullable=False)
    day_night = Column(String(8), nullable=True)
    description = Column(Text, nullable=True)
    series_description = Column(String(128), nullable=True)
    series_game_number = Column(Integer, nullable=True)
    games_in_series = Column(Integer, nullable=True)
    double_header = Column(String(1), nullable=False, default="N")
    game_number = Column(Integer, nullable=False, default=1)
    scheduled_innings = Column(Integer, nullable=False, default=9)
    is_tie = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_games_game_date", "game_date"),
        Index("ix_games_home_team_date", "home_team_id", "game_date"),
    )

    @classmethod
    def is_home_clause(cls):
        """SQL predicate selecting games hosted by the tracked team."""
        return cls.home_team_id == settings.TEAM_ID

    @property
    def is_home(self) -> bool:
        return self.home_team_id == settings.TEAM_ID

    @property
    def opponent(self) -> str:
        return self.away_team_name if self.is_home else self.home_team_name

    def starts_after(self, moment: datetime) -> bool:
        starts = self.game_date
        # SQLite hands back naive datetimes; everything is stored in UTC
        if starts.tzinfo is None:
            starts = starts.replace(tzinfo=timezone.utc)
        return starts > moment

    def __repr__(self) -> str:
        return f"<Game(game_pk={self.game_pk}, date={self.official_date}, home={self.home_team_name})>"


class Promotion(Base, TimestampMixin):
    __tablename__ = "promotions"

    offer_id = Column(Integer, primary_key=True, autoincrement=False)
    game_pk = Column(Integer, ForeignKey("games.game_pk"), primary_key=True)
    name = Column(String(255), nullable=False)
    offer_type = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    distribution = Column(String(255), nullable=True)
    presented_by = Column(String(255), nullable=True)
    alt_page_url = Column(String(512), nullable=True)
    ticket_link = Column(String(512), nullable=True)
    thumbnail_url = Column(String(512), nullable=True)
    image_url = Column(String(512), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Promotion(offer_id={self.offer_id}, game_pk={self.game_pk}, name={self.name})>"
