"""
Pytest fixtures for test database, client, and authentication.

Every test gets its own SQLite database file (aiosqlite) with the schema
created from the models, so tests never share state.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticket_manager.main import app
from ticket_manager.core.config import get_settings
from ticket_manager.core.security import Identity, create_access_token
from ticket_manager.db.base import Base
from ticket_manager.db.session import get_db
from ticket_manager.models.seat import Seat
from ticket_manager.models.user import User
from ticket_manager.schemas.game import GameIn, ScheduleData
from ticket_manager.services import schedule_service, seat_service, user_service

settings = get_settings()

HOME = settings.TEAM_ID
VISITOR = 119


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def make_engine(path) -> AsyncEngine:
    """Fresh SQLite database at `path` with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


async def race(engine: AsyncEngine, *calls):
    """
    Run every `call(session)` at once, each on its own session.

    Returns results and raised errors in call order.
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def run(call):
        async with session_factory() as session:
            return await call(session)

    return await asyncio.gather(*(run(call) for call in calls), return_exceptions=True)


def game_in(
    game_pk: int,
    home: bool = True,
    days: int = 30,
    opponent: str = "Los Angeles Dodgers",
) -> GameIn:
    """A schedule record `days` from now; home or away for the tracked team."""
    starts = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=days)
    home_id, home_name = (HOME, settings.TEAM_NAME) if home else (VISITOR, opponent)
    away_id, away_name = (VISITOR, opponent) if home else (HOME, settings.TEAM_NAME)
    return GameIn(
        game_pk=game_pk,
        season=str(starts.year),
        game_date=starts,
        official_date=starts.date(),
        away_team_id=away_id,
        away_team_name=away_name,
        home_team_id=home_id,
        home_team_name=home_name,
        venue_id=2395 if home else 22,
        venue_name="Oracle Park" if home else "Dodger Stadium",
    )


def bearer(sub: str, email: Optional[str] = None, name: Optional[str] = None, roles=None) -> dict:
    token = create_access_token(sub, email=email, name=name, roles=roles)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = await make_engine(tmp_path / "test.db")
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """First user provisioned, therefore admin."""
    return await user_service.resolve_user(
        db_session, Identity(sub="admin-sub", email="admin@example.com", name="Ada Admin")
    )


@pytest_asyncio.fixture
async def member_user(db_session: AsyncSession, admin_user: User) -> User:
    return await user_service.resolve_user(
        db_session, Identity(sub="member-sub", email="member@example.com", name="Mo Member")
    )


@pytest_asyncio.fixture
async def other_member(db_session: AsyncSession, admin_user: User) -> User:
    return await user_service.resolve_user(
        db_session, Identity(sub="other-sub", email="other@example.com", name="Olive Other")
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return bearer("admin-sub", "admin@example.com", "Ada Admin")


@pytest.fixture
def member_headers(member_user: User) -> dict:
    return bearer("member-sub", "member@example.com", "Mo Member")


@pytest_asyncio.fixture
async def schedule(db_session: AsyncSession) -> dict:
    """Future home game 1001, away game 1002, past home game 1003."""
    data = ScheduleData(
        games=[
            game_in(1001, home=True, days=30),
            game_in(1002, home=False, days=31),
            game_in(1003, home=True, days=-2, opponent="San Diego Padres"),
        ]
    )
    await schedule_service.ingest_schedule(db_session, data)
    return {"home": 1001, "away": 1002, "past": 1003}


@pytest_asyncio.fixture
async def seats(db_session: AsyncSession) -> list[Seat]:
    """Section 121 row E seats 1 and 2."""
    return await seat_service.register_seats(db_session, "121", "E", 1, 2)
