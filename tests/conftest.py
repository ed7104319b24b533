"""Shared test fixtures.

Tests run against an in-memory SQLite database created from the ORM
metadata; Redis is left uninitialized so rate limiting and realtime
publishing are skipped unless a test passes its own mock.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, time, timezone

os.environ["NUDGE_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NUDGE_EMAIL_PROVIDER"] = "stub"
os.environ["NUDGE_LOG_FORMAT"] = "console"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.jwt import create_access_token
from nudge.config import get_settings
from nudge.database import close_db, get_engine, get_session_factory, init_db
from nudge.db.base import Base
from nudge.db.models import Friendship, Profile, StudyBlock, StudyClass
from nudge.main import create_app
from nudge.ws.manager import manager

get_settings.cache_clear()

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"
CAROL = "33333333-3333-3333-3333-333333333333"


def auth_headers(user_id: str, email: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """A session on a fresh schema."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with get_session_factory()() as session:
        yield session
    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the app, sharing the database with ``db_session``."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    manager._connections.clear()
    manager._channels.clear()
    manager._user_connections.clear()


@pytest_asyncio.fixture
async def make_profile(db_session: AsyncSession) -> Callable[..., Awaitable[Profile]]:
    async def _make(user_id: str, username: str, display_name: str | None = None, **fields: object) -> Profile:
        profile = Profile(user_id=user_id, username=username, display_name=display_name or username.title(), **fields)
        db_session.add(profile)
        await db_session.commit()
        return profile

    return _make


@pytest_asyncio.fixture
async def make_class(db_session: AsyncSession) -> Callable[..., Awaitable[StudyClass]]:
    async def _make(user_id: str, name: str = "Biology", **fields: object) -> StudyClass:
        study_class = StudyClass(user_id=user_id, name=name, **fields)
        db_session.add(study_class)
        await db_session.commit()
        return study_class

    return _make


@pytest_asyncio.fixture
async def make_block(db_session: AsyncSession) -> Callable[..., Awaitable[StudyBlock]]:
    async def _make(
        study_class: StudyClass,
        block_date: date,
        start_time: time | None = None,
        duration_minutes: int = 60,
    ) -> StudyBlock:
        block = StudyBlock(
            user_id=study_class.user_id,
            class_id=study_class.id,
            block_date=block_date,
            start_time=start_time,
            duration_minutes=duration_minutes,
        )
        db_session.add(block)
        await db_session.commit()
        return block

    return _make


@pytest_asyncio.fixture
async def befriend(db_session: AsyncSession) -> Callable[[str, str], Awaitable[None]]:
    async def _befriend(user_id: str, friend_id: str) -> None:
        db_session.add(Friendship(user_id=user_id, friend_id=friend_id))
        await db_session.commit()

    return _befriend


def noon_utc(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, 12, 0, tzinfo=timezone.utc)
