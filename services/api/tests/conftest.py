"""Shared fixtures for the social graph service tests.

Every test gets a fresh in-memory SQLite database with the full schema, a
GraphService bound to it with a recording event publisher, and (for API
tests) an httpx client talking to the FastAPI app with get_db pointed at the
same database.
"""

from __future__ import annotations

import os

# Settings are read at import time; keep external systems out of tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("KAFKA_ENABLED", "false")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers tables
from app.database import Base, get_db
from app.graph_service import GraphService
from app.models import Account, Profile
from app.repositories import UnitOfWork


class RecordingPublisher:
    """Stands in for the Kafka publisher; keeps every event in order."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def __call__(self, event: dict[str, Any]) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e["event"] for e in self.events]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def uow(session: AsyncSession) -> UnitOfWork:
    return UnitOfWork(session)


@pytest.fixture
def graph(uow: UnitOfWork, publisher: RecordingPublisher) -> GraphService:
    return GraphService(uow, publisher=publisher)


@pytest.fixture
def make_account(session: AsyncSession) -> Callable[..., Awaitable[str]]:
    """Insert an account and return its id."""
    counter = 0

    async def _make(account_id: str | None = None, **fields: Any) -> str:
        nonlocal counter
        counter += 1
        fields.setdefault("username", f"user{counter}")
        fields.setdefault("password_hash", "not-a-real-hash")
        if account_id is not None:
            fields["id"] = account_id
        account = Account(**fields)
        session.add(account)
        await session.commit()
        return account.id

    return _make


@pytest.fixture
def make_profile(session: AsyncSession) -> Callable[..., Awaitable[str]]:
    """Insert a profile and return its id."""
    counter = 0

    async def _make(
        entity_type: str = "venue", profile_id: str | None = None, **fields: Any
    ) -> str:
        nonlocal counter
        counter += 1
        fields.setdefault("name", f"Profile {counter}")
        fields.setdefault("slug", f"profile-{counter}")
        if profile_id is not None:
            fields["id"] = profile_id
        profile = Profile(entity_type=entity_type, **fields)
        session.add(profile)
        await session.commit()
        return profile.id

    return _make


@pytest.fixture
def reload(session: AsyncSession) -> Callable[[type, str], Awaitable[Any]]:
    """Re-read a row from the database, ignoring anything cached in the session."""

    async def _reload(model: type, entity_id: str) -> Any:
        return await session.get(model, entity_id, populate_existing=True)

    return _reload


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the app with every request using the test database."""
    from app.main import app

    async def _test_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as http:
            yield http
    finally:
        app.dependency_overrides.clear()
