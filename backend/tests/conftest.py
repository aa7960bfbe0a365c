from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_approval.db import get_session
from leave_approval.main import app
from leave_approval.models import SQLModel, StaffMember
from leave_approval.services.notifier import InMemoryApproverNotifier, get_notifier, set_notifier

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an async engine with all tables.

    Defaults to a private in-memory SQLite database; set TEST_DATABASE_URL to
    run against Postgres.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        _engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        _engine = create_async_engine(TEST_DATABASE_URL)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def notifier() -> Iterator[InMemoryApproverNotifier]:
    """Swap in a fresh in-memory notifier for the test."""
    previous = get_notifier()
    fresh = InMemoryApproverNotifier()
    set_notifier(fresh)
    yield fresh
    set_notifier(previous)


@pytest.fixture
def add_staff(db_session: AsyncSession) -> Callable[..., Awaitable[StaffMember]]:
    """Insert a staff member; keyword arguments override the defaults."""

    async def _add(staff_id: str, **overrides: object) -> StaffMember:
        values: dict[str, object] = {
            "staff_id": staff_id,
            "first_name": overrides.pop("first_name", staff_id),
            "last_name": "Mensah",
            "email": f"{staff_id.lower()}@mofad.gov.gh",
            "grade": "",
            "position": "",
        }
        values.update(overrides)
        staff = StaffMember(**values)  # type: ignore[arg-type]
        db_session.add(staff)
        await db_session.flush()
        return staff

    return _add
