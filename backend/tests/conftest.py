from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from approval_flow.db import get_session
from approval_flow.main import app
from approval_flow.models import SQLModel
from approval_flow.schemas.employee import EmployeeProfile
from approval_flow.services.blob_store import InMemoryBlobStore, set_blob_store
from approval_flow.services.directory import InMemoryDirectory, set_directory

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

ALICE = "alice@x.com"
BOB = "bob@x.com"
CAROL = "carol@x.com"
DANA = "dana@x.com"
ERIN = "erin@x.com"

# alice -> bob -> carol -> dana; erin has no manager.
REPORTING_CHAIN = {
    ALICE: BOB,
    BOB: CAROL,
    CAROL: DANA,
    DANA: None,
    ERIN: None,
}


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test, with every table created."""
    _engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a session whose commits and rollbacks hit the test database directly."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def directory() -> InMemoryDirectory:
    """Directory seeded with the test reporting chain."""
    svc = InMemoryDirectory()
    for email, manager in REPORTING_CHAIN.items():
        svc.seed(EmployeeProfile(email=email, full_name=email.split("@")[0].title(), reports_to=manager))
    return svc


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    directory: InMemoryDirectory,
    blobs: InMemoryBlobStore,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the session, directory and blob store overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    set_directory(directory)
    set_blob_store(blobs)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    set_directory(None)
    set_blob_store(None)
