from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from approval_flow import seed as seed_module
from approval_flow.models.employee import Employee
from approval_flow.services.directory import DatabaseDirectory

if TYPE_CHECKING:
    import pytest
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession


async def test_seed_is_idempotent(
    engine: AsyncEngine, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    monkeypatch.setattr(seed_module, "get_session_factory", lambda: factory)

    assert await seed_module.seed() == len(seed_module.EMPLOYEES)
    assert await seed_module.seed() == len(seed_module.EMPLOYEES)

    rows = (await db_session.execute(select(Employee))).scalars().all()
    assert len(rows) == len(seed_module.EMPLOYEES)

    directory = DatabaseDirectory(db_session)
    assert await directory.lookup_manager("alice@example.com") == "bob@example.com"
    assert await directory.lookup_manager("erin@example.com") is None


async def test_main_reports_seeded_chain(
    engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    monkeypatch.setattr(seed_module, "get_session_factory", lambda: factory)

    assert await seed_module._main() == 0

    out = capsys.readouterr().out
    assert f"Seeded {len(seed_module.EMPLOYEES)} employees" in out
    assert "reports to bob@example.com" in out
