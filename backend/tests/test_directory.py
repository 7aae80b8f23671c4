"""Tests for the organisation directory implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from approval_flow.models.employee import Employee
from approval_flow.schemas.employee import EmployeeProfile
from approval_flow.services.directory import (
    DatabaseDirectory,
    InMemoryDirectory,
    OrganizationDirectory,
    get_directory_override,
    set_directory,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ---------------------------------------------------------------------------
# InMemoryDirectory
# ---------------------------------------------------------------------------


async def test_in_memory_lookup_manager() -> None:
    svc = InMemoryDirectory()
    svc.seed(EmployeeProfile(email="alice@x.com", reports_to="bob@x.com"))
    assert await svc.lookup_manager("alice@x.com") == "bob@x.com"


async def test_in_memory_unknown_employee_has_no_manager() -> None:
    svc = InMemoryDirectory()
    assert await svc.lookup_manager("ghost@x.com") is None
    assert await svc.get_profile("ghost@x.com") is None


async def test_in_memory_get_profile() -> None:
    svc = InMemoryDirectory()
    svc.seed(EmployeeProfile(email="bob@x.com", role="Manager", department="IT"))
    profile = await svc.get_profile("bob@x.com")
    assert profile is not None
    assert profile.role == "Manager"
    assert profile.reports_to is None


async def test_implementations_satisfy_protocol(db_session: AsyncSession) -> None:
    assert isinstance(InMemoryDirectory(), OrganizationDirectory)
    assert isinstance(DatabaseDirectory(db_session), OrganizationDirectory)


def test_override_round_trip() -> None:
    svc = InMemoryDirectory()
    set_directory(svc)
    try:
        assert get_directory_override() is svc
    finally:
        set_directory(None)
    assert get_directory_override() is None


# ---------------------------------------------------------------------------
# DatabaseDirectory
# ---------------------------------------------------------------------------


async def test_database_directory_reads_employees_table(db_session: AsyncSession) -> None:
    db_session.add_all(
        [
            Employee(email="alice@x.com", full_name="Alice", reports_to="bob@x.com", role="Engineer"),
            Employee(email="bob@x.com", full_name="Bob", reports_to=None, role="Manager"),
        ]
    )
    await db_session.commit()
    svc = DatabaseDirectory(db_session)

    assert await svc.lookup_manager("alice@x.com") == "bob@x.com"
    assert await svc.lookup_manager("bob@x.com") is None
    assert await svc.lookup_manager("ghost@x.com") is None

    profile = await svc.get_profile("alice@x.com")
    assert profile == EmployeeProfile(
        email="alice@x.com", full_name="Alice", reports_to="bob@x.com", role="Engineer", department=None
    )
    assert await svc.get_profile("ghost@x.com") is None


async def test_database_directory_ignores_email_case(db_session: AsyncSession) -> None:
    db_session.add(Employee(email="Alice@X.com", full_name="Alice", reports_to="Bob@X.com"))
    await db_session.commit()
    svc = DatabaseDirectory(db_session)

    assert await svc.lookup_manager("alice@x.com") == "bob@x.com"
    profile = await svc.get_profile("ALICE@x.com")
    assert profile is not None
    assert profile.email == "alice@x.com"
    assert profile.reports_to == "bob@x.com"


async def test_in_memory_directory_ignores_email_case() -> None:
    svc = InMemoryDirectory()
    svc.seed(EmployeeProfile(email="Alice@X.com", reports_to="Bob@X.com"))

    assert await svc.lookup_manager("alice@x.com") == "bob@x.com"
    assert await svc.lookup_manager("ALICE@X.COM") == "bob@x.com"
