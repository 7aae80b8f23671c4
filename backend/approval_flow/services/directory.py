from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import func, select
from sqlmodel import col

from approval_flow.models.employee import Employee
from approval_flow.schemas.employee import EmployeeProfile

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@runtime_checkable
class OrganizationDirectory(Protocol):
    """Interface for the organisation directory."""

    async def get_profile(self, email: str) -> EmployeeProfile | None:
        """Fetch an employee profile. Returns None if not found."""
        ...

    async def lookup_manager(self, email: str) -> str | None:
        """Return the email of the employee's direct manager, if any."""
        ...


def _normalize(email: str | None) -> str | None:
    return email.strip().lower() if email else email


class DatabaseDirectory:
    """Directory backed by the ``employees`` table, read through the caller's session.

    Emails are matched case-insensitively and returned lower-cased.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get(self, email: str) -> Employee | None:
        result = await self._session.execute(
            select(Employee).where(func.lower(col(Employee.email)) == _normalize(email))
        )
        return result.scalars().first()

    async def get_profile(self, email: str) -> EmployeeProfile | None:
        employee = await self._get(email)
        if employee is None:
            return None
        profile = EmployeeProfile.model_validate(employee, from_attributes=True)
        return profile.model_copy(
            update={"email": _normalize(profile.email), "reports_to": _normalize(profile.reports_to)}
        )

    async def lookup_manager(self, email: str) -> str | None:
        employee = await self._get(email)
        return _normalize(employee.reports_to) if employee is not None else None


class InMemoryDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._profiles: dict[str, EmployeeProfile] = {}

    def seed(self, profile: EmployeeProfile) -> None:
        """Seed a profile for testing."""
        email = _normalize(profile.email) or profile.email
        self._profiles[email] = profile.model_copy(
            update={"email": email, "reports_to": _normalize(profile.reports_to)}
        )

    async def get_profile(self, email: str) -> EmployeeProfile | None:
        return self._profiles.get(_normalize(email) or email)

    async def lookup_manager(self, email: str) -> str | None:
        profile = self._profiles.get(_normalize(email) or email)
        return profile.reports_to if profile is not None else None


_directory: OrganizationDirectory | None = None


def get_directory_override() -> OrganizationDirectory | None:
    """Return the directory installed with :func:`set_directory`, if any."""
    return _directory


def set_directory(directory: OrganizationDirectory | None) -> None:
    """Override the directory (for testing or production wiring). ``None`` restores the database."""
    global _directory
    _directory = directory
