from __future__ import annotations

from pydantic import BaseModel


class EmployeeProfile(BaseModel):
    """Directory profile of an employee."""

    email: str
    full_name: str | None = None
    reports_to: str | None = None
    role: str | None = None
    department: str | None = None
