from __future__ import annotations

from sqlmodel import Field, SQLModel


class Employee(SQLModel, table=True):
    """Organisation directory entry. Read-only to the request workflow."""

    __tablename__ = "employees"

    email: str = Field(primary_key=True, max_length=320)
    full_name: str | None = Field(default=None, max_length=255)
    reports_to: str | None = Field(default=None, max_length=320, index=True)
    role: str | None = Field(default=None, max_length=100)
    department: str | None = Field(default=None, max_length=100)
