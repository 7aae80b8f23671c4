# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from approval_flow.models.base import TimestampMixin, UUIDBase, now_utc
from approval_flow.models.enums import RequestStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in RequestStatus)


class ApprovalRequest(UUIDBase, TimestampMixin, table=True):
    """A request routed through the reporting hierarchy for approval."""

    __tablename__ = "requests"
    __table_args__ = (
        sa.CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_requests_status"),
        sa.Index("ix_requests_created_by_created_at", "created_by", "created_at"),
    )

    title: str = Field(default="", max_length=255)
    description: str = Field(default="", sa_type=sa.Text)
    status: str = Field(
        default=RequestStatus.DRAFT, max_length=50, index=True, sa_column_kwargs={"server_default": "DRAFT"}
    )
    created_by: str = Field(max_length=320)
    current_approver: str | None = Field(default=None, max_length=320, index=True)
    updated_at: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
