# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from approval_flow.models.base import UUIDBase, now_utc
from approval_flow.models.enums import AuditAction

_ACTION_VALUES = ", ".join(f"'{a.value}'" for a in AuditAction)


class RequestAuditLog(UUIDBase, table=True):
    """Immutable record of one lifecycle transition of a request."""

    __tablename__ = "request_audit_logs"
    __table_args__ = (
        sa.CheckConstraint(f"action IN ({_ACTION_VALUES})", name="ck_request_audit_logs_action"),
        sa.UniqueConstraint("request_id", "sequence", name="uq_request_audit_logs_sequence"),
    )

    request_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    sequence: int
    action: str = Field(max_length=50)
    acted_by: str = Field(max_length=320)
    acted_to: str | None = Field(default=None, max_length=320)
    comment: str | None = Field(default=None, sa_type=sa.Text)
    occurred_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
