# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from approval_flow.models.enums import AuditAction


class AuditEntryResponse(BaseModel):
    """One entry of a request's history."""

    id: uuid.UUID
    request_id: uuid.UUID
    sequence: int
    action: AuditAction
    acted_by: str
    acted_to: str | None
    comment: str | None
    occurred_at: datetime


class AuditHistoryResponse(BaseModel):
    """Full history of a request, oldest first."""

    items: list[AuditEntryResponse]
