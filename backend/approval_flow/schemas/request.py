# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from approval_flow.models.enums import ApprovalDecision, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitRequestPayload(BaseModel):
    """Body for creating a request, either as a draft or submitted straight away."""

    title: str = Field(default="", max_length=255)
    description: str = ""
    as_draft: bool = False


class EditRequestPayload(BaseModel):
    """Body for editing a draft or returned request."""

    title: str = Field(default="", max_length=255)
    description: str = ""
    deleted_document_ids: list[uuid.UUID] = Field(default_factory=list)
    resubmit: bool = False
    expected_version: int | None = None


class ApprovalActionPayload(BaseModel):
    """Body for an approver's decision on a pending request."""

    action: ApprovalDecision
    comment: str = Field(default="", max_length=2000)
    expected_version: int | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single request."""

    id: uuid.UUID
    title: str
    description: str
    status: RequestStatus
    created_by: str
    current_approver: str | None
    created_at: datetime
    updated_at: datetime
    version: int


class RequestListResponse(BaseModel):
    """List of requests."""

    items: list[RequestResponse]
    total: int
