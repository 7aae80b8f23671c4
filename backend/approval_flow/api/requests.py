# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from approval_flow.api.deps import AuthDep, BlobStoreDep, DirectoryDep, read_uploads
from approval_flow.db import SessionDep
from approval_flow.models.enums import RequestStatus
from approval_flow.schemas.audit import AuditHistoryResponse
from approval_flow.schemas.document import DocumentListResponse
from approval_flow.schemas.request import (
    ApprovalActionPayload,
    EditRequestPayload,
    RequestListResponse,
    RequestResponse,
    SubmitRequestPayload,
)
from approval_flow.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    session: SessionDep,
    auth: AuthDep,
    blobs: BlobStoreDep,
    directory: DirectoryDep,
    title: Annotated[str, Form(max_length=255)] = "",
    description: Annotated[str, Form()] = "",
    as_draft: Annotated[bool, Form()] = False,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> RequestResponse:
    """Create a request, as a draft or submitted to the caller's manager."""
    payload = SubmitRequestPayload(title=title, description=description, as_draft=as_draft)
    new_files = await read_uploads(files)
    return await request_service.submit_request(session, blobs, directory, auth.email, payload, new_files)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
) -> RequestListResponse:
    """List requests created by the caller, newest first."""
    return await request_service.list_created_requests(session, auth.email, status_filter)


@requests_router.get("/pending", response_model=RequestListResponse)
async def list_pending(
    session: SessionDep,
    auth: AuthDep,
) -> RequestListResponse:
    """List pending requests waiting on the caller."""
    return await request_service.list_pending_approvals(session, auth.email)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single request."""
    return await request_service.get_request(session, auth.email, request_id)


@requests_router.put("/{request_id}", response_model=RequestResponse)
async def edit_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    blobs: BlobStoreDep,
    directory: DirectoryDep,
    title: Annotated[str, Form(max_length=255)] = "",
    description: Annotated[str, Form()] = "",
    resubmit: Annotated[bool, Form()] = False,
    deleted_document_ids: Annotated[list[uuid.UUID] | None, Form()] = None,
    expected_version: Annotated[int | None, Form()] = None,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> RequestResponse:
    """Save edits to a draft or returned request, optionally resubmitting it."""
    payload = EditRequestPayload(
        title=title,
        description=description,
        resubmit=resubmit,
        deleted_document_ids=deleted_document_ids or [],
        expected_version=expected_version,
    )
    new_files = await read_uploads(files)
    return await request_service.edit_request(session, blobs, directory, auth.email, request_id, payload, new_files)


@requests_router.post("/{request_id}/actions", response_model=RequestResponse)
async def act_on_request(
    request_id: uuid.UUID,
    payload: ApprovalActionPayload,
    session: SessionDep,
    auth: AuthDep,
    directory: DirectoryDep,
) -> RequestResponse:
    """Approve, reject, return for edit, or forward a pending request."""
    return await request_service.act_on_approval(session, directory, auth.email, request_id, payload)


@requests_router.get("/{request_id}/documents", response_model=DocumentListResponse)
async def list_documents(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> DocumentListResponse:
    """List a request's documents in arrival order."""
    items = await request_service.list_request_documents(session, auth.email, request_id)
    return DocumentListResponse(items=items)


@requests_router.get("/{request_id}/history", response_model=AuditHistoryResponse)
async def get_history(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AuditHistoryResponse:
    """Return a request's audit history, oldest first."""
    items = await request_service.get_history(session, auth.email, request_id)
    return AuditHistoryResponse(items=items)
