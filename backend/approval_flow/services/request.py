# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col

from approval_flow.exceptions import (
    AppError,
    AuthorizationError,
    ConflictError,
    DocumentStoreError,
    NotFoundError,
    RoutingError,
    StorageError,
    ValidationError,
)
from approval_flow.models.audit import RequestAuditLog
from approval_flow.models.base import now_utc
from approval_flow.models.document import Document
from approval_flow.models.enums import EDITABLE_STATUSES, ApprovalDecision, AuditAction, RequestStatus
from approval_flow.models.request import ApprovalRequest
from approval_flow.schemas.request import RequestListResponse, RequestResponse
from approval_flow.services.audit import append_entry, build_audit_entry_response, history
from approval_flow.services.document import (
    build_document_response,
    discard_blobs,
    list_documents,
    reconcile_documents,
    resolve_public_locator,
    upload_documents,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from approval_flow.schemas.audit import AuditEntryResponse
    from approval_flow.schemas.document import DocumentResponse, NewFile
    from approval_flow.schemas.request import ApprovalActionPayload, EditRequestPayload, SubmitRequestPayload
    from approval_flow.services.blob_store import BlobStore
    from approval_flow.services.directory import OrganizationDirectory

logger = logging.getLogger(__name__)

SUBMITTED_COMMENT = "Request submitted"
RESUBMITTED_COMMENT = "Request resubmitted after edit"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(request: ApprovalRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        title=request.title,
        description=request.description,
        status=_parse_status(request.status),
        created_by=request.created_by,
        current_approver=request.current_approver,
        created_at=request.created_at,
        updated_at=request.updated_at,
        version=request.version,
    )


def _parse_status(value: str) -> RequestStatus:
    """Parse a stored status, failing closed on unknown values."""
    try:
        return RequestStatus(value)
    except ValueError:
        raise StorageError(f"Unrecognized request status {value!r}") from None


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> ApprovalRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    result = await session.execute(select(ApprovalRequest).where(col(ApprovalRequest.id) == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")
    return request


async def _ensure_visible(session: AsyncSession, request: ApprovalRequest, actor: str) -> None:
    """Raise 404 unless the actor created, holds, or took part in the request.

    Drafts are visible to their creator only.
    """
    if request.created_by == actor:
        return
    if _parse_status(request.status) is RequestStatus.DRAFT:
        raise NotFoundError("Request not found")
    if request.current_approver == actor:
        return
    if not await _has_taken_part(session, request, actor):
        raise NotFoundError("Request not found")


async def _has_taken_part(session: AsyncSession, request: ApprovalRequest, actor: str) -> bool:
    """True if the actor created the request or appears in its history."""
    if request.created_by == actor:
        return True
    result = await session.execute(
        select(func.count())
        .select_from(RequestAuditLog)
        .where(
            col(RequestAuditLog.request_id) == request.id,
            or_(col(RequestAuditLog.acted_by) == actor, col(RequestAuditLog.acted_to) == actor),
        )
    )
    return result.scalar_one() > 0


def _is_stale(request: ApprovalRequest, expected_version: int | None) -> bool:
    return expected_version is not None and expected_version != request.version


def _check_expected_version(request: ApprovalRequest, expected_version: int | None) -> None:
    """Reject callers acting on a stale view of the request."""
    if _is_stale(request, expected_version):
        raise ConflictError()


def _require_title(title: str) -> None:
    if not title.strip():
        raise ValidationError("Title required")


def _require_comment(comment: str | None) -> str:
    stripped = (comment or "").strip()
    if not stripped:
        raise ValidationError("Comment required")
    return stripped


async def _resolve_approver(directory: OrganizationDirectory, email: str) -> str:
    """Return the manager of ``email``, lower-cased. A missing manager is a hard stop."""
    manager = await directory.lookup_manager(email)
    if not manager or not manager.strip():
        raise RoutingError()
    # Actors are compared lower-cased; see api.deps.get_auth_context.
    return manager.strip().lower()


async def _compare_and_swap(
    session: AsyncSession,
    request: ApprovalRequest,
    *,
    expected_status: RequestStatus,
    values: dict[str, Any],
    expected_approver: str | None = None,
) -> None:
    """Update the request row only if it still matches what the caller read.

    The row must still carry the version, status and (when given) approver
    observed at load time; otherwise another transition committed first.
    """
    stmt = update(ApprovalRequest).where(
        col(ApprovalRequest.id) == request.id,
        col(ApprovalRequest.version) == request.version,
        col(ApprovalRequest.status) == expected_status.value,
    )
    if expected_approver is not None:
        stmt = stmt.where(col(ApprovalRequest.current_approver) == expected_approver)

    result = await session.execute(
        stmt.values(**values, version=request.version + 1, updated_at=now_utc()).execution_options(
            synchronize_session=False
        )
    )
    if result.rowcount != 1:  # ty: ignore[unresolved-attribute]
        raise ConflictError()
    await session.refresh(request)


async def _compensate(session: AsyncSession, blobs: BlobStore, exc: DocumentStoreError) -> None:
    """Undo what a failed reconciliation left outside the rolled-back transaction.

    Blobs written by the attempt are discarded; rows of documents whose blobs
    were already removed are deleted so no row points at a missing blob.
    """
    await discard_blobs(blobs, exc.stored_paths)
    if not exc.removed_ids:
        return
    try:
        await session.execute(
            delete(Document).where(col(Document.id).in_([uuid.UUID(i) for i in exc.removed_ids]))
        )
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Could not delete rows of removed documents %s", exc.removed_ids)
        return
    logger.warning("Deleted rows of documents whose blobs were removed before failure: %s", exc.removed_ids)


@asynccontextmanager
async def _transaction(session: AsyncSession, blobs: BlobStore | None = None) -> AsyncIterator[None]:
    """Commit the enclosed transition, or roll it back and surface the error."""
    try:
        yield
        await session.commit()
    except DocumentStoreError as exc:
        await session.rollback()
        if blobs is not None:
            await _compensate(session, blobs, exc)
        raise
    except AppError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Database failure during request transition")
        raise StorageError() from exc


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def submit_request(
    session: AsyncSession,
    blobs: BlobStore,
    directory: OrganizationDirectory,
    actor: str,
    payload: SubmitRequestPayload,
    files: Sequence[NewFile] = (),
) -> RequestResponse:
    """Create a request, either as a draft or submitted to the actor's manager.

    Flow:
    1. Validate the title and resolve the approver (submit only)
    2. Insert the request row
    3. Upload attached files against the new id
    4. Append SUBMITTED (submit only)
    5. Commit
    """
    approver: str | None = None
    status = RequestStatus.DRAFT
    if not payload.as_draft:
        _require_title(payload.title)
        approver = await _resolve_approver(directory, actor)
        status = RequestStatus.PENDING

    request = ApprovalRequest(
        title=payload.title,
        description=payload.description,
        status=status.value,
        created_by=actor,
        current_approver=approver,
    )

    async with _transaction(session, blobs):
        session.add(request)
        await session.flush()
        await upload_documents(session, blobs, request.id, files)
        if status is RequestStatus.PENDING:
            await append_entry(
                session,
                request_id=request.id,
                action=AuditAction.SUBMITTED,
                acted_by=actor,
                acted_to=approver,
                comment=SUBMITTED_COMMENT,
            )

    await session.refresh(request)
    logger.info("Request %s created by %s status=%s approver=%s", request.id, actor, status, approver)
    return build_request_response(request)


async def edit_request(
    session: AsyncSession,
    blobs: BlobStore,
    directory: OrganizationDirectory,
    actor: str,
    request_id: uuid.UUID,
    payload: EditRequestPayload,
    files: Sequence[NewFile] = (),
) -> RequestResponse:
    """Save edits to a draft or returned request, optionally resubmitting it.

    Saving keeps the status and writes no audit entry. Resubmitting routes
    the request to the creator's manager and appends SUBMITTED. Documents
    are reconciled (delete, then upload) in both cases.
    """
    request = await _get_request_or_404(session, request_id)
    if request.created_by != actor:
        raise AuthorizationError("Not authorized to edit this request")

    _check_expected_version(request, payload.expected_version)

    status = _parse_status(request.status)
    if status not in EDITABLE_STATUSES:
        raise ConflictError(f"Request in status {status} cannot be edited")

    values: dict[str, Any] = {"title": payload.title, "description": payload.description}
    approver: str | None = None
    if payload.resubmit:
        _require_title(payload.title)
        approver = await _resolve_approver(directory, actor)
        values["status"] = RequestStatus.PENDING.value
        values["current_approver"] = approver

    async with _transaction(session, blobs):
        await _compare_and_swap(session, request, expected_status=status, values=values)
        await reconcile_documents(session, blobs, request.id, payload.deleted_document_ids, files)
        if payload.resubmit:
            await append_entry(
                session,
                request_id=request.id,
                action=AuditAction.SUBMITTED,
                acted_by=actor,
                acted_to=approver,
                comment=RESUBMITTED_COMMENT,
            )

    await session.refresh(request)
    if payload.resubmit:
        logger.info("Request %s resubmitted by %s to %s", request.id, actor, approver)
    else:
        logger.info("Request %s saved by %s", request.id, actor)
    return build_request_response(request)


async def act_on_approval(
    session: AsyncSession,
    directory: OrganizationDirectory,
    actor: str,
    request_id: uuid.UUID,
    payload: ApprovalActionPayload,
) -> RequestResponse:
    """Apply the current approver's decision to a pending request.

    APPROVE and REJECT are terminal. REJECT_WITH_EDIT hands the request back
    to its creator. FORWARD routes it to the actor's own manager.

    Only the current approver may act. An earlier participant acting on a
    stale version lost a race and gets a conflict; anyone else is refused.
    """
    request = await _get_request_or_404(session, request_id)
    if request.current_approver is None or request.current_approver != actor:
        if _is_stale(request, payload.expected_version) and await _has_taken_part(session, request, actor):
            raise ConflictError()
        raise AuthorizationError("Not authorized to act on this request")

    _check_expected_version(request, payload.expected_version)

    if _parse_status(request.status) is not RequestStatus.PENDING:
        raise ConflictError("Only pending requests can be acted on")

    comment = _require_comment(payload.comment)

    match payload.action:
        case ApprovalDecision.APPROVE:
            new_status, next_approver, action = RequestStatus.APPROVED, None, AuditAction.APPROVED
        case ApprovalDecision.REJECT:
            new_status, next_approver, action = RequestStatus.REJECTED, None, AuditAction.REJECTED
        case ApprovalDecision.REJECT_WITH_EDIT:
            new_status, next_approver, action = (
                RequestStatus.REJECTED_WITH_EDIT,
                request.created_by,
                AuditAction.REJECTED_WITH_EDIT,
            )
        case ApprovalDecision.FORWARD:
            new_status, next_approver, action = (
                RequestStatus.PENDING,
                await _resolve_approver(directory, actor),
                AuditAction.FORWARDED,
            )

    async with _transaction(session):
        await _compare_and_swap(
            session,
            request,
            expected_status=RequestStatus.PENDING,
            expected_approver=actor,
            values={"status": new_status.value, "current_approver": next_approver},
        )
        await append_entry(
            session,
            request_id=request.id,
            action=action,
            acted_by=actor,
            acted_to=next_approver,
            comment=comment,
        )

    await session.refresh(request)
    logger.info("Request %s %s by %s, next approver=%s", request.id, action, actor, next_approver)
    return build_request_response(request)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_request(session: AsyncSession, actor: str, request_id: uuid.UUID) -> RequestResponse:
    """Get a single request visible to the actor."""
    request = await _get_request_or_404(session, request_id)
    await _ensure_visible(session, request, actor)
    return build_request_response(request)


async def list_created_requests(
    session: AsyncSession,
    actor: str,
    status_filter: RequestStatus | None = None,
) -> RequestListResponse:
    """List requests created by the actor, newest first."""
    filters = [col(ApprovalRequest.created_by) == actor]
    if status_filter is not None:
        filters.append(col(ApprovalRequest.status) == status_filter.value)

    result = await session.execute(
        select(ApprovalRequest).where(*filters).order_by(col(ApprovalRequest.created_at).desc())
    )
    requests = list(result.scalars().all())
    return RequestListResponse(items=[build_request_response(r) for r in requests], total=len(requests))


async def list_pending_approvals(session: AsyncSession, actor: str) -> RequestListResponse:
    """List pending requests waiting on the actor, oldest first."""
    result = await session.execute(
        select(ApprovalRequest)
        .where(
            col(ApprovalRequest.current_approver) == actor,
            col(ApprovalRequest.status) == RequestStatus.PENDING.value,
        )
        .order_by(col(ApprovalRequest.created_at))
    )
    requests = list(result.scalars().all())
    return RequestListResponse(items=[build_request_response(r) for r in requests], total=len(requests))


async def get_history(session: AsyncSession, actor: str, request_id: uuid.UUID) -> list[AuditEntryResponse]:
    """Return the request's audit history, oldest first."""
    request = await _get_request_or_404(session, request_id)
    await _ensure_visible(session, request, actor)
    return [build_audit_entry_response(entry) async for entry in history(session, request.id)]


async def list_request_documents(
    session: AsyncSession,
    actor: str,
    request_id: uuid.UUID,
) -> list[DocumentResponse]:
    """Return the request's documents in arrival order."""
    request = await _get_request_or_404(session, request_id)
    await _ensure_visible(session, request, actor)
    return [build_document_response(d) for d in await list_documents(session, request.id)]


async def resolve_document_locator(
    session: AsyncSession,
    blobs: BlobStore,
    actor: str,
    path: str,
) -> str:
    """Return a URL for a document's blob. Deleted or unknown paths are 404."""
    result = await session.execute(select(Document).where(col(Document.file_path) == path))
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found")

    request = await _get_request_or_404(session, document.request_id)
    try:
        await _ensure_visible(session, request, actor)
    except NotFoundError:
        raise NotFoundError("Document not found") from None
    return await resolve_public_locator(blobs, path)
