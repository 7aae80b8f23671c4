# ruff: noqa: TC003
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from approval_flow.exceptions import StorageError, ValidationError
from approval_flow.models.audit import RequestAuditLog
from approval_flow.models.enums import COMMENT_REQUIRED_ACTIONS, AuditAction, RequestStatus
from approval_flow.schemas.audit import AuditEntryResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession


def build_audit_entry_response(entry: RequestAuditLog) -> AuditEntryResponse:
    """Map an audit row to its response schema."""
    return AuditEntryResponse(
        id=entry.id,
        request_id=entry.request_id,
        sequence=entry.sequence,
        action=parse_action(entry.action),
        acted_by=entry.acted_by,
        acted_to=entry.acted_to,
        comment=entry.comment,
        occurred_at=entry.occurred_at,
    )


def parse_action(value: str) -> AuditAction:
    """Parse a stored action, failing closed on unknown values."""
    try:
        return AuditAction(value)
    except ValueError:
        raise StorageError(f"Unrecognized audit action {value!r}") from None


async def append_entry(
    session: AsyncSession,
    *,
    request_id: uuid.UUID,
    action: AuditAction,
    acted_by: str,
    acted_to: str | None = None,
    comment: str | None = None,
) -> RequestAuditLog:
    """Append an immutable audit entry within the caller's transaction.

    Approval-path actions require a non-blank comment. The per-request
    ``sequence`` is unique, so two concurrent appends cannot both claim it.
    """
    if action in COMMENT_REQUIRED_ACTIONS and not (comment or "").strip():
        raise ValidationError("Comment required")

    result = await session.execute(
        select(func.coalesce(func.max(RequestAuditLog.sequence), 0)).where(
            col(RequestAuditLog.request_id) == request_id
        )
    )
    next_sequence = result.scalar_one() + 1

    entry = RequestAuditLog(
        request_id=request_id,
        sequence=next_sequence,
        action=action.value,
        acted_by=acted_by,
        acted_to=acted_to,
        comment=comment.strip() if comment else comment,
    )
    session.add(entry)
    await session.flush()
    return entry


class AuditHistory:
    """Lazy, restartable view of a request's audit entries, oldest first.

    Each ``async for`` issues a fresh query, so iterating again observes
    entries appended since the previous pass.
    """

    def __init__(self, session: AsyncSession, request_id: uuid.UUID) -> None:
        self._session = session
        self.request_id = request_id

    def _query(self) -> Select[tuple[RequestAuditLog]]:
        return (
            select(RequestAuditLog)
            .where(col(RequestAuditLog.request_id) == self.request_id)
            .order_by(col(RequestAuditLog.occurred_at), col(RequestAuditLog.sequence))
        )

    async def __aiter__(self) -> AsyncIterator[RequestAuditLog]:
        result = await self._session.stream_scalars(self._query())
        async for entry in result:
            yield entry

    async def all(self) -> list[RequestAuditLog]:
        """Materialise the whole history."""
        result = await self._session.execute(self._query())
        return list(result.scalars().all())


def history(session: AsyncSession, request_id: uuid.UUID) -> AuditHistory:
    """Return the audit history of a request. Nothing is read until iterated."""
    return AuditHistory(session, request_id)


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReplayState:
    """Request state reconstructed from its audit entries."""

    status: RequestStatus
    current_approver: str | None


def replay(entries: Iterable[RequestAuditLog]) -> ReplayState:
    """Reconstruct status and current approver by applying entries in order.

    A request with no entries is a draft. Saving edits writes no entry and
    leaves the status unchanged, so replay never needs to see it.
    """
    state = ReplayState(RequestStatus.DRAFT, None)
    for entry in entries:
        match parse_action(entry.action):
            case AuditAction.SUBMITTED | AuditAction.FORWARDED:
                state = ReplayState(RequestStatus.PENDING, entry.acted_to)
            case AuditAction.APPROVED:
                state = ReplayState(RequestStatus.APPROVED, None)
            case AuditAction.REJECTED:
                state = ReplayState(RequestStatus.REJECTED, None)
            case AuditAction.REJECTED_WITH_EDIT:
                state = ReplayState(RequestStatus.REJECTED_WITH_EDIT, entry.acted_to)
    return state
