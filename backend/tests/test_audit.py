"""Tests for the audit ledger: append rules, ordering, lazy history and replay."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from approval_flow.exceptions import ValidationError
from approval_flow.models.audit import RequestAuditLog
from approval_flow.models.enums import AuditAction, RequestStatus
from approval_flow.models.request import ApprovalRequest
from approval_flow.services.audit import ReplayState, append_entry, history, replay

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def _make_request(session: AsyncSession) -> uuid.UUID:
    request = ApprovalRequest(title="Laptop", created_by="alice@x.com")
    session.add(request)
    await session.commit()
    return request.id


def _entry(action: AuditAction, acted_to: str | None = None) -> RequestAuditLog:
    return RequestAuditLog(
        request_id=uuid.uuid4(),
        sequence=1,
        action=action.value,
        acted_by="someone@x.com",
        acted_to=acted_to,
        comment="c",
    )


# ---------------------------------------------------------------------------
# append_entry
# ---------------------------------------------------------------------------


async def test_append_assigns_increasing_sequence(db_session: AsyncSession) -> None:
    request_id = await _make_request(db_session)

    first = await append_entry(
        db_session, request_id=request_id, action=AuditAction.SUBMITTED, acted_by="alice@x.com", acted_to="bob@x.com"
    )
    second = await append_entry(
        db_session,
        request_id=request_id,
        action=AuditAction.FORWARDED,
        acted_by="bob@x.com",
        acted_to="carol@x.com",
        comment="route to IT",
    )
    await db_session.commit()

    assert first.sequence == 1
    assert second.sequence == 2


async def test_sequence_is_per_request(db_session: AsyncSession) -> None:
    first_request = await _make_request(db_session)
    second_request = await _make_request(db_session)

    await append_entry(db_session, request_id=first_request, action=AuditAction.SUBMITTED, acted_by="a@x.com")
    entry = await append_entry(db_session, request_id=second_request, action=AuditAction.SUBMITTED, acted_by="a@x.com")

    assert entry.sequence == 1


async def test_submission_comment_is_optional(db_session: AsyncSession) -> None:
    request_id = await _make_request(db_session)
    entry = await append_entry(db_session, request_id=request_id, action=AuditAction.SUBMITTED, acted_by="a@x.com")
    assert entry.comment is None


@pytest.mark.parametrize(
    "action",
    [AuditAction.APPROVED, AuditAction.REJECTED, AuditAction.REJECTED_WITH_EDIT, AuditAction.FORWARDED],
)
@pytest.mark.parametrize("comment", [None, "", "   \n\t"])
async def test_approval_actions_require_comment(
    db_session: AsyncSession, action: AuditAction, comment: str | None
) -> None:
    request_id = await _make_request(db_session)

    with pytest.raises(ValidationError, match="Comment required"):
        await append_entry(db_session, request_id=request_id, action=action, acted_by="bob@x.com", comment=comment)

    assert await history(db_session, request_id).all() == []


async def test_comment_is_stripped(db_session: AsyncSession) -> None:
    request_id = await _make_request(db_session)
    entry = await append_entry(
        db_session, request_id=request_id, action=AuditAction.APPROVED, acted_by="bob@x.com", comment="  ok  "
    )
    assert entry.comment == "ok"


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


async def test_history_is_ordered_oldest_first(db_session: AsyncSession) -> None:
    request_id = await _make_request(db_session)
    await append_entry(db_session, request_id=request_id, action=AuditAction.SUBMITTED, acted_by="alice@x.com")
    await append_entry(
        db_session, request_id=request_id, action=AuditAction.FORWARDED, acted_by="bob@x.com", comment="fwd"
    )
    await append_entry(
        db_session, request_id=request_id, action=AuditAction.APPROVED, acted_by="carol@x.com", comment="ok"
    )
    await db_session.commit()

    entries = await history(db_session, request_id).all()

    assert [e.action for e in entries] == ["SUBMITTED", "FORWARDED", "APPROVED"]
    assert [e.sequence for e in entries] == [1, 2, 3]


async def test_history_is_lazy_and_restartable(db_session: AsyncSession) -> None:
    request_id = await _make_request(db_session)
    view = history(db_session, request_id)

    await append_entry(db_session, request_id=request_id, action=AuditAction.SUBMITTED, acted_by="alice@x.com")
    await db_session.commit()

    first_pass = [e.action async for e in view]

    await append_entry(
        db_session, request_id=request_id, action=AuditAction.REJECTED, acted_by="bob@x.com", comment="no budget"
    )
    await db_session.commit()

    second_pass = [e.action async for e in view]

    assert first_pass == ["SUBMITTED"]
    assert second_pass == ["SUBMITTED", "REJECTED"]


async def test_history_of_unknown_request_is_empty(db_session: AsyncSession) -> None:
    assert await history(db_session, uuid.uuid4()).all() == []


# ---------------------------------------------------------------------------
# replay
# ---------------------------------------------------------------------------


def test_replay_without_entries_is_draft() -> None:
    assert replay([]) == ReplayState(RequestStatus.DRAFT, None)


def test_replay_submit_forward_approve() -> None:
    entries = [
        _entry(AuditAction.SUBMITTED, "bob@x.com"),
        _entry(AuditAction.FORWARDED, "carol@x.com"),
    ]
    assert replay(entries) == ReplayState(RequestStatus.PENDING, "carol@x.com")

    entries.append(_entry(AuditAction.APPROVED))
    assert replay(entries) == ReplayState(RequestStatus.APPROVED, None)


def test_replay_reject_with_edit_returns_to_creator() -> None:
    entries = [
        _entry(AuditAction.SUBMITTED, "bob@x.com"),
        _entry(AuditAction.REJECTED_WITH_EDIT, "alice@x.com"),
    ]
    assert replay(entries) == ReplayState(RequestStatus.REJECTED_WITH_EDIT, "alice@x.com")


def test_replay_reject() -> None:
    entries = [_entry(AuditAction.SUBMITTED, "bob@x.com"), _entry(AuditAction.REJECTED)]
    assert replay(entries) == ReplayState(RequestStatus.REJECTED, None)
