from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """State machine for routed requests."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REJECTED_WITH_EDIT = "REJECTED_WITH_EDIT"


# States in which the creator may change title, description and documents.
EDITABLE_STATUSES = frozenset({RequestStatus.DRAFT, RequestStatus.REJECTED_WITH_EDIT})

TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


class AuditAction(enum.StrEnum):
    """Lifecycle transition recorded in the audit ledger."""

    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REJECTED_WITH_EDIT = "REJECTED_WITH_EDIT"
    FORWARDED = "FORWARDED"


# Every approval-path action must carry a non-blank comment.
COMMENT_REQUIRED_ACTIONS = frozenset(
    {
        AuditAction.APPROVED,
        AuditAction.REJECTED,
        AuditAction.REJECTED_WITH_EDIT,
        AuditAction.FORWARDED,
    }
)


class ApprovalDecision(enum.StrEnum):
    """Action an approver takes on a pending request."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REJECT_WITH_EDIT = "REJECT_WITH_EDIT"
    FORWARD = "FORWARD"
