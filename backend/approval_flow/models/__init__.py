from sqlmodel import SQLModel

from approval_flow.models.audit import RequestAuditLog
from approval_flow.models.base import TimestampMixin, UUIDBase
from approval_flow.models.document import Document
from approval_flow.models.employee import Employee
from approval_flow.models.enums import ApprovalDecision, AuditAction, RequestStatus
from approval_flow.models.request import ApprovalRequest

__all__ = [
    "ApprovalDecision",
    "ApprovalRequest",
    "AuditAction",
    "Document",
    "Employee",
    "RequestAuditLog",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
