"""Create employees, requests, documents and request_audit_logs.

Revision ID: 0001_create_request_tables
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_create_request_tables"
down_revision = None
branch_labels = None
depends_on = None

_STATUSES = "'DRAFT', 'PENDING', 'APPROVED', 'REJECTED', 'REJECTED_WITH_EDIT'"
_ACTIONS = "'SUBMITTED', 'APPROVED', 'REJECTED', 'REJECTED_WITH_EDIT', 'FORWARDED'"


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("email", sa.String(length=320), primary_key=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("reports_to", sa.String(length=320), nullable=True),
        sa.Column("role", sa.String(length=100), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
    )
    op.create_index("ix_employees_reports_to", "employees", ["reports_to"])

    op.create_table(
        "requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=50), server_default="DRAFT", nullable=False),
        sa.Column("created_by", sa.String(length=320), nullable=False),
        sa.Column("current_approver", sa.String(length=320), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.CheckConstraint(f"status IN ({_STATUSES})", name="ck_requests_status"),
    )
    op.create_index("ix_requests_status", "requests", ["status"])
    op.create_index("ix_requests_current_approver", "requests", ["current_approver"])
    op.create_index("ix_requests_created_by_created_at", "requests", ["created_by", "created_at"])

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("request_id", sa.Uuid(), sa.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False, unique=True),
        sa.Column("content_type", sa.String(length=255), nullable=True),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
    )
    op.create_index("ix_documents_request_id", "documents", ["request_id"])

    op.create_table(
        "request_audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("request_id", sa.Uuid(), sa.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("acted_by", sa.String(length=320), nullable=False),
        sa.Column("acted_to", sa.String(length=320), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(f"action IN ({_ACTIONS})", name="ck_request_audit_logs_action"),
        sa.UniqueConstraint("request_id", "sequence", name="uq_request_audit_logs_sequence"),
    )
    op.create_index("ix_request_audit_logs_request_id", "request_audit_logs", ["request_id"])
    op.create_index("ix_request_audit_logs_occurred_at", "request_audit_logs", ["occurred_at"])


def downgrade() -> None:
    op.drop_table("request_audit_logs")
    op.drop_table("documents")
    op.drop_table("requests")
    op.drop_table("employees")
