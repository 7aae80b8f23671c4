# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from approval_flow.models.base import TimestampMixin, UUIDBase


class Document(UUIDBase, TimestampMixin, table=True):
    """A file attached to a request. Never mutated in place."""

    __tablename__ = "documents"

    request_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    file_name: str = Field(max_length=512)
    file_path: str = Field(max_length=1024, unique=True)
    content_type: str | None = Field(default=None, max_length=255)
    size_bytes: int = 0
