# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class NewFile(BaseModel):
    """A file received from the caller, not yet stored."""

    file_name: str
    content: bytes
    content_type: str | None = None


class DocumentResponse(BaseModel):
    """Metadata of a stored document."""

    id: uuid.UUID
    request_id: uuid.UUID
    file_name: str
    file_path: str
    content_type: str | None
    size_bytes: int
    created_at: datetime


class DocumentListResponse(BaseModel):
    """Documents of one request, in arrival order."""

    items: list[DocumentResponse] = Field(default_factory=list)


class DocumentLocatorResponse(BaseModel):
    """Retrievable reference for a stored blob."""

    path: str
    url: str
