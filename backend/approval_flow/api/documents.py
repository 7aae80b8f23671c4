# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query

from approval_flow.api.deps import AuthDep, BlobStoreDep
from approval_flow.db import SessionDep
from approval_flow.schemas.document import DocumentLocatorResponse
from approval_flow.services import request as request_service

documents_router = APIRouter(prefix="/documents", tags=["documents"])


@documents_router.get("/locator", response_model=DocumentLocatorResponse)
async def resolve_locator(
    session: SessionDep,
    auth: AuthDep,
    blobs: BlobStoreDep,
    path: str = Query(min_length=1),
) -> DocumentLocatorResponse:
    """Resolve a document's storage path to a retrievable URL."""
    url = await request_service.resolve_document_locator(session, blobs, auth.email, path)
    return DocumentLocatorResponse(path=path, url=url)
