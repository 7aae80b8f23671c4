# ruff: noqa: TC003
from __future__ import annotations

import logging
import re
import time
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col

from approval_flow.exceptions import (
    DocumentDeletionError,
    DocumentUploadError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from approval_flow.models.document import Document
from approval_flow.schemas.document import DocumentResponse

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from approval_flow.schemas.document import NewFile
    from approval_flow.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")


# ---------------------------------------------------------------------------
# Storage keys
# ---------------------------------------------------------------------------


def sanitize_file_name(file_name: str) -> str:
    """Reduce an untrusted file name to ``[A-Za-z0-9._-]``, whitespace runs becoming ``_``."""
    safe = _UNSAFE_CHARS_RE.sub("", _WHITESPACE_RE.sub("_", file_name))
    return safe or "file"


def build_file_path(request_id: uuid.UUID, file_name: str, uploaded_at_ms: int) -> str:
    """Derive the storage key ``{request_id}/{uploaded_at_ms}-{sanitized_name}``."""
    return f"{request_id}/{uploaded_at_ms}-{sanitize_file_name(file_name)}"


def _timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def build_document_response(document: Document) -> DocumentResponse:
    """Map a document model to its response schema."""
    return DocumentResponse(
        id=document.id,
        request_id=document.request_id,
        file_name=document.file_name,
        file_path=document.file_path,
        content_type=document.content_type,
        size_bytes=document.size_bytes,
        created_at=document.created_at,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_documents(session: AsyncSession, request_id: uuid.UUID) -> list[Document]:
    """Return the documents of a request in arrival order.

    No ownership check happens here; callers scope access.
    """
    result = await session.execute(
        select(Document)
        .where(col(Document.request_id) == request_id)
        .order_by(col(Document.created_at), col(Document.file_path))
    )
    return list(result.scalars().all())


async def upload_documents(
    session: AsyncSession,
    blobs: BlobStore,
    request_id: uuid.UUID,
    files: Sequence[NewFile],
) -> list[Document]:
    """Store each file, then insert its row, within the caller's transaction.

    Fails fast: the first failure raises :class:`DocumentUploadError` naming
    the blobs already written and the files left unprocessed. A key that is
    already taken is never overwritten; its timestamp is bumped until free.
    """
    if not files:
        return []

    next_ms = _timestamp_ms()
    stored_paths: list[str] = []
    documents: list[Document] = []

    for index, new_file in enumerate(files):
        try:
            file_path = build_file_path(request_id, new_file.file_name, next_ms)
            while await blobs.exists(file_path):
                next_ms += 1
                file_path = build_file_path(request_id, new_file.file_name, next_ms)
            next_ms += 1

            await blobs.put(file_path, new_file.content, new_file.content_type)
            stored_paths.append(file_path)

            document = Document(
                request_id=request_id,
                file_name=new_file.file_name,
                file_path=file_path,
                content_type=new_file.content_type,
                size_bytes=len(new_file.content),
            )
            session.add(document)
            await session.flush()
        except (StorageError, SQLAlchemyError) as exc:
            logger.warning("Upload of %r for request %s failed after %d file(s)", new_file.file_name, request_id, index)
            raise DocumentUploadError(
                f"Temporary failure, retry: could not store {new_file.file_name!r}",
                stored_paths=stored_paths,
                pending_files=[f.file_name for f in files[index:]],
            ) from exc
        documents.append(document)

    return documents


async def delete_documents(
    session: AsyncSession,
    blobs: BlobStore,
    request_id: uuid.UUID,
    document_ids: Iterable[uuid.UUID],
) -> list[uuid.UUID]:
    """Remove the blobs of the given documents, then their rows.

    Rows are deleted only for documents whose blob was removed, so no row is
    left pointing at a missing blob. If any removal failed,
    :class:`DocumentDeletionError` is raised after the successful rows are
    deleted. Ids that do not belong to the request are rejected up front.
    """
    wanted = list(dict.fromkeys(document_ids))
    if not wanted:
        return []

    result = await session.execute(
        select(Document).where(
            col(Document.id).in_(wanted),
            col(Document.request_id) == request_id,
        )
    )
    documents = list(result.scalars().all())
    unknown = set(wanted) - {d.id for d in documents}
    if unknown:
        raise ValidationError(f"Unknown document ids for this request: {', '.join(sorted(map(str, unknown)))}")

    removed: list[uuid.UUID] = []
    failed: list[uuid.UUID] = []
    for document in documents:
        try:
            await blobs.remove(document.file_path)
        except StorageError:
            logger.warning("Could not remove blob %s of document %s", document.file_path, document.id)
            failed.append(document.id)
        else:
            removed.append(document.id)

    if removed:
        await session.execute(
            delete(Document).where(col(Document.id).in_(removed)).execution_options(synchronize_session="fetch")
        )

    if failed:
        raise DocumentDeletionError(
            "Temporary failure, retry: some documents could not be removed",
            failed_ids=[str(i) for i in failed],
            removed_ids=[str(i) for i in removed],
        )
    return removed


async def reconcile_documents(
    session: AsyncSession,
    blobs: BlobStore,
    request_id: uuid.UUID,
    deleted_ids: Iterable[uuid.UUID],
    new_files: Sequence[NewFile],
) -> list[Document]:
    """Bring a request's documents in line with an edit: delete first, then upload."""
    removed = await delete_documents(session, blobs, request_id, deleted_ids)
    try:
        return await upload_documents(session, blobs, request_id, new_files)
    except DocumentUploadError as exc:
        exc.removed_ids = [str(i) for i in removed]
        raise


async def discard_blobs(blobs: BlobStore, keys: Iterable[str]) -> None:
    """Best-effort removal of blobs written by a failed attempt."""
    for key in keys:
        try:
            await blobs.remove(key)
        except StorageError:
            logger.warning("Orphan blob left behind: %s", key)


async def resolve_public_locator(blobs: BlobStore, path: str) -> str:
    """Return a retrievable URL for a stored blob. Raises 404 if it is gone."""
    if not await blobs.exists(path):
        raise NotFoundError("Document not found")
    return blobs.public_url(path)
