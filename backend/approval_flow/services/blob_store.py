"""Blob storage for request documents.

Keys are produced by the document service; stores treat them as opaque.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import quote

from minio import Minio
from minio.error import S3Error

from approval_flow.config import get_settings
from approval_flow.exceptions import StorageError

if TYPE_CHECKING:
    from approval_flow.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class BlobStore(Protocol):
    """Interface for a key-addressed blob store."""

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Store ``data`` under ``key``, replacing any previous payload."""
        ...

    async def remove(self, key: str) -> None:
        """Remove the blob. Removing a missing key is not an error."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if a blob is stored under ``key``."""
        ...

    def public_url(self, key: str) -> str:
        """Return an addressable URL for ``key``. Does not check existence."""
        ...


class InMemoryBlobStore:
    """In-memory stub implementation for development."""

    def __init__(self, base_url: str = "memory://request-documents") -> None:
        self._base_url = base_url.rstrip("/")
        self._blobs: dict[str, tuple[bytes, str | None]] = {}

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._blobs[key] = (data, content_type)

    async def remove(self, key: str) -> None:
        self._blobs.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._blobs

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/{quote(key)}"

    def get(self, key: str) -> bytes | None:
        """Return the stored payload (for tests and local inspection)."""
        entry = self._blobs.get(key)
        return entry[0] if entry is not None else None

    def keys(self) -> list[str]:
        """Return every stored key, sorted."""
        return sorted(self._blobs)


class MinioBlobStore:
    """S3-compatible blob store backed by MinIO.

    The ``minio`` client is blocking, so every call runs in a worker thread.
    """

    def __init__(self, settings: Settings) -> None:
        self.client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        self.bucket = settings.minio_bucket
        self._base_url = settings.public_base_url.rstrip("/")
        self._bucket_ready = False

    def _ensure_bucket(self) -> None:
        """Create the bucket if it doesn't exist."""
        if self._bucket_ready:
            return
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
        self._bucket_ready = True

    def _put(self, key: str, data: bytes, content_type: str | None) -> None:
        self._ensure_bucket()
        self.client.put_object(
            self.bucket,
            key,
            io.BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
        )

    def _remove(self, key: str) -> None:
        self._ensure_bucket()
        self.client.remove_object(self.bucket, key)

    def _exists(self, key: str) -> bool:
        self._ensure_bucket()
        try:
            self.client.stat_object(self.bucket, key)
        except S3Error as exc:
            if exc.code in ("NoSuchKey", "NoSuchObject"):
                return False
            raise
        return True

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        try:
            await asyncio.to_thread(self._put, key, data, content_type)
        except Exception as exc:
            logger.exception("Blob upload failed for %s", key)
            raise StorageError(f"Temporary failure, retry: could not store {key}") from exc

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._remove, key)
        except Exception as exc:
            logger.exception("Blob removal failed for %s", key)
            raise StorageError(f"Temporary failure, retry: could not remove {key}") from exc

    async def exists(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._exists, key)
        except Exception as exc:
            logger.exception("Blob lookup failed for %s", key)
            raise StorageError(f"Temporary failure, retry: could not look up {key}") from exc

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/{self.bucket}/{quote(key)}"


_blob_store: BlobStore | None = None


def _build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "minio":
        return MinioBlobStore(settings)
    return InMemoryBlobStore()


def get_blob_store() -> BlobStore:
    """FastAPI dependency for the blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = _build_blob_store(get_settings())
    return _blob_store


def set_blob_store(store: BlobStore | None) -> None:
    """Override the store (for testing or production wiring)."""
    global _blob_store
    _blob_store = store
