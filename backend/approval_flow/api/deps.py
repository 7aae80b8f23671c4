# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, UploadFile

from approval_flow.config import get_settings
from approval_flow.db import SessionDep
from approval_flow.exceptions import AuthorizationError, ValidationError
from approval_flow.schemas.auth import AuthContext
from approval_flow.schemas.document import NewFile
from approval_flow.services.blob_store import BlobStore, get_blob_store
from approval_flow.services.directory import DatabaseDirectory, OrganizationDirectory, get_directory_override


async def get_auth_context(
    x_user_email: str = Header(),
) -> AuthContext:
    """Extract the actor identity asserted by the upstream identity provider."""
    email = x_user_email.strip().lower()
    if not email or "@" not in email:
        raise AuthorizationError("Not authenticated")
    return AuthContext(email=email)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def get_directory(session: SessionDep) -> OrganizationDirectory:
    """Return the installed directory, or one reading the ``employees`` table."""
    override = get_directory_override()
    if override is not None:
        return override
    return DatabaseDirectory(session)


DirectoryDep = Annotated[OrganizationDirectory, Depends(get_directory)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]


async def read_uploads(uploads: list[UploadFile] | None) -> list[NewFile]:
    """Read multipart uploads into memory, enforcing the size limit."""
    limit = get_settings().max_upload_bytes
    files: list[NewFile] = []
    for upload in uploads or []:
        content = await upload.read()
        if len(content) > limit:
            raise ValidationError(f"File {upload.filename!r} exceeds {limit} bytes")
        files.append(
            NewFile(
                file_name=upload.filename or "file",
                content=content,
                content_type=upload.content_type,
            )
        )
    return files
