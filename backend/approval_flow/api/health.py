import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from approval_flow.api.deps import BlobStoreDep
from approval_flow.config import get_settings
from approval_flow.db import SessionDep
from approval_flow.exceptions import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_PROBE_KEY = "_health/probe"


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    database: bool
    blob_store: bool


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep, blobs: BlobStoreDep) -> HealthResponse:
    """Report whether the relational store and the blob store are reachable."""
    settings = get_settings()

    database_ok = True
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database_ok = False

    blob_ok = True
    try:
        await blobs.exists(_PROBE_KEY)
    except StorageError:
        logger.exception("Health check: blob store connectivity failed")
        blob_ok = False

    return HealthResponse(
        status="ok" if database_ok and blob_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=database_ok,
        blob_store=blob_ok,
    )
