from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """The request or document does not exist, or is not visible to the actor."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class AuthorizationError(AppError):
    """The actor may not perform this action on this request."""

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class ValidationError(AppError):
    """Input rejected by a business rule (missing comment, empty title, ...)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class RoutingError(AppError):
    """No manager could be resolved for the acting employee."""

    def __init__(self, message: str = "No approver configured") -> None:
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class ConflictError(AppError):
    """The request changed between read and write, or is in the wrong state."""

    def __init__(self, message: str = "Request was modified concurrently; reload and retry") -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class StorageError(AppError):
    """A relational or blob store operation failed."""

    def __init__(self, message: str = "Temporary failure, retry") -> None:
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class DocumentStoreError(StorageError):
    """Document reconciliation stopped part way through.

    ``stored_paths`` lists blobs written by the failed attempt and
    ``removed_ids`` the documents whose blobs are already gone, so the caller
    can compensate.
    """

    def __init__(
        self,
        message: str,
        *,
        stored_paths: list[str] | None = None,
        removed_ids: list[str] | None = None,
    ) -> None:
        self.stored_paths = stored_paths or []
        self.removed_ids = removed_ids or []
        super().__init__(message)


class DocumentUploadError(DocumentStoreError):
    """An upload batch failed; ``pending_files`` were not processed."""

    def __init__(self, message: str, *, stored_paths: list[str], pending_files: list[str]) -> None:
        self.pending_files = pending_files
        super().__init__(message, stored_paths=stored_paths)


class DocumentDeletionError(DocumentStoreError):
    """Some blobs could not be removed; rows of ``failed_ids`` were kept."""

    def __init__(self, message: str, *, failed_ids: list[str], removed_ids: list[str]) -> None:
        self.failed_ids = failed_ids
        super().__init__(message, removed_ids=removed_ids)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
