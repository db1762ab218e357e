from __future__ import annotations

from fastapi import HTTPException, status

from training_console.clients.record_store import RecordStoreError
from training_console.errors import (
    ConcurrentModificationError,
    InvalidTransitionError,
    WorkflowError,
    WorkflowValidationError,
)

_STATUS_BY_ERROR: list[tuple[type[WorkflowError], int]] = [
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (WorkflowValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


def workflow_http_error(exc: WorkflowError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped
            break
    return HTTPException(
        status_code=status_code,
        detail={"error": type(exc).__name__, "reason": exc.reason, "message": exc.message},
    )


def store_http_error(exc: RecordStoreError, *, not_found: str) -> HTTPException:
    if exc.status_code == 404:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    if exc.status_code is None or exc.status_code >= 500:
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
