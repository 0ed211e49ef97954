"""
Error taxonomy for the table engine and its mapping to HTTP responses.

Engine functions raise ReservationError subclasses; the FastAPI handler
registered in app.py renders them as

    {"success": False, "error": {"code": ..., "detail": ..., ...}}

so callers can tell an actionable conflict from a retryable system error.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from models import ErrorCode

logger = logging.getLogger(__name__)

STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_UNPROCESSABLE = 422
STATUS_SERVICE_UNAVAILABLE = 503


class ReservationError(Exception):
    code: ErrorCode = ErrorCode.STORAGE_FAILURE
    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "detail": self.detail}


class InvalidTimeFormat(ReservationError):
    code = ErrorCode.INVALID_TIME_FORMAT
    status_code = STATUS_UNPROCESSABLE


class TableConflict(ReservationError):
    code = ErrorCode.TABLE_CONFLICT
    status_code = STATUS_CONFLICT

    def __init__(self, detail: str, conflicts: Optional[list[dict[str, Any]]] = None):
        super().__init__(detail)
        self.conflicts = conflicts or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["conflicts"] = self.conflicts
        return data


class StorageFailure(ReservationError):
    """Underlying read/write error. Safe to retry after re-reading state."""

    code = ErrorCode.STORAGE_FAILURE
    status_code = STATUS_SERVICE_UNAVAILABLE


class NotFound(ReservationError):
    code = ErrorCode.NOT_FOUND
    status_code = STATUS_NOT_FOUND


class Unauthorized(ReservationError):
    code = ErrorCode.UNAUTHORIZED
    status_code = STATUS_UNAUTHORIZED


class PermissionDenied(ReservationError):
    code = ErrorCode.PERMISSION_DENIED
    status_code = STATUS_FORBIDDEN


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    if isinstance(exc, StorageFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code.value, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
        headers=headers,
    )
