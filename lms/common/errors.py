from __future__ import annotations

from fastapi import HTTPException


class LMSError(Exception):
    """Base for every domain failure surfaced to API callers."""

    error_code = "E_INTERNAL"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LMSError, ValueError):
    error_code = "E_INVALID_INPUT"
    status_code = 400


class PermissionDenied(LMSError):
    error_code = "E_FORBIDDEN"
    status_code = 403


class NotFound(LMSError, LookupError):
    error_code = "E_NOT_FOUND"
    status_code = 404


class ConflictError(LMSError):
    error_code = "E_CONFLICT"
    status_code = 409


class StoreError(LMSError, RuntimeError):
    """The backing store failed a read or a write. Never retried automatically."""

    error_code = "E_STORE"
    status_code = 502


def to_http(exc: LMSError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"error_code": exc.error_code, "message": exc.message})


__all__ = [
    "LMSError",
    "ValidationError",
    "PermissionDenied",
    "NotFound",
    "ConflictError",
    "StoreError",
    "to_http",
]
