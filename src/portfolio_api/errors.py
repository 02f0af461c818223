"""
portfolio_api.errors

Error taxonomy and response writer.

Responsibilities:
- Define the closed set of wire error codes and their HTTP status mapping.
- Render `ApiError` responses without side effects.
- Carry a code through the call stack (`ApiException`) until a handler renders it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette import status


class ErrorCode(enum.StrEnum):
    # Values are a client contract (used for client-side localization); never rename.
    auth_required = "AUTH_REQUIRED"
    auth_forbidden = "AUTH_FORBIDDEN"
    resource_not_found = "RESOURCE_NOT_FOUND"
    method_not_allowed = "METHOD_NOT_ALLOWED"
    validation_failed = "VALIDATION_FAILED"
    rate_limited = "RATE_LIMITED"
    conflict = "CONFLICT"
    server_error = "SERVER_ERROR"


@dataclass(frozen=True, slots=True)
class _CatalogEntry:
    status_code: int
    message: str


ERROR_CATALOG_VERSION = 2

ERROR_CATALOG = MappingProxyType(
    {
        ErrorCode.auth_required: _CatalogEntry(
            status.HTTP_401_UNAUTHORIZED, "Authentication required"
        ),
        ErrorCode.auth_forbidden: _CatalogEntry(
            status.HTTP_403_FORBIDDEN, "Insufficient permissions"
        ),
        ErrorCode.resource_not_found: _CatalogEntry(
            status.HTTP_404_NOT_FOUND, "Resource not found"
        ),
        ErrorCode.method_not_allowed: _CatalogEntry(
            status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed"
        ),
        ErrorCode.validation_failed: _CatalogEntry(
            status.HTTP_400_BAD_REQUEST, "Validation failed"
        ),
        ErrorCode.rate_limited: _CatalogEntry(
            status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests"
        ),
        ErrorCode.conflict: _CatalogEntry(status.HTTP_409_CONFLICT, "Resource already exists"),
        ErrorCode.server_error: _CatalogEntry(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred"
        ),
    }
)


class ApiError(BaseModel):
    """Wire representation of a failed request."""

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None


class ApiException(Exception):
    """
    Raised by handlers to end a request with a structured error.
    The code is fixed; only the message and details vary per instance.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = ErrorCode(code)
        self.message = message
        self.details = details
        super().__init__(message or ERROR_CATALOG[self.code].message)


def status_for(code: ErrorCode) -> int:
    return ERROR_CATALOG[code].status_code


def build_error(
    code: ErrorCode | str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
) -> ApiError:
    try:
        code = ErrorCode(code)
    except ValueError:
        # Unknown codes never reach the wire as-is, and neither does their text.
        return ApiError(
            code=ErrorCode.server_error,
            message=ERROR_CATALOG[ErrorCode.server_error].message,
        )
    if code is ErrorCode.server_error:
        # Server errors never carry caller-supplied text or context.
        message, details = None, None
    return ApiError(
        code=code,
        message=message or ERROR_CATALOG[code].message,
        details=details or None,
    )


def write_error(
    code: ErrorCode | str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    err = build_error(code, message, details)
    return JSONResponse(
        status_code=status_for(err.code),
        content=err.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def code_for_status(status_code: int) -> ErrorCode:
    # Used for framework-raised HTTP errors (unknown route, wrong method, ...).
    for code, entry in ERROR_CATALOG.items():
        if entry.status_code == status_code:
            return code
    if 400 <= status_code < 500:
        return ErrorCode.validation_failed
    return ErrorCode.server_error


# --- Module Notes -----------------------------------------------------------
# Adding a code is a versioned change: bump ERROR_CATALOG_VERSION and update clients'
# localization tables in the same release.
