"""
portfolio_api.api.exception_handlers

Maps everything a handler can raise onto the `ApiError` wire format.

Responsibilities:
- Render `ApiException` with its own code.
- Translate framework validation/HTTP errors and repository errors to codes.
- Log unexpected failures with full detail and answer with a bare SERVER_ERROR.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from portfolio_api.db.repositories.projects import (
    InvalidProjectError,
    ProjectConflictError,
    ProjectNotFoundError,
)
from portfolio_api.errors import ApiException, ErrorCode, code_for_status, write_error
from portfolio_api.observability.logging import get_logger

log = get_logger(__name__)


async def _api_exception(_: Request, exc: ApiException) -> Response:
    return write_error(exc.code, exc.message, exc.details)


async def _request_validation(_: Request, exc: RequestValidationError) -> Response:
    fields = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return write_error(ErrorCode.validation_failed, details={"errors": fields})


async def _http_exception(_: Request, exc: StarletteHTTPException) -> Response:
    # Framework-raised errors (unknown route, wrong method); their detail text is not forwarded.
    return write_error(code_for_status(exc.status_code), headers=exc.headers)


async def _project_not_found(_: Request, exc: ProjectNotFoundError) -> Response:
    return write_error(
        ErrorCode.resource_not_found,
        "Project not found",
        details={"resourceId": exc.project_id},
    )


async def _invalid_project(_: Request, exc: InvalidProjectError) -> Response:
    details = {"field": exc.field, "message": str(exc)} if exc.field else {"message": str(exc)}
    return write_error(ErrorCode.validation_failed, details=details)


async def _project_conflict(_: Request, exc: ProjectConflictError) -> Response:
    return write_error(ErrorCode.conflict, str(exc), details={"field": exc.field})


async def _unhandled(request: Request, exc: Exception) -> Response:
    log.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    return write_error(ErrorCode.server_error)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiException, _api_exception)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
    app.add_exception_handler(ProjectNotFoundError, _project_not_found)
    app.add_exception_handler(InvalidProjectError, _invalid_project)
    app.add_exception_handler(ProjectConflictError, _project_conflict)
    app.add_exception_handler(Exception, _unhandled)


# --- Module Notes -----------------------------------------------------------
# `Exception` is handled by Starlette's outermost ServerErrorMiddleware, which
# re-raises after sending the response; servers log that re-raise as well.
