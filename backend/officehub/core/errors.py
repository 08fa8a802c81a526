"""
Domain error taxonomy and the FastAPI handlers that render it.

Every error leaves the API as ``{"error": str, "details"?: str}``. Messages
for 4xx errors are specific; 5xx messages stay generic and the cause is only
logged server-side.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("officehub.errors")

_MISSING_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "does not exist",
    "undefinedtable",
    "undefinedcolumn",
)


class OfficeHubError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(OfficeHubError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(OfficeHubError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(OfficeHubError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(OfficeHubError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(OfficeHubError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, details: Optional[str] = None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


def _request_extra(request: Request, status_code: int) -> dict:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
    }


def is_missing_schema_error(exc: SQLAlchemyError) -> bool:
    text = str(getattr(exc, "orig", None) or exc).lower()
    return any(marker in text for marker in _MISSING_SCHEMA_MARKERS)


async def _handle_domain_error(request: Request, exc: OfficeHubError) -> JSONResponse:
    extra = _request_extra(request, exc.status_code)
    if exc.status_code >= 500:
        logger.error(exc.message, extra=extra)
        return JSONResponse(status_code=exc.status_code, content=error_body("Internal server error"))
    logger.warning(exc.message, extra=extra)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail),
        headers=getattr(exc, "headers", None),
    )


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        problems.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    logger.warning("request_validation_failed", extra=_request_extra(request, 400))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", "; ".join(problems)),
    )


async def _handle_schema_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    if not is_missing_schema_error(exc):
        return await _handle_database_error(request, exc)
    if request.method == "GET":
        logger.warning("schema_incomplete_read_degraded", extra=_request_extra(request, 200))
        return JSONResponse(status_code=status.HTTP_200_OK, content=[])
    logger.error("schema_incomplete_write_rejected", extra=_request_extra(request, 500))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "Database not fully initialized",
            "Run the database migrations and retry the request.",
        ),
    )


async def _handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", exc_info=exc, extra=_request_extra(request, 500))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OfficeHubError, _handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(OperationalError, _handle_schema_error)
    app.add_exception_handler(ProgrammingError, _handle_schema_error)
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)
