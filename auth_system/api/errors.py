"""Exception handlers that turn every failure into {success: false, message, errors?}."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth_system.core.errors import AppError
from auth_system.schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# Request locations FastAPI prefixes to error locs; not useful to API clients.
_LOC_PREFIXES = ("body", "query", "path", "header")


def _error_response(
    status_code: int,
    message: str,
    errors: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def _validation_details(errors: list[dict[str, Any]]) -> list[ErrorDetail]:
    details = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in _LOC_PREFIXES]
        message = str(err.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from our validators with "Value error, "
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append(ErrorDetail(field=".".join(loc) or "request", message=message))
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for domain errors, HTTP errors, validation errors and crashes."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Service error on %s %s: %s", request.method, request.url.path, exc.message)
        errors = [ErrorDetail(**e) for e in exc.errors] if exc.errors else None
        return _error_response(exc.status_code, exc.message, errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "API endpoint not found"
        return _error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Validation failed", _validation_details(list(exc.errors())))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Server error")
