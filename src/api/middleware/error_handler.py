"""
Uniform JSON error bodies.

Whatever goes wrong, the client receives an ``ErrorResponse``: an
``error_code`` it can branch on, a readable ``message``, a recovery
``hint`` and the request ``path``.
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    ConfigurationError,
    ReplenishmentError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)

# First match wins, so subclasses go before their bases
STATUS_BY_EXCEPTION: tuple[tuple[type[Exception], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ValueError, status.HTTP_400_BAD_REQUEST),
)

CODE_BY_STATUS: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
}

HINTS: dict[str, str] = {
    "VALIDATION_ERROR": "Check the request parameters against the API schema.",
    "INVALID_DATE_RANGE": "end_date must fall in a later calendar month than start_date.",
    "AMBIGUOUS_SORT_KEY": (
        "Name exactly one of average/total/maximum and one of sales/revenue, "
        "or pass sort_by such as 'average_revenue'."
    ),
    "CONSTRAINT_VIOLATION": (
        "The transaction was rolled back. Check product counters against the "
        "purchase order quantity."
    ),
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "NOT_FOUND": "See /docs for the available routes.",
    "METHOD_NOT_ALLOWED": "See /docs for the methods each route accepts.",
}

FALLBACK_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    409: "The transaction did not commit. Nothing was changed.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}


def hint_for(error_code: str, status_code: int) -> str | None:
    return HINTS.get(error_code) or FALLBACK_HINTS.get(status_code)


def status_for(exc: Exception) -> int:
    for exc_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_json(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    detail: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=hint_for(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def exception_to_response(request: Request, exc: Exception) -> JSONResponse:
    """Log ``exc`` and render it; server faults carry a traceback in the log."""
    status_code = status_for(exc)
    if isinstance(exc, ReplenishmentError):
        error_code, message = exc.code, exc.message
    else:
        error_code, message = exc.__class__.__name__, str(exc)

    server_fault = status_code >= 500
    (logger.error if server_fault else logger.warning)(
        "request_error",
        path=request.url.path,
        error_code=error_code,
        error=message,
        traceback=traceback.format_exc() if server_fault else None,
    )
    return error_json(request, status_code, error_code, message)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catches whatever the registered exception handlers let through."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return exception_to_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, request-validation and routing errors."""

    @app.exception_handler(ReplenishmentError)
    async def on_domain_error(request: Request, exc: ReplenishmentError) -> JSONResponse:
        return exception_to_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def on_invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        return error_json(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            detail=problems,
        )

    @app.exception_handler(HTTPException)
    async def on_http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return error_json(
            request,
            exc.status_code,
            CODE_BY_STATUS.get(exc.status_code, "HTTP_ERROR"),
            str(exc.detail) if exc.detail else "An error occurred",
        )
