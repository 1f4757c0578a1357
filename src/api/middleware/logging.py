"""Request logging and request-id propagation."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes hit these every few seconds
QUIET_PATHS = frozenset({"/health", "/api/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log its outcome.

    An incoming ``X-Request-ID`` is reused so a caller can correlate its
    own logs; otherwise a short random id is issued. The id is bound to the
    logging context, so events emitted by use cases and stores while the
    request is handled carry it too, and it is echoed on the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        bind_request_context(request_id=request_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            clear_request_context()

        duration_ms = (time.perf_counter() - started) * 1000
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) or None,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
