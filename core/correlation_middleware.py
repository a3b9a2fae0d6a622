"""
Correlation ID Middleware

Tags every request with a correlation id and binds it, with the request
method and path, into the structlog context so pipeline logs emitted while
serving a trigger can be traced back to the call that started them.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging import get_logger, set_correlation_id


log = get_logger("http")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Reads X-Correlation-ID (or mints one), exposes it to logging for the
    duration of the request, echoes it on the response and logs one
    ``request_completed`` line per request.
    """

    HEADER_NAME = "X-Correlation-ID"

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        structlog.contextvars.bind_contextvars(
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
            structlog.contextvars.unbind_contextvars("method", "path")

        response.headers[self.HEADER_NAME] = correlation_id
        log.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )
        return response
