"""Request logging middleware.

Logs one structured line per request with method, path, status and
duration, and echoes an ``X-Request-ID`` header back to the client.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from insight_core.observability.logging import RequestContext, get_logger

log = get_logger("insight_core.requests")

# Paths that are not logged
QUIET_PATHS = {"/healthz"}

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs each request."""

    async def dispatch(self, request: Request, call_next):
        """Process the request."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context = RequestContext(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        request.state.request_id = request_id

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.error("Request failed", context=context, exc_info=True)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        if request.url.path not in QUIET_PATHS:
            log.info(
                "Request completed",
                context=context,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response
