"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets a request_id (taken from an incoming X-Request-ID header
when present, otherwise generated). The id is:
- stored on request.state.request_id
- bound into structlog's context vars, so every log line emitted while the
  request is handled carries it
- echoed back in the X-Request-ID response header

Each completed request is logged once via log_request with its timing.
"""

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import get_logger, log_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Add request context to all incoming requests.

    Request.state Namespace Convention:
    - request_id: Set by RequestContextMiddleware
    - Do not add other attributes without updating this documentation
    """

    async def dispatch(self, request: Request, call_next):
        """Process request and add context."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.debug("Request started", method=request.method, path=request.url.path)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            request_id=request_id,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
