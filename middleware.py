"""
Middleware configuration for the session chat backend.

Registers slowapi rate limiting and a request tracing middleware that
tags every response with a correlation id and its processing time.
"""

import logging
import time
import uuid

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings


logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger("chatbot-backend")

CORRELATION_HEADER = "X-Correlation-ID"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"]
)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Propagates a caller's correlation id (or mints one) into
    ``request.state.correlation_id`` so endpoint logs can carry it.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            f"[{correlation_id}] {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)",
            extra={"correlation_id": correlation_id, "status_code": response.status_code}
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Processing-Time-Ms"] = str(elapsed_ms)
        return response


def register_middleware(app):
    """Attach request tracing and rate limiting to the app."""
    app.add_middleware(RequestTracingMiddleware)

    # default_limits are only enforced through SlowAPIMiddleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
