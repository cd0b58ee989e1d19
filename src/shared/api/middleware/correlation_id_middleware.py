"""
Correlation ID Middleware
Binds a request id to the logging context for the lifetime of a request
"""
from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from shared.infrastructure.observability.logger import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Extracts X-Request-ID (or generates one) and binds it as `trace_id`, so
    every log line emitted while serving the request carries it. The id and
    the request duration are echoed back as response headers.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or str(uuid4())
        bind_context(trace_id=correlation_id, method=request.method, path=request.url.path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            response.headers["X-Request-ID"] = correlation_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.info("Request completed", status_code=response.status_code, duration_ms=duration_ms)
            return response
        except Exception as e:
            logger.error(
                "Request failed",
                error=str(e),
                duration_ms=int((time.perf_counter() - start_time) * 1000),
                exc_info=True,
            )
            raise
        finally:
            clear_context()
