"""Request logging middleware for per-request timing and resolution tier."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency of every request."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request details and timing.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response object
        """
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID", f"req-{int(time.time() * 1000)}")

        logger.info(
            f"→ {request.method} {request.url.path} "
            f"[{request_id}] from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"✗ {request.method} {request.url.path} "
                f"[{request_id}] ERROR in {latency_ms:.0f}ms: {str(e)}"
            )
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000

        # Set by the query endpoint only
        source = response.headers.get("X-Resolution-Source", "")
        cost = response.headers.get("X-Cost", "")

        logger.info(
            f"← {request.method} {request.url.path} "
            f"[{request_id}] {response.status_code} "
            f"in {latency_ms:.0f}ms"
            + (f" source={source}" if source else "")
            + (f" cost=${cost}" if cost else "")
        )

        response.headers["X-Response-Time"] = f"{latency_ms:.2f}ms"
        response.headers["X-Request-ID"] = request_id
        return response
