"""
Access Logging Middleware

Logs every API request with a correlation id, status and duration.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from unimart.core.logging import get_logger

logger = get_logger("access")

SLOW_REQUEST_MS = 2000


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all API access.

    Captures:
    - Request details (endpoint, method, client IP)
    - Performance metrics (duration)
    - Request tracking (request_id, returned as X-Request-ID)
    """

    def __init__(self, app: ASGIApp, enabled: bool = True):
        """
        Initialize the middleware.

        Args:
            app: FastAPI application
            enabled: Whether logging is enabled (can be disabled in tests)
        """
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or request.url.path in ["/", "/health", "/docs", "/openapi.json"]:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        duration_ms = int((time.time() - start_time) * 1000)

        message = (
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {duration_ms}ms [ip={self._get_client_ip(request)} request_id={request_id}]"
        )
        if duration_ms >= SLOW_REQUEST_MS:
            logger.warning(f"Slow request: {message}")
        else:
            logger.info(message)

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """
        Extract client IP address from request.

        Checks X-Forwarded-For header first (for proxied requests),
        then falls back to direct client IP.
        """
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"
