"""
CrudLab Backend — Rate Limiting Middleware
===========================================

What:  Per-IP sliding window rate limiter.
How:   Each IP keeps a deque of request timestamps. Timestamps older than
       the window are dropped on every request; when the remaining count
       reaches the limit the request is answered with 429 and Retry-After.

State is in memory and per process. With several workers each one
enforces the limit on its own share of the traffic.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from crudlab.config import settings
from crudlab.exceptions import RateLimitExceededError
from crudlab.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Sweep idle IPs every this many requests
CLEANUP_INTERVAL = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration (from settings):
        rate_limit_requests: Max requests per window
        rate_limit_window: Window duration in seconds
    """

    EXCLUDED_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - settings.rate_limit_window

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                settings.rate_limit_window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            # Raised exceptions do not reach the app's handlers from here,
            # so the error body is built in place
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "status_code": exc.status_code,
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "success": False,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_INTERVAL == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
