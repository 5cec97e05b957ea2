"""
Solo Parent Backend: Credential Rate Limiting
==============================================

What:  Sliding-window limit on the endpoints that accept passwords or reset
       tokens, keyed by (client IP, path).
How:   Each key keeps the timestamps of its recent POST/PUT requests. Entries
       older than `rate_limit_window` seconds are dropped on every request;
       once `rate_limit_requests` remain, the request is answered with 429 and
       a Retry-After header until the oldest entry leaves the window.

Limits are per process. Other endpoints are never limited.
"""

import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from soloparent.config import settings
from soloparent.exceptions import RateLimitExceededError
from soloparent.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

CREDENTIAL_PATHS = frozenset(
    {
        "/api/login",
        "/api/forgot-password",
        "/api/reset-password",
        "/api/users/change-password",
        "/api/admin/change-password",
        "/api/superadmin/change-password",
    }
)
LIMITED_METHODS = frozenset({"POST", "PUT"})


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._clock = clock
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)

    def check(self, client_ip: str, path: str) -> None:
        """
        Record one attempt for (client_ip, path).

        Raises:
            RateLimitExceededError: the key already used its budget.
        """
        now = self._clock()
        window_start = now - self.window_seconds
        key = (client_ip, path)
        recent = [ts for ts in self._requests[key] if ts > window_start]

        if len(recent) >= self.max_requests:
            self._requests[key] = recent
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            logger.warning(
                "Credential rate limit hit for %s on %s: %d attempts in %ds",
                client_ip,
                path,
                len(recent),
                self.window_seconds,
            )
            raise RateLimitExceededError(retry_after=retry_after)

        recent.append(now)
        self._requests[key] = recent
        if len(self._requests) > 1000:
            self._cleanup(window_start)

    def _cleanup(self, window_start: float) -> None:
        inactive = [
            key for key, stamps in self._requests.items()
            if not stamps or stamps[-1] <= window_start
        ]
        for key in inactive:
            del self._requests[key]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method not in LIMITED_METHODS or path not in CREDENTIAL_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            self.check(client_ip, path)
        except RateLimitExceededError as exc:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)
