"""
Solo Parent Backend: Access Log Middleware
===========================================

One line per request on the `soloparent.access` logger:

    POST /api/login 401 12.3ms [a1b2c3d4] from 10.0.0.7

5xx → ERROR, 4xx → WARNING, otherwise INFO. A request whose handler raised
is logged as 500 before the exception continues outward. Health probes are
not logged. Request bodies and query strings never are: they carry
passwords, reset tokens and personal data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from soloparent.middleware.request_id import request_id_var

logger = logging.getLogger("soloparent.access")

SKIPPED_PATHS = frozenset({"/health"})


def level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, started)
            raise
        self._log(request, response.status_code, started)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        client = request.client.host if request.client else "unknown"
        logger.log(
            level_for(status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status_code,
            elapsed_ms,
            request_id_var.get(""),
            client,
        )
