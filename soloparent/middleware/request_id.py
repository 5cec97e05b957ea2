"""
Solo Parent Backend: Request ID Middleware
===========================================

Every request gets a short id, echoed in the X-Request-ID response header
and kept in `request_id_var` for log lines and error bodies. A client id is
reused when it is a plain token of at most 64 characters; anything else is
replaced by the first eight characters of a uuid4.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"
_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(supplied: str) -> str:
    if supplied and _CLIENT_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(HEADER, ""))
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[HEADER] = rid
        return response
