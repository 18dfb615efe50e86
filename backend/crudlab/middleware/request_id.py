"""
CrudLab Backend — Request ID Middleware
========================================

What:  Gives every request a correlation ID and echoes it back in the
       X-Request-ID response header.
How:   A client-provided X-Request-ID is kept, otherwise a short UUID is
       generated. The ID lives in a ContextVar so log statements and
       exception handlers can read it without having the request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ContextVar, not threading.local: concurrent requests share one thread
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
