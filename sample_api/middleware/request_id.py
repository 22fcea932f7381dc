"""
Sample API - Request ID Middleware
===================================

What:  Gives every HTTP request a short correlation ID.
Why:   The dispatch endpoint copies it into RequestContext.request_id, so every
       log line written by the route chain (validator, auth check, service)
       can be tied back to one access log entry.
How:   Reuses a client-sent X-Request-ID or generates one, stores it in a
       ContextVar and on request.state, and echoes it in the response header.
When:  Outermost of the app's HTTP middleware, so the access log sees the ID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign, expose and propagate the request ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
