"""
Sample API - Access Log Middleware
===================================

What:  One log line per HTTP request: method, path, status, duration.
How:   Wraps call_next with a perf_counter timer. The level follows the
       response status so alerting can key off severity:
           5xx → ERROR, 4xx → WARNING, 499 (client gone) → INFO, else INFO

Not logged: request bodies and the Authorization header (tokens, PII).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from sample_api.middleware.request_id import request_id_var

logger = logging.getLogger("sample_api.access")

# Paths polled by load balancers; logged at DEBUG only
QUIET_PATHS = frozenset({"/health"})

CLIENT_CLOSED_REQUEST = 499


def level_for(status: int) -> int:
    if status == CLIENT_CLOSED_REQUEST:
        return logging.INFO
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured access log, correlated by request ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        path = request.url.path
        status = response.status_code
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        level = logging.DEBUG if path in QUIET_PATHS else level_for(status)

        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method, path, status, duration_ms, rid, client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
