"""
Sample API - HTTP Middleware Package
====================================

These are Starlette middleware wrapping the whole app. They are separate from
the per-route middleware chains in sample_api.routing, which run inside the
dispatch endpoint.

Stack (outermost first):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → endpoint

    Request ID is outermost so the access log line carries the ID, and so the
    header is set on every response, errors included.
"""

from sample_api.middleware.logging import RequestLoggingMiddleware
from sample_api.middleware.request_id import RequestIDMiddleware, request_id_var

__all__ = ["RequestIDMiddleware", "RequestLoggingMiddleware", "request_id_var"]
