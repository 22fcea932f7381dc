"""
Sample API - Dispatch Endpoint
===============================

What:  The single FastAPI endpoint that hands every request under the API
       prefix to the route table.
How:   Registered in main.py as `{api_prefix}/{route_path:path}` for all
       supported methods. Per request it:
           1. reads and decodes the JSON body (400 envelope if malformed)
           2. opens a database session for this request only
           3. builds a fresh RequestContext
           4. awaits RouteTable.dispatch()
           5. renders the envelope (HTTP status = statusCode on failure)
       If the client disconnected mid-chain, an empty 499 is returned so the
       HTTP middleware stack still sees a response object.
"""

import logging
from typing import Any, Awaitable, Callable, Tuple

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sample_api.config import settings
from sample_api.database import request_session
from sample_api.exceptions import ValidationError
from sample_api.middleware.request_id import request_id_var
from sample_api.routing.context import RequestContext
from sample_api.routing.table import RouteTable
from sample_api.schemas.envelope import from_error, http_status, render

logger = logging.getLogger(__name__)

# Non-standard status used by nginx for "client closed request"
CLIENT_CLOSED_REQUEST = 499

# Every method goes to the table, which answers 404 for the ones it does not route.
# CORS preflight requests are answered earlier by CORSMiddleware.
DISPATCH_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


async def read_json_body(request: Request) -> Tuple[bool, Any]:
    """Return (ok, body). An empty body decodes to None."""
    raw = await request.body()
    if not raw.strip():
        return True, None
    try:
        return True, await request.json()
    except ValueError:
        return False, None


def build_dispatch_endpoint(table: RouteTable) -> Callable[..., Awaitable[Response]]:
    """Create the FastAPI endpoint bound to a frozen route table."""
    if not table.frozen:
        raise RuntimeError("Route table must be frozen before it can serve traffic")

    async def dispatch_endpoint(request: Request, route_path: str) -> Response:
        rid = request_id_var.get("")

        ok, body = await read_json_body(request)
        if not ok:
            logger.info("[%s] Malformed JSON body on %s %s", rid, request.method, request.url.path)
            envelope = from_error(ValidationError(
                message="Request body is not valid JSON",
                errors=[{"location": "body", "field": None, "message": "Malformed JSON"}],
            ))
            return JSONResponse(render(envelope), status_code=http_status(envelope))

        async with request_session() as session:
            ctx = RequestContext(
                method=request.method,
                path="/" + route_path,
                headers=request.headers,
                query=dict(request.query_params),
                body=body,
                db=session,
                request_id=rid,
                is_disconnected=request.is_disconnected,
            )
            envelope = await table.dispatch(ctx)

        if envelope is None:
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        return JSONResponse(render(envelope), status_code=http_status(envelope))

    return dispatch_endpoint


def dispatch_path() -> str:
    return f"{settings.api_prefix}/{{route_path:path}}"
