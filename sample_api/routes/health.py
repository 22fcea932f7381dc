"""
Sample API - Health Check Route
===============================

What:  GET /health for container health checks and load balancer probes.
How:   Runs SELECT 1 against the database and reports how many routes the
       dispatch table serves.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic here)

This is a plain FastAPI route outside the dispatch table, so it answers even
when every table route would fail.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sample_api import __version__
from sample_api.database import engine
from sample_api.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Database connectivity, route count and uptime.",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    table = getattr(request.app.state, "route_table", None)
    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        routes=len(table) if table is not None else 0,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
