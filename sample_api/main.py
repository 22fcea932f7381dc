"""
Sample API - FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles logging, HTTP middleware, exception handlers,
       the health route, the dispatch endpoint and the OpenAPI document.
Who:   uvicorn (uvicorn sample_api.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  HTTP middleware:  Request ID → Access Log → GZip → CORS     │
    │                                                              │
    │  GET /health                         (FastAPI router)        │
    │  {api_prefix}/{route_path:path}      (dispatch endpoint)     │
    │        │                                                     │
    │        ▼                                                     │
    │  RouteTable.match → chain: [auth] → validate → controller    │
    │                                                              │
    │  Exception handlers: anything FastAPI itself rejects         │
    │  (unknown path, 405, bad params on /health) → failure        │
    │  envelope {"statusCode", "message", "body"}                  │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → route table summary
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sample_api import __version__
from sample_api.config import settings
from sample_api.database import dispose_engine
from sample_api.exceptions import InternalError, SampleApiError, ValidationError
from sample_api.middleware.logging import RequestLoggingMiddleware
from sample_api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from sample_api.routes import health
from sample_api.routes.samples import build_route_table
from sample_api.routing.endpoint import DISPATCH_METHODS, build_dispatch_endpoint, dispatch_path
from sample_api.routing.openapi import install_openapi
from sample_api.routing.table import RouteTable, describe
from sample_api.schemas.envelope import failure, from_error, http_status, render

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] sample_api.access: GET /api/v1/samples 200 ...
    Everything goes to stdout so the container runtime collects it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("%s %s starting up...", settings.app_name, __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and unsecured routes still work
        logger.error("Configuration error: %s", str(e))

    table: RouteTable = app.state.route_table
    for entry in describe(table):
        logger.info(
            "Route %-6s %s%s → %s",
            entry["method"], settings.api_prefix, entry["path"], " → ".join(entry["chain"]),
        )

    logger.info("Server ready at %s", settings.server_url)
    logger.info("API docs: %s/docs", settings.server_url)
    logger.info("=" * 60)

    yield

    logger.info("%s shutting down...", settings.app_name)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope_response(envelope, headers=None) -> JSONResponse:
    return JSONResponse(render(envelope), status_code=http_status(envelope), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map errors raised outside the dispatch table to the failure envelope.

    Dispatched routes never get here: the chain executor turns their faults
    into envelopes. These handlers cover FastAPI's own surface.

        SampleApiError            → its status_code
        HTTPException (404, 405)  → same status, detail as message
        RequestValidationError    → 400 with {"errors": [...]}
        Exception (fallback)      → 500, details logged only
    """

    @app.exception_handler(SampleApiError)
    async def handle_app_error(request: Request, exc: SampleApiError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return _envelope_response(from_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        body = {"method": request.method, "path": request.url.path}
        return _envelope_response(
            failure(exc.status_code, str(exc.detail), body),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "location": str(error["loc"][0]) if error.get("loc") else None,
                "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or None,
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        return _envelope_response(from_error(ValidationError(errors=errors)))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _envelope_response(from_error(InternalError()))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(table: Optional[RouteTable] = None) -> FastAPI:
    """
    Assemble the application.

    Args:
        table: a frozen route table; defaults to build_route_table(). Tests
               pass their own to exercise the dispatch endpoint in isolation.
    """
    table = table if table is not None else build_route_table()

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.route_table = table

    # Executed in reverse order of addition: Request ID runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.add_api_route(
        dispatch_path(),
        build_dispatch_endpoint(table),
        methods=DISPATCH_METHODS,
        include_in_schema=False,
    )

    install_openapi(app, table)
    return app


app = create_app()
