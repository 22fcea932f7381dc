"""
Sample API - Route Dispatch Core
================================

    context.py   RequestContext, Proceed / Respond, AuthenticatedUser
    chain.py     the middleware chain executor (fold, fault mapping, disconnect race)
    table.py     compiled path patterns and the frozen route table
    endpoint.py  FastAPI endpoint that feeds requests to the table
    openapi.py   OpenAPI paths generated from route declarations
"""

from sample_api.routing.chain import execute, run_chain
from sample_api.routing.context import (
    AuthenticatedUser,
    Middleware,
    Outcome,
    Proceed,
    RequestContext,
    Respond,
    ValidatedInput,
)
from sample_api.routing.table import PathPattern, Route, RouteDoc, RouteTable

__all__ = [
    "AuthenticatedUser",
    "Middleware",
    "Outcome",
    "PathPattern",
    "Proceed",
    "RequestContext",
    "Respond",
    "Route",
    "RouteDoc",
    "RouteTable",
    "ValidatedInput",
    "execute",
    "run_chain",
]
