"""
Sample API - OpenAPI Generation
================================

What:  Builds the OpenAPI 3 document for the app, including the routes that
       live in the dispatch table rather than in FastAPI's own router.
Why:   Table routes are served through one catch-all endpoint, so FastAPI
       cannot see them. Their RouteDoc declarations carry everything needed
       to describe them.
How:   FastAPI's get_openapi() produces the base document (health, info,
       servers); this module adds one operation per table route and the
       component schemas of the pydantic models the docs reference.

Served at /openapi.json; Swagger UI at /docs, ReDoc at /redoc.
"""

from typing import Any, Dict, Iterable, Optional, Type

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel

from sample_api.config import settings
from sample_api.routing.table import Route, RouteTable
from sample_api.schemas.envelope import FailureEnvelope

REF = "#/components/schemas/{model}"
BEARER_SCHEME = "bearerAuth"


def _hoist(schema: Dict[str, Any], components: Dict[str, Any]) -> Dict[str, Any]:
    for name, definition in schema.pop("$defs", {}).items():
        components.setdefault(name, definition)
    return schema


def _register_model(
    model: Type[BaseModel],
    components: Dict[str, Any],
    mode: str = "validation",
) -> Dict[str, str]:
    schema = model.model_json_schema(by_alias=True, ref_template=REF, mode=mode)
    components.setdefault(model.__name__, _hoist(schema, components))
    return {"$ref": REF.format(model=model.__name__)}


def _parameters(model: Optional[Type[BaseModel]], location: str, names: Iterable[str] = ()) -> list:
    if model is None:
        return [
            {"name": name, "in": location, "required": True, "schema": {"type": "string"}}
            for name in names
        ]
    schema = model.model_json_schema(by_alias=True)
    required = set(schema.get("required", []))
    params = []
    for name, prop in schema.get("properties", {}).items():
        param = {
            "name": name,
            "in": location,
            "required": location == "path" or name in required,
            "schema": {k: v for k, v in prop.items() if k not in ("title", "description")},
        }
        if prop.get("description"):
            param["description"] = prop["description"]
        params.append(param)
    return params


def _envelope(description: str, result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "success": {"type": "boolean", "description": "Response Status"},
                        "result": result,
                    },
                }
            }
        },
    }


def _failure(description: str) -> Dict[str, Any]:
    return {
        "description": description,
        "content": {
            "application/json": {"schema": {"$ref": REF.format(model="FailureEnvelope")}}
        },
    }


def build_operation(route: Route, components: Dict[str, Any]) -> Dict[str, Any]:
    """One OpenAPI operation object for a table route."""
    doc = route.doc
    operation: Dict[str, Any] = {
        "summary": doc.summary or str(route),
        "tags": list(doc.tags),
        "operationId": f"{route.method.lower()}_{route.pattern.openapi_path().strip('/').replace('/', '_').replace('{', '').replace('}', '')}",
    }
    if doc.description:
        operation["description"] = doc.description

    params = _parameters(doc.path_model, "path", route.pattern.param_names)
    if doc.query_model is not None:
        params += _parameters(doc.query_model, "query")
    if params:
        operation["parameters"] = params

    if doc.request_model is not None:
        operation["requestBody"] = {
            "required": route.method in ("POST", "PUT") and not doc.secured,
            "content": {"application/json": {"schema": _register_model(doc.request_model, components)}},
        }

    result = (
        _register_model(doc.result_model, components, mode="serialization")
        if doc.result_model is not None
        else {}
    )
    responses = {
        "200": _envelope(doc.result_description or doc.summary or "Success", result),
        "400": _failure("Bad request schema"),
    }
    if doc.secured:
        responses["401"] = _failure("Missing or invalid access token")
        responses["403"] = _failure("Insufficient role")
        operation["security"] = [{BEARER_SCHEME: []}]
    if route.pattern.param_names:
        responses["404"] = _failure("Resource not found")
    operation["responses"] = responses
    return operation


def build_table_paths(table: RouteTable, prefix: str, components: Dict[str, Any]) -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    for route in table.routes:
        path = prefix + (route.pattern.openapi_path() if route.pattern.segments else "")
        paths.setdefault(path, {})[route.method.lower()] = build_operation(route, components)
    return paths


def build_openapi(app: FastAPI, table: RouteTable) -> Dict[str, Any]:
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        servers=[{"url": settings.server_url}],
        tags=[{"name": name, "description": text} for name, text in table.tags.items()],
        contact={"name": settings.contact_name, "email": settings.contact_email},
        license_info={"name": settings.license_name, "url": settings.license_url},
    )
    components = schema.setdefault("components", {})
    schemas = components.setdefault("schemas", {})
    _register_model(FailureEnvelope, schemas, mode="serialization")

    schema.setdefault("paths", {}).update(build_table_paths(table, settings.api_prefix, schemas))
    components.setdefault("securitySchemes", {})[BEARER_SCHEME] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "JWT token for the caller's authorization",
    }
    return schema


def install_openapi(app: FastAPI, table: RouteTable) -> None:
    """Replace app.openapi so /openapi.json (and /docs) include the table routes."""

    def openapi() -> Dict[str, Any]:
        if app.openapi_schema is None:
            app.openapi_schema = build_openapi(app, table)
        return app.openapi_schema

    app.openapi = openapi
