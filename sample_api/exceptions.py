"""
Sample API - Custom Exception Hierarchy
========================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Each exception knows the HTTP status it maps to, so the middleware chain
       executor and the FastAPI exception handlers can turn it into the same
       failure envelope: {"statusCode": int, "message": str, "body": object}.
How:   Each exception carries a message, a public `body` (returned to the
       client) and a private `context` (logged, never returned).
Who:   Raised by services, validators and auth checks; caught by the chain
       executor (routing/chain.py) and by the handlers in main.py.

Exception Hierarchy:
    SampleApiError (base)
    ├── ValidationError        → 400 Bad Request (client can fix)
    ├── AuthenticationError    → 401 Unauthorized (missing/invalid token)
    ├── AuthorizationError     → 403 Forbidden (insufficient role)
    ├── NotFoundError          → 404 Not Found (no route or no resource)
    ├── DatabaseError          → 500 Internal Server Error
    └── InternalError          → 500 Internal Server Error

    Programming errors (never turned into responses):
    ├── RouteConflictError        (duplicate route at startup)
    └── ResponseAlreadySentError  (second write on one request)
"""

from typing import Any, Dict, List, Optional


class SampleApiError(Exception):
    """
    Base exception for all Sample API errors.

    Attributes:
        status_code: HTTP status mirrored into the envelope's statusCode
        message:     User-facing error description (safe to return)
        body:        Public structured context returned in the envelope
        context:     Debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        body: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.body = body or {}
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SampleApiError):
    """
    Raised when client input fails validation.

    HTTP:  400 Bad Request

    Example envelope:
        {
            "statusCode": 400,
            "message": "Validation failed",
            "body": {"errors": [{"location": "body", "field": "name",
                                 "message": "Field required"}]}
        }
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        errors = list(errors or [])
        if field and not errors:
            errors.append({"location": None, "field": field, "message": message})
        super().__init__(message=message, body={"errors": errors}, context=context)
        self.errors = errors
        self.field = field

    @staticmethod
    def describe(exc: Any, location: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Flatten a pydantic ValidationError into [{location, field, message}].

        Field paths use the aliases the client sent (sampleId, includeInactive);
        model-level errors have field None.
        """
        described = []
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ())]
            described.append({
                "location": location,
                "field": ".".join(loc) or None,
                "message": error.get("msg", "Invalid value"),
            })
        return described


class AuthenticationError(SampleApiError):
    """Missing, malformed, expired or forged bearer token (401)."""

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication is required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(SampleApiError):
    """
    Authenticated caller lacks a required role (403).

    The required roles are returned in the body so clients can tell a
    permissions problem apart from a bad token.
    """

    status_code = 403

    def __init__(
        self,
        required_roles: Optional[List[str]] = None,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            body={"requiredRoles": list(required_roles or [])},
            context=context,
        )
        self.required_roles = list(required_roles or [])


class NotFoundError(SampleApiError):
    """
    Raised when a requested route or resource does not exist.

    HTTP:  404 Not Found
    When:  No route matches (method, path), or GET /samples/{id} names an id
           that was never created. Soft-deleted samples are NOT "not found".
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        public = dict(body or {})
        public.setdefault("resource", resource)
        if resource_id:
            public.setdefault("resourceId", resource_id)
        super().__init__(message=message, body=public, context=context)


class DatabaseError(SampleApiError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; driver details go
    to `context` and are logged server-side only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalError(SampleApiError):
    """Unexpected fault inside a middleware; never exposes internals (500)."""

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred. Please try again or contact support.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RouteConflictError(Exception):
    """
    Raised at startup when the same (method, path pattern) is registered twice.

    Patterns that differ only in parameter names ('/:id' vs '/:sampleId')
    have the same shape and conflict too.
    """

    def __init__(self, method: str, pattern: str, existing: str):
        self.method = method
        self.pattern = pattern
        self.existing = existing
        super().__init__(
            f"Route {method} {pattern!r} conflicts with already registered {method} {existing!r}"
        )


class ResponseAlreadySentError(RuntimeError):
    """Raised when something tries to write a second response for one request."""
