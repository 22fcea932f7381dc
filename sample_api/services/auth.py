"""
Sample API - Token and Role Checks
===================================

What:  The two auth middleware used in route chains: check_token and check_role.
How:   check_token reads `Authorization: Bearer <jwt>`, verifies it with PyJWT
       and attaches an AuthenticatedUser to the context. check_role compares
       the user's roles with the roles allowed to run the secured action.
       Both answer with a failure envelope instead of raising, so the chain
       stops before any validator or controller runs:
           no / bad token   → 401
           role mismatch    → 403

Token claims:
    sub   → AuthenticatedUser.subject (required)
    role  → roles; a string or a list of strings (claim name configurable)
    exp   → enforced by PyJWT when present
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Sequence

import jwt

from sample_api.config import settings
from sample_api.exceptions import AuthenticationError, AuthorizationError
from sample_api.routing.context import (
    AuthenticatedUser,
    Middleware,
    Outcome,
    Proceed,
    RequestContext,
    Respond,
)
from sample_api.schemas.envelope import from_error

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def _roles_from(claims: Dict[str, Any]) -> tuple:
    raw = claims.get(settings.jwt_role_claim)
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(role) for role in raw)


def _bearer_token(ctx: RequestContext) -> Optional[str]:
    header = ctx.headers.get("authorization") or ctx.headers.get("Authorization")
    if not header or not header.lower().startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


def decode_token(token: str) -> AuthenticatedUser:
    """
    Verify `token` and build the user it identifies.

    Raises:
        AuthenticationError: expired, forged, malformed, or missing `sub`
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Access token has expired")
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError(
            message="Access token is invalid",
            context={"reason": str(exc)},
        )
    return AuthenticatedUser(subject=str(claims["sub"]), roles=_roles_from(claims), claims=claims)


async def check_token(ctx: RequestContext) -> Outcome:
    token = _bearer_token(ctx)
    if token is None:
        return Respond(from_error(AuthenticationError(message="Access token is missing")))

    try:
        ctx.user = decode_token(token)
    except AuthenticationError as exc:
        logger.info("[%s] Rejected token: %s %s", ctx.request_id, exc.message, exc.context)
        return Respond(from_error(exc))

    logger.debug("[%s] Authenticated %s roles=%s", ctx.request_id, ctx.user.subject, ctx.user.roles)
    return Proceed()


def require_role(*roles: str) -> Middleware:
    """Build a middleware that lets through users holding any of `roles`."""
    allowed: Sequence[str] = tuple(roles)

    async def check_role(ctx: RequestContext) -> Outcome:
        if ctx.user is None:
            return Respond(from_error(AuthenticationError()))
        if not ctx.user.has_any_role(allowed):
            logger.info(
                "[%s] %s lacks role %s (has %s)",
                ctx.request_id, ctx.user.subject, list(allowed), list(ctx.user.roles),
            )
            return Respond(from_error(AuthorizationError(required_roles=list(allowed))))
        return Proceed()

    return check_role


check_role = require_role(*settings.secure_action_roles_list)


def create_access_token(
    subject: str,
    roles: Iterable[str] = (),
    expires_in: Optional[int] = None,
    **extra_claims: Any,
) -> str:
    """Issue a signed token, e.g. for operators and tests."""
    now = datetime.now(timezone.utc)
    ttl = settings.jwt_default_ttl if expires_in is None else expires_in
    claims: Dict[str, Any] = {
        "sub": subject,
        settings.jwt_role_claim: list(roles),
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
        **extra_claims,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
