"""
Sample API - Token and Role Check Tests
=======================================

What we test:
    ✅ Missing, malformed, expired and forged tokens → 401
    ✅ Valid token attaches the user (string or list role claim)
    ✅ check_role: no user → 401, wrong role → 403, right role → proceed
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from sample_api.config import settings
from sample_api.routing.context import AuthenticatedUser, Proceed, Respond
from sample_api.services.auth import check_role, check_token, create_access_token, require_role


def status_of(outcome):
    assert isinstance(outcome, Respond)
    return outcome.envelope.status_code


class TestCheckToken:

    @pytest.mark.asyncio
    async def test_missing_header(self, make_context):
        ctx = make_context()
        outcome = await check_token(ctx)
        assert status_of(outcome) == 401
        assert outcome.envelope.message == "Access token is missing"
        assert ctx.user is None

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, make_context):
        ctx = make_context(headers={"Authorization": "Basic YWxpY2U6c2VjcmV0"})
        assert status_of(await check_token(ctx)) == 401

    @pytest.mark.asyncio
    async def test_garbage_token(self, make_context, bearer):
        ctx = make_context(headers=bearer("not.a.jwt"))
        outcome = await check_token(ctx)
        assert status_of(outcome) == 401
        assert outcome.envelope.message == "Access token is invalid"

    @pytest.mark.asyncio
    async def test_expired_token(self, make_context, bearer):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": "alice", "role": "admin", "iat": past, "exp": past + timedelta(minutes=5)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        outcome = await check_token(make_context(headers=bearer(token)))
        assert status_of(outcome) == 401
        assert outcome.envelope.message == "Access token has expired"

    @pytest.mark.asyncio
    async def test_wrong_signature(self, make_context, bearer):
        token = jwt.encode(
            {"sub": "mallory", "role": "admin"},
            "some-other-secret-that-is-long-enough-too",
            algorithm="HS256",
        )
        assert status_of(await check_token(make_context(headers=bearer(token)))) == 401

    @pytest.mark.asyncio
    async def test_missing_subject(self, make_context, bearer):
        token = jwt.encode({"role": "admin"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        assert status_of(await check_token(make_context(headers=bearer(token)))) == 401

    @pytest.mark.asyncio
    async def test_valid_token_attaches_user(self, make_context, admin_token, bearer):
        ctx = make_context(headers=bearer(admin_token))
        assert isinstance(await check_token(ctx), Proceed)
        assert ctx.user.subject == "alice"
        assert ctx.user.roles == ("admin",)

    @pytest.mark.asyncio
    async def test_string_role_claim(self, make_context, bearer):
        token = jwt.encode({"sub": "carol", "role": "admin"}, settings.jwt_secret, algorithm="HS256")
        ctx = make_context(headers=bearer(token))
        assert isinstance(await check_token(ctx), Proceed)
        assert ctx.user.roles == ("admin",)


class TestCheckRole:

    @pytest.mark.asyncio
    async def test_without_user_is_401(self, make_context):
        assert status_of(await check_role(make_context())) == 401

    @pytest.mark.asyncio
    async def test_wrong_role_is_403(self, make_context):
        ctx = make_context(user=AuthenticatedUser(subject="bob", roles=("viewer",)))
        outcome = await check_role(ctx)
        assert status_of(outcome) == 403
        assert outcome.envelope.body == {"requiredRoles": ["admin"]}

    @pytest.mark.asyncio
    async def test_matching_role_proceeds(self, make_context):
        ctx = make_context(user=AuthenticatedUser(subject="alice", roles=("viewer", "admin")))
        assert isinstance(await check_role(ctx), Proceed)

    @pytest.mark.asyncio
    async def test_require_any_of_several_roles(self, make_context):
        check = require_role("editor", "owner")
        ctx = make_context(user=AuthenticatedUser(subject="dan", roles=("owner",)))
        assert isinstance(await check(ctx), Proceed)


def test_create_access_token_round_trip():
    token = create_access_token("erin", roles=["admin", "viewer"], expires_in=120)
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == "erin"
    assert claims["role"] == ["admin", "viewer"]
    assert claims["exp"] - claims["iat"] == 120
