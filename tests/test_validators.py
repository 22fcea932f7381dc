"""
Sample API - Validator Tests
============================

What we test:
    ✅ Valid input is parsed onto ctx.payload and the chain proceeds
    ✅ Invalid input short-circuits with one 400 listing every problem
    ✅ Query strings are coerced (limit, includeInactive)
    ✅ Update needs at least one field and cannot null the name
"""

import uuid

import pytest

from sample_api.routing.context import Proceed, Respond
from sample_api.validators.sample import sample_validator


def errors_of(outcome):
    assert isinstance(outcome, Respond)
    assert outcome.envelope.status_code == 400
    return outcome.envelope.body["errors"]


class TestCreate:

    @pytest.mark.asyncio
    async def test_valid_body(self, make_context):
        ctx = make_context("POST", "/samples", body={"name": "  Alpha ", "description": "d"})
        outcome = await sample_validator.create(ctx)
        assert isinstance(outcome, Proceed)
        assert ctx.payload.body.name == "Alpha"
        assert ctx.payload.body.description == "d"

    @pytest.mark.asyncio
    async def test_missing_name(self, make_context):
        ctx = make_context("POST", "/samples", body={"description": "d"})
        errors = errors_of(await sample_validator.create(ctx))
        assert errors == [{"location": "body", "field": "name", "message": "Field required"}]
        assert ctx.payload is None

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, make_context):
        ctx = make_context("POST", "/samples", body={"name": "a", "color": "red"})
        errors = errors_of(await sample_validator.create(ctx))
        assert errors[0]["field"] == "color"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [None, [], "name"])
    async def test_body_must_be_object(self, make_context, body):
        ctx = make_context("POST", "/samples", body=body)
        errors = errors_of(await sample_validator.create(ctx))
        assert errors[0]["location"] == "body"

    @pytest.mark.asyncio
    async def test_name_too_long(self, make_context):
        ctx = make_context("POST", "/samples", body={"name": "x" * 256})
        errors = errors_of(await sample_validator.create(ctx))
        assert errors[0]["field"] == "name"


class TestList:

    @pytest.mark.asyncio
    async def test_defaults(self, make_context):
        ctx = make_context("GET", "/samples")
        assert isinstance(await sample_validator.list(ctx), Proceed)
        assert ctx.payload.query.limit == 20
        assert ctx.payload.query.offset == 0
        assert ctx.payload.query.include_inactive is False

    @pytest.mark.asyncio
    async def test_query_strings_coerced(self, make_context):
        ctx = make_context(
            "GET", "/samples",
            query={"limit": "5", "offset": "10", "includeInactive": "true", "ignored": "x"},
        )
        assert isinstance(await sample_validator.list(ctx), Proceed)
        assert ctx.payload.query.limit == 5
        assert ctx.payload.query.offset == 10
        assert ctx.payload.query.include_inactive is True

    @pytest.mark.asyncio
    async def test_limit_bounds(self, make_context):
        ctx = make_context("GET", "/samples", query={"limit": "0", "offset": "-1"})
        errors = errors_of(await sample_validator.list(ctx))
        assert {e["field"] for e in errors} == {"limit", "offset"}
        assert {e["location"] for e in errors} == {"query"}


class TestDetails:

    @pytest.mark.asyncio
    async def test_valid_id(self, make_context):
        sample_id = uuid.uuid4()
        ctx = make_context("GET", f"/samples/{sample_id}", params={"sampleId": str(sample_id)})
        assert isinstance(await sample_validator.details(ctx), Proceed)
        assert ctx.payload.params.sample_id == sample_id

    @pytest.mark.asyncio
    async def test_malformed_id(self, make_context):
        ctx = make_context("GET", "/samples/nope", params={"sampleId": "nope"})
        errors = errors_of(await sample_validator.details(ctx))
        assert errors[0] == {
            "location": "params",
            "field": "sampleId",
            "message": errors[0]["message"],
        }


class TestUpdate:

    @pytest.mark.asyncio
    async def test_partial_update(self, make_context):
        ctx = make_context(
            "PUT", "/samples/x",
            params={"sampleId": str(uuid.uuid4())},
            body={"description": None},
        )
        assert isinstance(await sample_validator.update(ctx), Proceed)
        assert ctx.payload.body.model_dump(exclude_unset=True) == {"description": None}

    @pytest.mark.asyncio
    async def test_empty_body_rejected(self, make_context):
        ctx = make_context("PUT", "/samples/x", params={"sampleId": str(uuid.uuid4())}, body={})
        errors_of(await sample_validator.update(ctx))

    @pytest.mark.asyncio
    async def test_null_name_rejected(self, make_context):
        ctx = make_context(
            "PUT", "/samples/x", params={"sampleId": str(uuid.uuid4())}, body={"name": None},
        )
        errors = errors_of(await sample_validator.update(ctx))
        assert errors[0]["field"] == "name"

    @pytest.mark.asyncio
    async def test_params_and_body_errors_reported_together(self, make_context):
        ctx = make_context("PUT", "/samples/x", params={"sampleId": "x"}, body={"name": ""})
        errors = errors_of(await sample_validator.update(ctx))
        assert [e["location"] for e in errors] == ["params", "body"]


class TestSecureAction:

    @pytest.mark.asyncio
    async def test_body_is_optional(self, make_context):
        ctx = make_context("POST", "/samples/x/secureAction", params={"sampleId": str(uuid.uuid4())})
        assert isinstance(await sample_validator.secure_action(ctx), Proceed)
        assert ctx.payload.body.reason is None

    @pytest.mark.asyncio
    async def test_reason_must_be_string(self, make_context):
        ctx = make_context(
            "POST", "/samples/x/secureAction",
            params={"sampleId": str(uuid.uuid4())}, body={"reason": 5},
        )
        errors = errors_of(await sample_validator.secure_action(ctx))
        assert errors[0]["field"] == "reason"
