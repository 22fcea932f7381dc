"""
Sample API - Middleware Chain Executor Tests
============================================

What we test:
    ✅ Proceed continues, Respond stops, later middleware never run
    ✅ Proceed(context) swaps the context for the rest of the chain
    ✅ Raised errors become envelopes with the right statusCode
    ✅ A chain without Respond, or a bad return value, is a 500
    ✅ Exactly one response per request
    ✅ Client disconnect cancels the chain and writes nothing
    ✅ A failing disconnect check never costs the request its response
"""

import asyncio
import logging
from dataclasses import replace

import pytest
from pydantic import BaseModel

from sample_api.exceptions import (
    AuthorizationError,
    NotFoundError,
    ResponseAlreadySentError,
)
from sample_api.routing.chain import execute, run_chain
from sample_api.routing.context import Proceed, Respond
from sample_api.schemas.envelope import FailureEnvelope, SuccessEnvelope, success


async def proceed(ctx):
    return Proceed()


async def done(ctx):
    return Respond(success({"who": ctx.state.get("who")}))


async def never(ctx):
    raise AssertionError("must not run")


class TestRunChain:

    @pytest.mark.asyncio
    async def test_respond_stops_chain(self, make_context):
        ctx = make_context()
        envelope = await run_chain([proceed, done, never], ctx)
        assert isinstance(envelope, SuccessEnvelope)
        assert ctx.trace == ["proceed", "done"]

    @pytest.mark.asyncio
    async def test_proceed_with_replacement_context(self, make_context):
        async def swap(ctx):
            return Proceed(replace(ctx, state={"who": "replacement"}))

        envelope = await run_chain([swap, done], make_context())
        assert envelope.result == {"who": "replacement"}

    @pytest.mark.asyncio
    async def test_in_place_annotation_visible_downstream(self, make_context):
        async def annotate(ctx):
            ctx.state["who"] = "annotated"
            return Proceed()

        envelope = await run_chain([annotate, done], make_context())
        assert envelope.result == {"who": "annotated"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error, status", [
        (NotFoundError(resource="sample", resource_id="x"), 404),
        (AuthorizationError(required_roles=["admin"]), 403),
    ])
    async def test_application_error_maps_to_status(self, make_context, error, status):
        async def fail(ctx):
            raise error

        ctx = make_context()
        envelope = await run_chain([fail, never], ctx)
        assert isinstance(envelope, FailureEnvelope)
        assert envelope.status_code == status
        assert envelope.message == error.message

    @pytest.mark.asyncio
    async def test_pydantic_error_maps_to_400(self, make_context):
        class Body(BaseModel):
            name: str

        async def parse(ctx):
            Body.model_validate({})
            return Proceed()

        envelope = await run_chain([parse, never], make_context())
        assert envelope.status_code == 400
        assert envelope.body["errors"][0]["field"] == "name"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic_500(self, make_context):
        async def crash(ctx):
            raise KeyError("secret internals")

        envelope = await run_chain([crash], make_context())
        assert envelope.status_code == 500
        assert "secret" not in envelope.message
        assert envelope.body == {}

    @pytest.mark.asyncio
    async def test_chain_without_respond_is_500(self, make_context):
        envelope = await run_chain([proceed, proceed], make_context())
        assert envelope.status_code == 500

    @pytest.mark.asyncio
    async def test_bad_return_value_is_500(self, make_context):
        async def confused(ctx):
            return {"success": True}

        envelope = await run_chain([confused, never], make_context())
        assert envelope.status_code == 500


class TestExecute:

    @pytest.mark.asyncio
    async def test_writes_exactly_once(self, make_context):
        ctx = make_context()
        envelope = await execute([done], ctx)
        assert ctx.response is envelope

        with pytest.raises(ResponseAlreadySentError):
            ctx.write(envelope)

    @pytest.mark.asyncio
    async def test_disconnect_cancels_chain(self, make_context):
        reached_end = False
        started = asyncio.Event()
        disconnected = False

        async def slow(ctx):
            nonlocal reached_end
            started.set()
            await asyncio.sleep(5)
            reached_end = True
            return Respond(success())

        async def probe():
            return disconnected

        async def drop_client():
            nonlocal disconnected
            await started.wait()
            disconnected = True

        ctx = make_context(is_disconnected=probe)
        dropper = asyncio.create_task(drop_client())
        result = await execute([slow], ctx, poll_interval=0.01)
        await dropper

        assert result is None
        assert not ctx.responded
        assert not reached_end

    @pytest.mark.asyncio
    async def test_connected_client_gets_response(self, make_context):
        async def probe():
            return False

        ctx = make_context(is_disconnected=probe)
        envelope = await execute([done], ctx, poll_interval=0.01)
        assert isinstance(envelope, SuccessEnvelope)
        assert ctx.responded

    @pytest.mark.asyncio
    async def test_broken_probe_does_not_lose_response(self, make_context):
        async def probe():
            raise RuntimeError("transport gone weird")

        async def slowish(ctx):
            await asyncio.sleep(0.05)
            return Respond(success("ok"))

        ctx = make_context(is_disconnected=probe)
        envelope = await execute([slowish], ctx, poll_interval=0.01)
        assert envelope.result == "ok"

    @pytest.mark.asyncio
    async def test_disconnect_check_failing_as_chain_finishes_is_logged(self, make_context, caplog):
        finished = asyncio.Event()

        async def check():
            await finished.wait()
            raise RuntimeError("transport gone weird")

        async def quick(ctx):
            finished.set()
            return Respond(success("ok"))

        caplog.set_level(logging.DEBUG, logger="sample_api.routing.chain")
        ctx = make_context(is_disconnected=check)
        envelope = await execute([quick], ctx, poll_interval=0.01)

        assert envelope.result == "ok"
        assert ctx.responded
        assert any("transport gone weird" in record.getMessage() for record in caplog.records)
