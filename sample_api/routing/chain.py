"""
Sample API - Middleware Chain Executor
=======================================

What:  Runs an ordered sequence of middleware against one RequestContext and
       produces exactly one response envelope.
How:   A fold over the chain. Each middleware returns Proceed (keep going,
       optionally with a replacement context) or Respond (stop here).

Fault handling (first fault terminates the chain):
    SampleApiError raised           → its own statusCode (400/401/403/404/500)
    pydantic.ValidationError raised → 400 with the offending fields
    any other Exception             → generic 500, stack trace logged only
    chain ends without Respond      → generic 500

Client disconnect:
    When the context carries an `is_disconnected` probe, the chain runs as a
    task raced against a watcher. If the client goes away first the chain task
    is cancelled, nothing is written, and execute() returns None.

Exactly-once response:
    execute() is the only writer of ctx's response; RequestContext.write()
    raises ResponseAlreadySentError on a second write.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from sample_api.exceptions import InternalError, SampleApiError, ValidationError
from sample_api.routing.context import (
    DisconnectProbe,
    Middleware,
    Proceed,
    RequestContext,
    Respond,
)
from sample_api.schemas.envelope import Envelope, from_error

logger = logging.getLogger(__name__)


def middleware_name(middleware: Middleware) -> str:
    """Readable name for logs and traces (bound methods keep their class)."""
    return (
        getattr(middleware, "__qualname__", None)
        or getattr(middleware, "__name__", None)
        or type(middleware).__name__
    )


def _error_envelope(ctx: RequestContext, name: str, exc: SampleApiError) -> Envelope:
    if exc.status_code >= 500:
        logger.error(
            "[%s] %s failed in %s: %s | Context: %s",
            ctx.request_id, type(exc).__name__, name, exc.message, exc.context,
        )
    else:
        logger.info(
            "[%s] %s stopped by %s: %s",
            ctx.request_id, ctx.path, name, exc.message,
        )
    return from_error(exc)


async def run_chain(chain: Sequence[Middleware], ctx: RequestContext) -> Envelope:
    """
    Fold `chain` over `ctx` and return the envelope that ends it.

    Never raises for middleware faults; only cancellation propagates.
    """
    current = ctx
    for middleware in chain:
        name = middleware_name(middleware)
        ctx.trace.append(name)
        try:
            outcome = await middleware(current)
        except SampleApiError as exc:
            return _error_envelope(ctx, name, exc)
        except PydanticValidationError as exc:
            return _error_envelope(ctx, name, ValidationError(errors=ValidationError.describe(exc)))
        except Exception as exc:
            logger.error(
                "[%s] Unexpected error in %s: %s",
                ctx.request_id, name, str(exc),
                exc_info=True,
            )
            return from_error(InternalError())

        if isinstance(outcome, Respond):
            return outcome.envelope
        if isinstance(outcome, Proceed):
            if outcome.context is not None:
                current = outcome.context
            continue

        logger.error(
            "[%s] %s returned %r instead of Proceed or Respond",
            ctx.request_id, name, outcome,
        )
        return from_error(InternalError())

    logger.error(
        "[%s] Chain for %s %s finished without a response (ran: %s)",
        ctx.request_id, ctx.method, ctx.path, ", ".join(ctx.trace),
    )
    return from_error(InternalError())


async def _wait_for_disconnect(probe: DisconnectProbe, interval: float) -> None:
    while not await probe():
        await asyncio.sleep(interval)


async def _unless_disconnected(
    work: Awaitable[Envelope],
    probe: DisconnectProbe,
    interval: float,
    ctx: RequestContext,
) -> Optional[Envelope]:
    task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(probe, interval))
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)

        if not task.done():
            if watcher.exception() is not None:
                # A broken probe must not cost the request its response
                logger.warning(
                    "[%s] Disconnect probe failed: %s", ctx.request_id, watcher.exception(),
                )
                return await task

            logger.info(
                "[%s] Client disconnected during %s %s; cancelling after %s",
                ctx.request_id, ctx.method, ctx.path, ctx.trace[-1] if ctx.trace else "start",
            )
            task.cancel()
            await asyncio.wait({task})
            return None

        return task.result()
    finally:
        for pending in (task, watcher):
            if not pending.done():
                pending.cancel()
        if watcher.done() and not watcher.cancelled() and watcher.exception() is not None:
            logger.debug(
                "[%s] Disconnect check failed after the chain finished: %s",
                ctx.request_id, watcher.exception(),
            )


async def execute(
    chain: Sequence[Middleware],
    ctx: RequestContext,
    poll_interval: float = 0.25,
) -> Optional[Envelope]:
    """
    Run `chain` for `ctx`, write the resulting envelope into ctx, return it.

    Returns None (and writes nothing) if the client disconnected first.
    """
    if ctx.is_disconnected is None:
        envelope = await run_chain(chain, ctx)
    else:
        envelope = await _unless_disconnected(
            run_chain(chain, ctx), ctx.is_disconnected, poll_interval, ctx,
        )
        if envelope is None:
            return None

    ctx.write(envelope)
    logger.debug("[%s] Chain trace: %s", ctx.request_id, " → ".join(ctx.trace))
    return envelope
