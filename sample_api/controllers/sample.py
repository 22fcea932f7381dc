"""
Sample API - Sample Controller
==============================

Thin: reads ctx.payload (set by SampleValidator), delegates to SampleService,
wraps the result in {"success": true, "result": ...}.
"""

from sample_api.routing.context import Outcome, RequestContext, Respond
from sample_api.schemas.envelope import success
from sample_api.services.sample_service import SampleService, sample_service


class SampleController:

    def __init__(self, service: SampleService = sample_service):
        self.service = service

    async def create(self, ctx: RequestContext) -> Outcome:
        sample = await self.service.create_sample(ctx.db, ctx.payload.body)
        return Respond(success(sample))

    async def list(self, ctx: RequestContext) -> Outcome:
        page = await self.service.list_samples(ctx.db, ctx.payload.query)
        return Respond(success(page))

    async def details(self, ctx: RequestContext) -> Outcome:
        sample = await self.service.get_sample(ctx.db, ctx.payload.params.sample_id)
        return Respond(success(sample))

    async def update(self, ctx: RequestContext) -> Outcome:
        sample = await self.service.update_sample(
            ctx.db, ctx.payload.params.sample_id, ctx.payload.body,
        )
        return Respond(success(sample))

    async def delete(self, ctx: RequestContext) -> Outcome:
        sample = await self.service.delete_sample(ctx.db, ctx.payload.params.sample_id)
        return Respond(success(sample))

    async def secure_action(self, ctx: RequestContext) -> Outcome:
        """Restore a soft-deleted sample; requires check_token and check_role upstream."""
        sample = await self.service.restore_sample(
            ctx.db,
            ctx.payload.params.sample_id,
            actor=ctx.user.subject,
            reason=ctx.payload.body.reason,
        )
        return Respond(success(sample))


sample_controller = SampleController()
