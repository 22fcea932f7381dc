"""
Sample API - Sample Validator
=============================

What:  One validation step per Sample action.
How:   Each method parses the parts of the request its action uses:

    action          params        query            body
    ─────────────   ───────────   ──────────────   ──────────────────
    create          -             -                SampleCreate
    list            -             SampleListQuery  -
    details         SamplePath    -                -
    update          SamplePath    -                SampleUpdate
    delete          SamplePath    -                -
    secure_action   SamplePath    -                SecureActionRequest (optional)

    All failures of one request are collected into a single 400 envelope:
        {"statusCode": 400, "message": "Validation failed",
         "body": {"errors": [{"location": "body", "field": "name", "message": "..."}]}}
"""

import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sample_api.exceptions import ValidationError
from sample_api.routing.context import Outcome, Proceed, RequestContext, Respond, ValidatedInput
from sample_api.schemas.envelope import from_error
from sample_api.schemas.sample import (
    SampleCreate,
    SampleListQuery,
    SamplePath,
    SampleUpdate,
    SecureActionRequest,
)

logger = logging.getLogger(__name__)


def _parse(
    model: Type[BaseModel],
    data: Any,
    location: str,
    errors: List[Dict[str, Any]],
) -> Optional[BaseModel]:
    if location == "body" and not isinstance(data, dict):
        errors.append({
            "location": "body",
            "field": None,
            "message": "Request body must be a JSON object",
        })
        return None
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        errors.extend(ValidationError.describe(exc, location=location))
        return None


class SampleValidator:
    """Stateless; the shared instance's bound methods are placed in route chains."""

    async def _accept(
        self,
        ctx: RequestContext,
        params: Optional[Type[BaseModel]] = None,
        query: Optional[Type[BaseModel]] = None,
        body: Optional[Type[BaseModel]] = None,
        body_optional: bool = False,
    ) -> Outcome:
        errors: List[Dict[str, Any]] = []
        parsed = ValidatedInput()

        if params is not None:
            parsed.params = _parse(params, ctx.params, "params", errors)
        if query is not None:
            parsed.query = _parse(query, ctx.query, "query", errors)
        if body is not None:
            data = {} if ctx.body is None and body_optional else ctx.body
            parsed.body = _parse(body, data, "body", errors)

        if errors:
            logger.info("[%s] %s %s rejected: %s", ctx.request_id, ctx.method, ctx.path, errors)
            return Respond(from_error(ValidationError(errors=errors)))

        ctx.payload = parsed
        return Proceed()

    async def create(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, body=SampleCreate)

    async def list(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, query=SampleListQuery)

    async def details(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, params=SamplePath)

    async def update(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, params=SamplePath, body=SampleUpdate)

    async def delete(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, params=SamplePath)

    async def secure_action(self, ctx: RequestContext) -> Outcome:
        return await self._accept(ctx, params=SamplePath, body=SecureActionRequest, body_optional=True)


sample_validator = SampleValidator()
