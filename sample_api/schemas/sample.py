"""
Sample API - Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the API contract for the Sample resource.
Why:   Validators parse requests with these models, services serialize rows
       through them, and the OpenAPI generator reads their JSON schemas.
How:   JSON keys are camelCase (isActive, createdAt); Python attributes stay
       snake_case via an alias generator.

Design Decision:
    Schemas are separate from SQLAlchemy models because the API contract
    changes independently of the table (camelCase keys, read-only timestamps).
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from sample_api.config import settings


_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SampleRead(BaseModel):
    """
    What:  Full representation of a sample.
    Who:   Result of create, details, update, delete and secureAction.

    Soft-deleted samples are still returned, with isActive=false and deletedAt set.
    """
    id: uuid.UUID = Field(description="Unique sample identifier (UUID)")
    name: str = Field(description="Sample name")
    description: Optional[str] = Field(default=None, description="Optional description")
    is_active: bool = Field(description="False once the sample was soft-deleted")
    created_at: datetime = Field(description="Creation time (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last modification time (UTC ISO 8601)")
    deleted_at: Optional[datetime] = Field(default=None, description="Soft-delete time, null while active")

    model_config = {"from_attributes": True, **_CAMEL}

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands timestamps back without their offset
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class SampleListResult(BaseModel):
    """
    What:  Result of GET /samples.
    `total` counts every sample matching the filter, not just this page.
    """
    total: int = Field(description="Number of samples matching the filter")
    list: List[SampleRead] = Field(description="Samples on this page")


# ══════════════════════════════════════════════════════════════════════════
# Request Models (parsed by validators)
# ══════════════════════════════════════════════════════════════════════════


class SamplePath(BaseModel):
    """Path parameters of /samples/{sampleId} routes."""
    sample_id: uuid.UUID = Field(description="Sample ID")

    model_config = _CAMEL


class SampleCreate(BaseModel):
    """Body of POST /samples."""
    name: str = Field(min_length=1, max_length=255, description="Sample name")
    description: Optional[str] = Field(default=None, max_length=2000, description="Optional description")

    model_config = {"extra": "forbid", "str_strip_whitespace": True, **_CAMEL}


class SampleUpdate(BaseModel):
    """
    Body of PUT /samples/{sampleId}.

    Only fields present in the body are applied. `description: null`
    clears the description; `name` cannot be cleared.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)

    model_config = {"extra": "forbid", "str_strip_whitespace": True, **_CAMEL}

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("name cannot be null")
        return v

    @model_validator(mode="after")
    def at_least_one_field(self) -> "SampleUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one of 'name' or 'description' must be provided")
        return self


class SampleListQuery(BaseModel):
    """Query string of GET /samples."""
    limit: int = Field(
        default=settings.default_page_size, ge=1, le=settings.max_page_size,
        description="Items per page",
    )
    offset: int = Field(default=0, ge=0, description="Items to skip")
    include_inactive: bool = Field(default=False, description="Also list soft-deleted samples")

    model_config = {"extra": "ignore", **_CAMEL}


class SecureActionRequest(BaseModel):
    """
    Body of POST /samples/{sampleId}/secureAction.

    The secured action restores a soft-deleted sample. The body is optional;
    `reason` ends up in the audit log line.
    """
    reason: Optional[str] = Field(default=None, max_length=500, description="Why the action is taken")

    model_config = {"extra": "forbid", "str_strip_whitespace": True, **_CAMEL}
