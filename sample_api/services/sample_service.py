"""
Sample API - Sample Service (Business Logic)
=============================================

What:  CRUD, soft delete and restore for the Sample resource.
Why:   Keeps persistence out of controllers; controllers only wrap results
       in envelopes.
How:   Every method receives the request's AsyncSession. Mutations commit
       before returning, so a client that disconnects after the commit still
       finds the change persisted.
Who:   Called by SampleController; the only writer of the samples table.

Lifecycle rules:
    - GET returns soft-deleted samples too (isActive=false, deletedAt set).
    - PUT on a soft-deleted sample is rejected (400); restore it first.
    - DELETE on an already deleted sample is a no-op success; deletedAt
      keeps its original value.
    - Restore clears deletedAt and sets isActive back to true.

Error Handling Strategy:
    Application errors (NotFoundError, ValidationError) propagate as-is.
    SQLAlchemy errors are logged, rolled back and re-raised as DatabaseError,
    which never exposes driver details to the client.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sample_api.exceptions import DatabaseError, NotFoundError, ValidationError
from sample_api.models.sample import Sample, utcnow
from sample_api.schemas.sample import (
    SampleCreate,
    SampleListQuery,
    SampleListResult,
    SampleRead,
    SampleUpdate,
)

logger = logging.getLogger(__name__)


class SampleService:
    """
    Stateless service; one shared instance serves all requests.

    Responsibilities:
        - create_sample():  insert an active sample
        - get_sample():     fetch one, active or not
        - list_samples():   offset pagination, newest first
        - update_sample():  partial update of an active sample
        - delete_sample():  soft delete
        - restore_sample(): undo a soft delete (secured action)
    """

    async def _load(self, db: AsyncSession, sample_id: UUID) -> Sample:
        result = await db.execute(select(Sample).where(Sample.id == sample_id))
        sample = result.scalar_one_or_none()
        if sample is None:
            raise NotFoundError(resource="sample", resource_id=str(sample_id))
        return sample

    async def _commit(self, db: AsyncSession, sample: Sample, action: str) -> SampleRead:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error on %s of sample: %s", action, str(e), exc_info=True)
            raise DatabaseError(context={"action": action, "error_type": type(e).__name__})
        await db.refresh(sample)
        return SampleRead.model_validate(sample)

    async def create_sample(self, db: AsyncSession, data: SampleCreate) -> SampleRead:
        """
        Insert a new active sample.

        Returns:
            SampleRead of the stored row (id and timestamps assigned)

        Raises:
            DatabaseError: insert failed
        """
        now = utcnow()
        sample = Sample(
            name=data.name,
            description=data.description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db.add(sample)
        result = await self._commit(db, sample, "create")
        logger.info("Sample created: %s", result.id)
        return result

    async def get_sample(self, db: AsyncSession, sample_id: UUID) -> SampleRead:
        """
        Fetch one sample by id, including soft-deleted ones.

        Raises:
            NotFoundError: no sample was ever created with this id (404)
            DatabaseError: query failed
        """
        try:
            sample = await self._load(db, sample_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching sample %s: %s", sample_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the sample. Please try again.",
                context={"sample_id": str(sample_id)},
            )
        return SampleRead.model_validate(sample)

    async def list_samples(self, db: AsyncSession, query: SampleListQuery) -> SampleListResult:
        """
        One page of samples, newest first.

        Query plan (default filter):
            SELECT ... WHERE is_active ORDER BY created_at DESC LIMIT :limit OFFSET :offset
            → idx_samples_active_created_at

        `total` is counted with the same filter and ignores limit/offset.
        """
        stmt = select(Sample)
        count_stmt = select(func.count(Sample.id))
        if not query.include_inactive:
            stmt = stmt.where(Sample.is_active.is_(True))
            count_stmt = count_stmt.where(Sample.is_active.is_(True))
        stmt = stmt.order_by(desc(Sample.created_at), desc(Sample.id)).limit(query.limit).offset(query.offset)

        try:
            rows = list((await db.execute(stmt)).scalars().all())
            total = (await db.execute(count_stmt)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing samples: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve samples. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return SampleListResult(
            total=total,
            list=[SampleRead.model_validate(row) for row in rows],
        )

    async def update_sample(
        self, db: AsyncSession, sample_id: UUID, data: SampleUpdate
    ) -> SampleRead:
        """
        Apply the fields present in `data` to an active sample.

        Raises:
            NotFoundError:   unknown id
            ValidationError: the sample is soft-deleted
            DatabaseError:   update failed
        """
        sample = await self._load(db, sample_id)
        if not sample.is_active:
            raise ValidationError(
                message="Cannot update a deleted sample",
                errors=[{
                    "location": "params",
                    "field": "sampleId",
                    "message": "Restore the sample before updating it",
                }],
                context={"sample_id": str(sample_id)},
            )

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(sample, key, value)
        sample.updated_at = utcnow()

        result = await self._commit(db, sample, "update")
        logger.info("Sample updated: %s", sample_id)
        return result

    async def delete_sample(self, db: AsyncSession, sample_id: UUID) -> SampleRead:
        """
        Soft delete: set is_active=False and stamp deleted_at.

        Deleting an already deleted sample returns it unchanged.
        """
        sample = await self._load(db, sample_id)
        if not sample.is_active:
            logger.info("Sample %s already deleted at %s", sample_id, sample.deleted_at)
            return SampleRead.model_validate(sample)

        now = utcnow()
        sample.is_active = False
        sample.deleted_at = now
        sample.updated_at = now

        result = await self._commit(db, sample, "delete")
        logger.info("Sample soft-deleted: %s", sample_id)
        return result

    async def restore_sample(
        self,
        db: AsyncSession,
        sample_id: UUID,
        actor: str,
        reason: Optional[str] = None,
    ) -> SampleRead:
        """
        Undo a soft delete. Restoring an active sample is a no-op.

        Args:
            actor:  token subject of the caller, written to the audit log
            reason: optional free text from the request body
        """
        sample = await self._load(db, sample_id)
        if sample.is_active:
            logger.info("Restore of active sample %s by %s ignored", sample_id, actor)
            return SampleRead.model_validate(sample)

        sample.is_active = True
        sample.deleted_at = None
        sample.updated_at = utcnow()

        result = await self._commit(db, sample, "restore")
        logger.warning(
            "Sample %s restored by %s (reason: %s)", sample_id, actor, reason or "none given",
        )
        return result


# Stateless; shared by all requests
sample_service = SampleService()
