"""
Sample API - Sample SQLAlchemy Model
=====================================

What:  ORM model representing the `samples` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by SampleService for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key generated in Python so every backend (PostgreSQL,
      SQLite in tests) gets the same ids without server functions
    - is_active + deleted_at: soft delete. DELETE never removes the row;
      it flips is_active and stamps deleted_at
    - created_at / updated_at: UTC, timezone-aware where the backend supports it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid, text, true
from sqlalchemy.orm import Mapped, mapped_column

from sample_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sample(Base):
    """
    Represents one Sample resource.

    Lifecycle:
        1. Created by POST /samples (is_active = True)
        2. Updated by PUT /samples/{id} while active
        3. Soft-deleted by DELETE /samples/{id} (is_active = False, deleted_at set)
        4. Restored by the secured action (is_active = True, deleted_at cleared)
        The row itself is never removed by the API.

    Query Patterns:
        - List active samples: WHERE is_active ORDER BY created_at DESC
          → idx_samples_active_created_at
        - Get single sample: WHERE id = :uuid → primary key
    """

    __tablename__ = "samples"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Human readable sample name",
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Optional free-form description",
    )

    # ── Soft Delete ───────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
        comment="False once the sample is soft-deleted",
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="When the sample was soft-deleted (UTC); NULL while active",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this sample was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="Last mutation time (UTC); set explicitly by SampleService",
    )

    __table_args__ = (
        Index("idx_samples_active_created_at", "is_active", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Sample(id={self.id}, name='{self.name}', "
            f"is_active={self.is_active})>"
        )
