"""Create samples table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the `samples` table backing the Sample resource.
How:   UUIDs are generated by the application, so no server-side UUID
       function is required.

Rollback: downgrade() drops the table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "samples",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique identifier"),
        sa.Column("name", sa.String(255), nullable=False, comment="Human readable sample name"),
        sa.Column("description", sa.Text(), nullable=True, comment="Optional free-form description"),

        # Soft delete: rows are never removed by the API
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
            comment="False once the sample is soft-deleted",
        ),
        sa.Column(
            "deleted_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="When the sample was soft-deleted (UTC); NULL while active",
        ),

        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this sample was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Last mutation time (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Default listing: WHERE is_active ORDER BY created_at DESC
    op.create_index(
        "idx_samples_active_created_at",
        "samples",
        ["is_active", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_samples_active_created_at", table_name="samples")
    op.drop_table("samples")
