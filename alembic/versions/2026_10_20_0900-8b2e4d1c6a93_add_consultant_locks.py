"""add consultant locks

Revision ID: 8b2e4d1c6a93
Create Date: 2026-10-20 09:00:00.000000
"""

from alembic import op

import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b2e4d1c6a93"
down_revision = "3f1c9a7d2b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scheduling_consultant_locks",
        sa.Column("consultant_id", sa.String(length=36), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("consultant_id"),
        mysql_collate="utf8mb4_bin",
    )


def downgrade() -> None:
    op.drop_table("scheduling_consultant_locks")
