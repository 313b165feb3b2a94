"""create scheduling tables

Revision ID: 3f1c9a7d2b40
Create Date: 2026-10-19 12:00:00.000000
"""

from alembic import op

import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scheduling_availability_rules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("consultant_id", sa.String(length=36), nullable=False),
        sa.Column("weekday", sa.SmallInteger(), nullable=False),
        sa.Column("start", sa.Time(), nullable=False),
        sa.Column("end", sa.Time(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id"),
        mysql_collate="utf8mb4_bin",
    )
    op.create_index(
        op.f("ix_scheduling_availability_rules_consultant_id"), "scheduling_availability_rules", ["consultant_id"]
    )
    op.create_table(
        "scheduling_time_slots",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("consultant_id", sa.String(length=36), nullable=False),
        sa.Column("start", sa.DateTime(), nullable=False),
        sa.Column("end", sa.DateTime(), nullable=False),
        sa.Column("booked", sa.Boolean(), nullable=False),
        sa.Column("booking_id", sa.String(length=36), nullable=True),
        sa.Column("released_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id"),
        sa.UniqueConstraint("consultant_id", "start", name="uq_consultant_slot_start"),
        mysql_collate="utf8mb4_bin",
    )
    op.create_index(op.f("ix_scheduling_time_slots_consultant_id"), "scheduling_time_slots", ["consultant_id"])
    op.create_index(op.f("ix_scheduling_time_slots_start"), "scheduling_time_slots", ["start"])
    op.create_table(
        "scheduling_bookings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column("consultant_id", sa.String(length=36), nullable=False),
        sa.Column("slot_id", sa.String(length=36), nullable=False),
        sa.Column(
            "status", sa.Enum("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", name="bookingstatus"), nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cancelled_by", sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(["slot_id"], ["scheduling_time_slots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id"),
        mysql_collate="utf8mb4_bin",
    )
    op.create_index(op.f("ix_scheduling_bookings_client_id"), "scheduling_bookings", ["client_id"])
    op.create_index(op.f("ix_scheduling_bookings_consultant_id"), "scheduling_bookings", ["consultant_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_scheduling_bookings_consultant_id"), table_name="scheduling_bookings")
    op.drop_index(op.f("ix_scheduling_bookings_client_id"), table_name="scheduling_bookings")
    op.drop_table("scheduling_bookings")
    op.drop_index(op.f("ix_scheduling_time_slots_start"), table_name="scheduling_time_slots")
    op.drop_index(op.f("ix_scheduling_time_slots_consultant_id"), table_name="scheduling_time_slots")
    op.drop_table("scheduling_time_slots")
    op.drop_index(op.f("ix_scheduling_availability_rules_consultant_id"), table_name="scheduling_availability_rules")
    op.drop_table("scheduling_availability_rules")
