"""Events table: races and legs, JSON categories and per-category fees.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_time", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("distance", sa.Numeric(8, 2), nullable=True),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("registration_fees", sa.JSON(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'upcoming'")),
        sa.Column("is_leg", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("leg_number", sa.Integer(), nullable=True),
        sa.Column(
            "parent_event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", name="fk_events_parent_event_id_events", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('upcoming', 'ongoing', 'finished')",
            name="ck_events_check_event_status",
        ),
        sa.CheckConstraint(
            "distance IS NULL OR distance >= 0",
            name="ck_events_check_event_distance_non_negative",
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # The grid always loads the full list ordered by event_date DESC
    op.create_index("ix_events_event_date", "events", ["event_date"])
    # Legs are looked up (and cascade-deleted) by their parent
    op.create_index("ix_events_parent_event_id", "events", ["parent_event_id"])


def downgrade() -> None:
    op.drop_index("ix_events_parent_event_id", table_name="events")
    op.drop_index("ix_events_event_date", table_name="events")
    op.drop_index("ix_events_id", table_name="events")
    op.drop_table("events")
