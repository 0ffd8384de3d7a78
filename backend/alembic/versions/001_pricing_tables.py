"""rooms, bookings, pricing_events queue and pricing outputs (price_approvals, pricing_adjustment_logs, price_cache)."""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("base_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("price_per_night", sa.Numeric(14, 2), nullable=True),
        sa.Column("min_auto_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("max_auto_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("auto_pricing_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("allotment", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(64), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("units", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(32), nullable=False, server_default="confirmed"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_room_id", "bookings", ["room_id"])
    op.create_index("ix_bookings_check_in", "bookings", ["check_in"])

    # Queue: selection is processed = false ORDER BY priority DESC, created_at ASC.
    op.create_table(
        "pricing_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pricing_events_room_id", "pricing_events", ["room_id"])
    op.create_index("ix_pricing_events_status", "pricing_events", ["status"])
    op.create_index("ix_pricing_events_queue", "pricing_events", ["processed", "priority", "created_at"])

    op.create_table(
        "price_approvals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("old_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("new_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("price_change_percentage", sa.Float(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pricing_factors", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("resolved_by", sa.String(128), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_price_approvals_room_id", "price_approvals", ["room_id"])
    op.create_index("ix_price_approvals_status", "price_approvals", ["status"])

    op.create_table(
        "pricing_adjustment_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("previous_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("new_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("adjustment_reason", sa.Text(), nullable=False),
        sa.Column("adjustment_type", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pricing_adjustment_logs_room_id", "pricing_adjustment_logs", ["room_id"])

    op.create_table(
        "price_cache",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(64), nullable=False),
        sa.Column("cache_date", sa.Date(), nullable=False),
        sa.Column("cached_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("occupancy_rate", sa.Float(), nullable=True),
        sa.Column("demand_score", sa.Float(), nullable=True),
        sa.Column("cached_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_id", "cache_date", name="uq_price_cache_room_date"),
    )
    op.create_index("ix_price_cache_room_id", "price_cache", ["room_id"])


def downgrade() -> None:
    op.drop_index("ix_price_cache_room_id", table_name="price_cache")
    op.drop_table("price_cache")
    op.drop_index("ix_pricing_adjustment_logs_room_id", table_name="pricing_adjustment_logs")
    op.drop_table("pricing_adjustment_logs")
    op.drop_index("ix_price_approvals_status", table_name="price_approvals")
    op.drop_index("ix_price_approvals_room_id", table_name="price_approvals")
    op.drop_table("price_approvals")
    op.drop_index("ix_pricing_events_queue", table_name="pricing_events")
    op.drop_index("ix_pricing_events_status", table_name="pricing_events")
    op.drop_index("ix_pricing_events_room_id", table_name="pricing_events")
    op.drop_table("pricing_events")
    op.drop_index("ix_bookings_check_in", table_name="bookings")
    op.drop_index("ix_bookings_room_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("rooms")
