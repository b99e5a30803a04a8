"""Initial schema: parking spots and bookings with geohash and occupancy indexes.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
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
        "parking_spots",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("geohash", sa.String(12), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("price_unit", sa.String(20), nullable=False, server_default="hour"),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("type", sa.String(20), nullable=False, server_default="standard"),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("price >= 0", name="check_spot_price_non_negative"),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="check_spot_rating_range"),
        sa.CheckConstraint("rating_count >= 0", name="check_spot_rating_count_non_negative"),
        sa.CheckConstraint(
            "type IN ('standard', 'handicapped', 'electric', 'compact', "
            "'underground', 'open-air', 'covered', 'shaded', 'multi-level')",
            name="check_spot_type",
        ),
    )
    # GEOHASH INDEX: every nearby search is a handful of
    # "geohash BETWEEN :start AND :end" range scans over this index.
    op.create_index("ix_parking_spots_geohash", "parking_spots", ["geohash"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("spot_id", sa.String(36), sa.ForeignKey("parking_spots.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_cost", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("billing_hours", sa.Numeric(8, 2), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')", name="check_booking_status"
        ),
        sa.CheckConstraint("total_cost >= 0", name="check_booking_total_cost_non_negative"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_spot_id", "bookings", ["spot_id"])
    op.create_index("ix_bookings_user_start", "bookings", ["user_id", "start_time"])
    # SINGLE OCCUPANCY: at most one active booking per spot, whatever the
    # application does. Partial index, so history rows are unaffected.
    op.create_index(
        "uq_bookings_active_spot",
        "bookings",
        ["spot_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("parking_spots")
