"""Facilities and facility reservations

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

- facilities: bookable resource with max horses per reservation and optional concurrent capacity.
- facility_reservations: one row per booking; slot_date points at its facility_day_slots row.
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
        "facilities",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("stable_id", sa.String(64), nullable=True, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("facility_type", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("max_horses_per_reservation", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "facility_reservations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("facility_id", sa.String(64), nullable=False, index=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("slot_date", sa.String(10), nullable=False),
        sa.Column("horse_ids", sa.JSON(), nullable=False),
        sa.Column("horse_names", sa.JSON(), nullable=False),
        sa.Column("purpose", sa.String(200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending", index=True),
        sa.Column("created_by", sa.String(64), nullable=True),
        sa.Column("last_modified_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("facility_reservations")
    op.drop_table("facilities")
