"""Add facility_day_slots (per facility per day booking semaphore)

Revision ID: 002
Revises: 001
Create Date: (run alembic upgrade head)

- id = {facility_id}_{YYYY-MM-DD}; every booking transaction for that facility and day reads and
  writes this row, so concurrent bookings serialize on it.
- version: optimistic-concurrency counter (SQLAlchemy version_id_col).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "facility_day_slots",
        sa.Column("id", sa.String(96), primary_key=True),
        sa.Column("facility_id", sa.String(64), nullable=False, index=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("current_bookings", sa.JSON(), nullable=False),
        sa.Column("last_modified", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("facility_day_slots")
