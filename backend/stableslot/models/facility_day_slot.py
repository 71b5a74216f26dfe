"""
One row per (facility_id, date): every booking footprint on that facility for that day.

The row id is deterministic ({facility_id}_{YYYY-MM-DD}), so every booking transaction for the
same facility and day reads and writes this one row. version is the optimistic-concurrency
counter: an UPDATE against a version another transaction already bumped raises StaleDataError.
Never deleted; rows for past dates just stop being read.
"""
from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from stableslot.db.base import Base


class FacilityDaySlot(Base):
    __tablename__ = "facility_day_slots"

    id = Column(String(96), primary_key=True)  # {facility_id}_{YYYY-MM-DD}
    facility_id = Column(String(64), nullable=False, index=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD, local calendar date
    current_bookings = Column(JSON, nullable=False, default=list)  # list of SlotBookingEntry dicts
    last_modified = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
