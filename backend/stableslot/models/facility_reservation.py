"""A user's reservation of a facility for one or more horses. Its footprint lives in facility_day_slots."""
import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from stableslot.db.base import Base


class FacilityReservation(Base):
    __tablename__ = "facility_reservations"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    facility_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    slot_date = Column(String(10), nullable=False)  # YYYY-MM-DD of the day slot holding this booking
    horse_ids = Column(JSON, nullable=False, default=list)
    horse_names = Column(JSON, nullable=False, default=list)
    purpose = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    # pending | confirmed | cancelled | rejected | completed | no_show
    status = Column(String(16), nullable=False, default="pending", index=True)
    created_by = Column(String(64), nullable=True)
    last_modified_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def horse_count(self) -> int:
        return len(self.horse_ids or [])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "facility_id": self.facility_id,
            "user_id": self.user_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "slot_date": self.slot_date,
            "horse_ids": list(self.horse_ids or []),
            "horse_names": list(self.horse_names or []),
            "horse_count": self.horse_count,
            "purpose": self.purpose,
            "notes": self.notes,
            "status": self.status,
            "created_by": self.created_by,
            "last_modified_by": self.last_modified_by,
        }
