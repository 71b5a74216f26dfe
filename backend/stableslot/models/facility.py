"""Bookable facility (arena, paddock, walker). Only the fields the booking core reads."""
import uuid

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from stableslot.db.base import Base


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    stable_id = Column(String(64), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    facility_type = Column(String(64), nullable=True)  # riding_arena | paddock | walker | ...
    status = Column(String(16), nullable=False, default="active")  # active | inactive | maintenance
    max_horses_per_reservation = Column(Integer, nullable=False, default=1)
    capacity = Column(Integer, nullable=True)  # concurrent horses; null = max_horses_per_reservation
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def max_concurrent_horses(self) -> int:
        """Capacity the day-slot sweep is checked against."""
        if self.capacity is not None:
            return self.capacity
        return self.max_horses_per_reservation or 1
