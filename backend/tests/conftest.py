from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stableslot.db.base import Base
from stableslot.models import Facility
from stableslot.services.slots import FacilityDaySlotData, SlotBookingEntry

DAY = (2026, 3, 7)


def at(hour: int, minute: int = 0) -> datetime:
    """Naive local time on the test day."""
    return datetime(*DAY, hour, minute)


def entry(
    reservation_id: str,
    start: datetime,
    end: datetime,
    horse_count: int,
    status: str = "confirmed",
    user_id: str = "user-1",
) -> SlotBookingEntry:
    return SlotBookingEntry(
        reservation_id=reservation_id,
        start_time=start.isoformat(),
        end_time=end.isoformat(),
        horse_count=horse_count,
        user_id=user_id,
        status=status,
    )


def slot(*entries: SlotBookingEntry, facility_id: str = "arena1") -> FacilityDaySlotData:
    return FacilityDaySlotData(facility_id=facility_id, date="2026-03-07", current_bookings=entries)


@pytest.fixture
def engine():
    # One shared in-memory connection so every session sees the same database
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def facility(db) -> Facility:
    row = Facility(id="arena1", name="Indoor arena", facility_type="riding_arena", max_horses_per_reservation=3, capacity=5)
    db.add(row)
    db.commit()
    return row
