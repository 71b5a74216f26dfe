from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from stableslot.db.base import Base
from stableslot.models import FacilityDaySlot
from stableslot.services.slots import (
    add_booking_to_slot,
    read_slot_document,
    remove_booking_from_slot,
    slot_document_id,
    update_booking_in_slot,
)

from conftest import at, entry


def test_slot_document_id_is_zero_padded() -> None:
    assert slot_document_id("arena1", date(2026, 3, 7)) == "arena1_2026-03-07"
    assert slot_document_id("arena1", datetime(2026, 1, 2, 23, 59)) == "arena1_2026-01-02"
    assert slot_document_id("arena1", "2026-11-30") == "arena1_2026-11-30"


def test_slot_document_id_uses_local_calendar_date_for_aware_datetimes() -> None:
    moment = datetime(2026, 3, 7, 23, 30, tzinfo=timezone.utc)

    expected = moment.astimezone().date().isoformat()

    assert slot_document_id("paddock_north", moment) == f"paddock_north_{expected}"


def test_missing_slot_is_synthesized_without_being_written(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))

    assert ref == "arena1_2026-03-07"
    assert data.facility_id == "arena1"
    assert data.date == "2026-03-07"
    assert data.current_bookings == ()
    assert data.last_modified is not None
    assert data.exists is False
    db.commit()
    assert db.query(FacilityDaySlot).count() == 0


def test_facility_ids_with_underscores_keep_the_right_date(db) -> None:
    _, data = read_slot_document(db, "north_paddock_2", at(10))

    assert data.date == "2026-03-07"


def test_add_creates_the_slot_on_first_write(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))

    updated = add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2))
    db.commit()

    row = db.get(FacilityDaySlot, ref)
    assert row is not None
    assert row.facility_id == "arena1"
    assert row.date == "2026-03-07"
    assert [b["reservation_id"] for b in row.current_bookings] == ["r1"]
    assert updated.exists is True
    assert updated.version == row.version


def test_add_appends_and_keeps_existing_entries(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))
    add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2))
    db.commit()

    ref, data = read_slot_document(db, "arena1", at(12))
    add_booking_to_slot(db, ref, data, entry("r2", at(12), at(13), 1))
    db.commit()

    _, data = read_slot_document(db, "arena1", at(12))
    assert [b.reservation_id for b in data.current_bookings] == ["r1", "r2"]


def test_update_merges_into_the_matching_entry_only(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))
    data = add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2, status="pending"))
    data = add_booking_to_slot(db, ref, data, entry("r2", at(12), at(13), 1, status="pending"))
    db.commit()

    ref, data = read_slot_document(db, "arena1", at(10))
    update_booking_in_slot(db, ref, data, "r1", {"status": "cancelled"})
    db.commit()

    _, data = read_slot_document(db, "arena1", at(10))
    r1, r2 = data.current_bookings
    assert r1.status == "cancelled"
    assert (r1.start_time, r1.end_time, r1.horse_count) == (at(10).isoformat(), at(11).isoformat(), 2)
    assert r2.status == "pending"


def test_remove_drops_the_matching_entry(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))
    data = add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2))
    data = remove_booking_from_slot(db, ref, data, "r1")
    db.commit()

    _, data = read_slot_document(db, "arena1", at(10))
    assert data.current_bookings == ()
    assert data.exists is True


def test_mutators_refresh_last_modified(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))
    first = add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2))
    second = update_booking_in_slot(db, ref, first, "r1", {"horse_count": 3})

    assert second.last_modified >= first.last_modified
    assert second.version == first.version + 1


def test_write_against_a_stale_snapshot_is_rejected(db) -> None:
    ref, data = read_slot_document(db, "arena1", at(10))
    add_booking_to_slot(db, ref, data, entry("r1", at(10), at(11), 2))
    db.commit()

    # Re-use a snapshot from before the last write
    _, stale = read_slot_document(db, "arena1", at(10))
    add_booking_to_slot(db, ref, stale, entry("r2", at(12), at(13), 1))
    with pytest.raises(StaleDataError):
        add_booking_to_slot(db, ref, stale, entry("r3", at(14), at(15), 1))


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'slots.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    a, b = factory(), factory()
    yield a, b
    a.close()
    b.close()
    engine.dispose()


def test_concurrent_writer_on_an_existing_slot_gets_a_version_conflict(file_sessions) -> None:
    a, b = file_sessions
    ref, data = read_slot_document(a, "arena1", at(10))
    add_booking_to_slot(a, ref, data, entry("seed", at(6), at(7), 1))
    a.commit()

    ref_a, snap_a = read_slot_document(a, "arena1", at(10))
    ref_b, snap_b = read_slot_document(b, "arena1", at(10))
    add_booking_to_slot(a, ref_a, snap_a, entry("from-a", at(10), at(11), 3))
    a.commit()

    with pytest.raises(StaleDataError):
        add_booking_to_slot(b, ref_b, snap_b, entry("from-b", at(10), at(11), 3))
    b.rollback()

    _, final = read_slot_document(a, "arena1", at(10))
    assert [e.reservation_id for e in final.current_bookings] == ["seed", "from-a"]


def test_concurrent_creators_of_a_new_slot_collide_on_the_slot_id(file_sessions) -> None:
    a, b = file_sessions
    ref_a, snap_a = read_slot_document(a, "arena1", at(10))
    ref_b, snap_b = read_slot_document(b, "arena1", at(10))
    assert not snap_a.exists and not snap_b.exists

    add_booking_to_slot(a, ref_a, snap_a, entry("from-a", at(10), at(11), 3))
    a.commit()

    with pytest.raises(IntegrityError):
        add_booking_to_slot(b, ref_b, snap_b, entry("from-b", at(10), at(11), 3))
    b.rollback()
