from __future__ import annotations

from stableslot.models import FacilityDaySlot, FacilityReservation
from stableslot.services import reservation_service as svc
from stableslot.services.slot_reconcile import (
    DRIFT_MISSING_ENTRY,
    DRIFT_ORPHAN_ENTRY,
    DRIFT_STATUS_MISMATCH,
    find_slot_drift,
    repair_status_drift,
)
from stableslot.services.slots import read_slot_document

from conftest import at, entry

SLOT_REF = "arena1_2026-03-07"


def _book(db, start, end, horses=1):
    return svc.create_reservation(
        db, facility_id="arena1", user_id="user-1", start_time=start, end_time=end,
        horse_ids=[f"h{i}" for i in range(horses)],
    )


def test_consistent_bookings_have_no_drift(db, facility) -> None:
    first = _book(db, at(9), at(10))
    _book(db, at(10), at(11))
    svc.cancel_reservation(db, first.id)

    assert find_slot_drift(db) == []


def test_reports_missing_orphan_and_status_drift(db, facility) -> None:
    kept = _book(db, at(9), at(10))
    dropped = _book(db, at(11), at(12))
    row = db.get(FacilityDaySlot, SLOT_REF)
    row.current_bookings = [
        b for b in row.current_bookings if b["reservation_id"] != dropped.id
    ] + [entry("ghost", at(13), at(14), 1).to_dict()]
    db.get(FacilityReservation, kept.id).status = "confirmed"
    db.commit()

    drift = {(d.kind, d.reservation_id) for d in find_slot_drift(db)}

    assert drift == {
        (DRIFT_MISSING_ENTRY, dropped.id),
        (DRIFT_ORPHAN_ENTRY, "ghost"),
        (DRIFT_STATUS_MISMATCH, kept.id),
    }


def test_repair_mirrors_reservation_status_into_entry(db, facility) -> None:
    reservation = _book(db, at(9), at(10))
    db.get(FacilityReservation, reservation.id).status = "confirmed"
    db.commit()

    repaired = repair_status_drift(db, find_slot_drift(db))

    assert repaired == 1
    _, data = read_slot_document(db, "arena1", at(9))
    db.rollback()
    assert data.find(reservation.id).status == "confirmed"
    assert find_slot_drift(db) == []


def test_filter_by_facility(db, facility) -> None:
    _book(db, at(9), at(10))
    db.get(FacilityDaySlot, SLOT_REF).current_bookings = []
    db.commit()

    assert find_slot_drift(db, facility_id="paddock") == []
    assert len(find_slot_drift(db, facility_id="arena1")) == 1


def _active_load_at(db, moment) -> int:
    _, data = read_slot_document(db, "arena1", moment)
    db.rollback()
    return sum(
        e.horse_count
        for e in data.current_bookings
        if e.status not in ("cancelled", "rejected") and e.start_time <= moment.isoformat() < e.end_time
    )


def test_repair_does_not_reactivate_an_entry_whose_room_was_rebooked(db, facility) -> None:
    first = _book(db, at(10), at(11), horses=3)
    svc.cancel_reservation(db, first.id)
    _book(db, at(10), at(11), horses=3)
    db.get(FacilityReservation, first.id).status = "confirmed"
    db.commit()

    repaired = repair_status_drift(db, find_slot_drift(db))

    assert repaired == 0
    assert _active_load_at(db, at(10)) == 3
    _, data = read_slot_document(db, "arena1", at(10))
    db.rollback()
    assert data.find(first.id).status == "cancelled"


def test_repair_reactivates_when_capacity_allows(db, facility) -> None:
    first = _book(db, at(10), at(11), horses=3)
    svc.cancel_reservation(db, first.id)
    _book(db, at(10), at(11), horses=2)
    db.get(FacilityReservation, first.id).status = "confirmed"
    db.commit()

    assert repair_status_drift(db, find_slot_drift(db)) == 1
    assert _active_load_at(db, at(10)) == 5
