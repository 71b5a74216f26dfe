"""
Drift check between facility_reservations and the facility_day_slots rows holding their footprints.

Every booking write keeps the two in one transaction, so drift only shows up after manual edits or
partial restores. Status drift can be repaired by mirroring the reservation status into its entry.
An entry that would go from cancelled/rejected back to active must pass the capacity check first,
otherwise it is left alone and logged. Missing and orphan entries are reported only.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy.orm import Session

from stableslot.core.constants import INACTIVE_BOOKING_STATUSES
from stableslot.db.transactions import run_in_transaction
from stableslot.models.facility import Facility
from stableslot.models.facility_day_slot import FacilityDaySlot
from stableslot.models.facility_reservation import FacilityReservation
from stableslot.services.slots import (
    read_slot_document,
    slot_document_id,
    update_booking_in_slot,
    validate_capacity,
)
from stableslot.services.slots.store import row_to_data
from stableslot.services.slots.types import parse_time

logger = logging.getLogger(__name__)

DRIFT_MISSING_ENTRY = "missing_entry"  # reservation row without a slot entry
DRIFT_STATUS_MISMATCH = "status_mismatch"
DRIFT_ORPHAN_ENTRY = "orphan_entry"  # slot entry without a reservation row in that slot


@dataclass(frozen=True)
class SlotDrift:
    kind: str
    slot_ref: str
    reservation_id: str
    reservation_status: str | None = None
    entry_status: str | None = None


def find_slot_drift(db: Session, facility_id: str | None = None) -> list[SlotDrift]:
    reservations_q = db.query(FacilityReservation)
    slots_q = db.query(FacilityDaySlot)
    if facility_id:
        reservations_q = reservations_q.filter(FacilityReservation.facility_id == facility_id)
        slots_q = slots_q.filter(FacilityDaySlot.facility_id == facility_id)
    try:
        # reservation id -> (slot_ref, status)
        reservations = {
            r.id: (slot_document_id(r.facility_id, r.slot_date), r.status) for r in reservations_q.all()
        }
        rows = slots_q.order_by(FacilityDaySlot.id).all()
        slots = [(row.id, row_to_data(row)) for row in rows]
    finally:
        db.rollback()

    drift: list[SlotDrift] = []
    placed: set[str] = set()
    for slot_ref, slot_data in slots:
        for entry in slot_data.current_bookings:
            held = reservations.get(entry.reservation_id)
            if held is None or held[0] != slot_ref:
                drift.append(
                    SlotDrift(DRIFT_ORPHAN_ENTRY, slot_ref, entry.reservation_id, entry_status=entry.status)
                )
                continue
            placed.add(entry.reservation_id)
            if entry.status != held[1]:
                drift.append(
                    SlotDrift(
                        DRIFT_STATUS_MISMATCH,
                        slot_ref,
                        entry.reservation_id,
                        reservation_status=held[1],
                        entry_status=entry.status,
                    )
                )

    for reservation_id, (slot_ref, status) in reservations.items():
        if reservation_id not in placed:
            drift.append(
                SlotDrift(
                    DRIFT_MISSING_ENTRY,
                    slot_ref,
                    reservation_id,
                    reservation_status=status,
                )
            )
    return drift


def repair_status_drift(db: Session, drift: list[SlotDrift]) -> int:
    """
    Write the reservation status into each mismatched slot entry, one transaction per slot.
    Returns how many entries were changed; reactivations that would exceed capacity are skipped.
    """
    by_slot: dict[str, list[SlotDrift]] = defaultdict(list)
    for d in drift:
        if d.kind == DRIFT_STATUS_MISMATCH:
            by_slot[d.slot_ref].append(d)

    repaired = 0
    for slot_ref, items in sorted(by_slot.items()):
        facility_id, day = slot_ref.rsplit("_", 1)

        def work(session: Session, items=items, facility_id=facility_id, day=day) -> int:
            ref, slot_data = read_slot_document(session, facility_id, day)
            facility = session.get(Facility, facility_id)
            fixed = 0
            for d in items:
                entry = slot_data.find(d.reservation_id)
                if entry is None:
                    continue
                reactivating = (
                    entry.status in INACTIVE_BOOKING_STATUSES
                    and d.reservation_status not in INACTIVE_BOOKING_STATUSES
                )
                if reactivating:
                    if facility is None:
                        logger.warning(
                            "Slot %s: facility missing, not reactivating %s", ref, d.reservation_id
                        )
                        continue
                    result = validate_capacity(
                        slot_data,
                        parse_time(entry.start_time),
                        parse_time(entry.end_time),
                        entry.horse_count,
                        facility.max_concurrent_horses,
                        exclude_reservation_id=entry.reservation_id,
                    )
                    if not result.valid:
                        logger.warning(
                            "Slot %s: not reactivating %s (%s -> %s), peak would be %s of %s",
                            ref,
                            d.reservation_id,
                            entry.status,
                            d.reservation_status,
                            result.peak_concurrent,
                            facility.max_concurrent_horses,
                        )
                        continue
                slot_data = update_booking_in_slot(
                    session, ref, slot_data, d.reservation_id, {"status": d.reservation_status}
                )
                fixed += 1
            return fixed

        n = run_in_transaction(db, work)
        logger.info("Slot %s: repaired %s status mismatch(es)", slot_ref, n)
        repaired += n
    return repaired
