"""
Booking mutators: add / update / remove one entry in a slot's booking list.

Each call computes the new list from slot_data (the snapshot read earlier in the same
transaction), writes the full list plus last_modified, and flushes. Nothing is committed here.
A synthesized slot is inserted; an existing one is updated under its version check, so a
concurrent writer surfaces as IntegrityError (on the slot INSERT) or StaleDataError for the
transaction host to retry.
No capacity checks: callers run validate_capacity first.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stableslot.models.facility_day_slot import FacilityDaySlot
from stableslot.services.slots.types import FacilityDaySlotData, SlotBookingEntry

logger = logging.getLogger(__name__)


def _write_slot(
    db: Session,
    slot_ref: str,
    slot_data: FacilityDaySlotData,
    bookings: Iterable[SlotBookingEntry],
) -> FacilityDaySlotData:
    bookings = list(bookings)
    now = datetime.now(timezone.utc)
    row = db.get(FacilityDaySlot, slot_ref) if slot_data.exists else None
    if row is not None and row.version != slot_data.version:
        raise StaleDataError(
            f"Slot {slot_ref} changed since it was read (version {slot_data.version} -> {row.version})"
        )
    if row is None:
        row = FacilityDaySlot(id=slot_ref, facility_id=slot_data.facility_id, date=slot_data.date)
        db.add(row)
    row.current_bookings = [b.to_dict() for b in bookings]
    row.last_modified = now
    db.flush()
    return slot_data.with_bookings(bookings, last_modified=now, version=row.version)


def add_booking_to_slot(
    db: Session,
    slot_ref: str,
    slot_data: FacilityDaySlotData,
    entry: SlotBookingEntry,
) -> FacilityDaySlotData:
    updated = [*slot_data.current_bookings, entry]
    logger.debug("Slot %s: add reservation %s", slot_ref, entry.reservation_id)
    return _write_slot(db, slot_ref, slot_data, updated)


def update_booking_in_slot(
    db: Session,
    slot_ref: str,
    slot_data: FacilityDaySlotData,
    reservation_id: str,
    updates: dict[str, Any],
) -> FacilityDaySlotData:
    updated = [
        b.merged(updates) if b.reservation_id == reservation_id else b
        for b in slot_data.current_bookings
    ]
    logger.debug("Slot %s: update reservation %s (%s)", slot_ref, reservation_id, sorted(updates))
    return _write_slot(db, slot_ref, slot_data, updated)


def remove_booking_from_slot(
    db: Session,
    slot_ref: str,
    slot_data: FacilityDaySlotData,
    reservation_id: str,
) -> FacilityDaySlotData:
    updated = [b for b in slot_data.current_bookings if b.reservation_id != reservation_id]
    logger.debug("Slot %s: remove reservation %s", slot_ref, reservation_id)
    return _write_slot(db, slot_ref, slot_data, updated)
