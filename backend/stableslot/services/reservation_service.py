"""
Facility reservations: create / edit / status changes / delete, each as one read-validate-write
unit against the facility day slot.

Every unit reads the slot row(s) it will write inside the same transaction (run_in_transaction),
validates capacity on that snapshot and stages the slot write plus the reservation row together.
On a capacity rejection the transaction is rolled back and alternative windows are computed from
the rejected snapshot outside it.

Cancellation is a soft delete: the slot entry keeps its place with status "cancelled" and stops
counting toward capacity. delete_reservation is the hard delete.
"""
import logging
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from stableslot.core.constants import (
    ALLOWED_STATUS_TRANSITIONS,
    FACILITY_STATUS_ACTIVE,
    INACTIVE_BOOKING_STATUSES,
    NOTES_MAX_LENGTH,
    PURPOSE_MAX_LENGTH,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_NO_SHOW,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from stableslot.core.errors import (
    CapacityExceededError,
    FacilityNotFoundError,
    FacilityNotReservableError,
    HorsesRequiredError,
    InvalidStatusTransitionError,
    ReservationNotFoundError,
    TooManyHorsesError,
)
from stableslot.db.transactions import run_in_transaction
from stableslot.models.facility import Facility
from stableslot.models.facility_reservation import FacilityReservation
from stableslot.services.slots import (
    FacilityDaySlotData,
    SlotBookingEntry,
    add_booking_to_slot,
    find_suggested_slots,
    read_slot_document,
    remove_booking_from_slot,
    slot_document_id,
    update_booking_in_slot,
    validate_booking_interval,
    validate_capacity,
)
from stableslot.services.slots.types import parse_time

logger = logging.getLogger(__name__)


def _sanitize(value: str | None, max_length: int) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value[:max_length] or None


def _get_facility(db: Session, facility_id: str) -> Facility:
    facility = db.get(Facility, facility_id)
    if facility is None:
        raise FacilityNotFoundError(facility_id)
    return facility


def _get_reservation(db: Session, reservation_id: str) -> FacilityReservation:
    reservation = db.get(FacilityReservation, reservation_id)
    if reservation is None:
        raise ReservationNotFoundError(reservation_id)
    return reservation


def _check_horses(facility: Facility, horse_ids: list[str]) -> None:
    if not horse_ids:
        raise HorsesRequiredError()
    if len(horse_ids) > facility.max_horses_per_reservation:
        raise TooManyHorsesError(facility.max_horses_per_reservation)


def _reject(result, facility: Facility, slot_data: FacilityDaySlotData) -> CapacityExceededError:
    return CapacityExceededError(
        peak_concurrent=result.peak_concurrent,
        peak_time=result.peak_time,
        max_capacity=facility.max_concurrent_horses,
        slot_data=slot_data,
    )


def _attach_suggestions(exc: CapacityExceededError, start: datetime, end: datetime, horse_count: int) -> None:
    if exc.slot_data is None:
        return
    exc.suggestions = find_suggested_slots(exc.slot_data, start, end, horse_count, exc.max_capacity)
    logger.info(
        "Capacity exceeded on %s (%s > %s); %s alternative slot(s) offered",
        exc.slot_data.facility_id,
        exc.peak_concurrent,
        exc.max_capacity,
        len(exc.suggestions),
    )


def create_reservation(
    db: Session,
    *,
    facility_id: str,
    user_id: str,
    start_time: datetime,
    end_time: datetime,
    horse_ids: list[str],
    horse_names: list[str] | None = None,
    purpose: str | None = None,
    notes: str | None = None,
    created_by: str | None = None,
) -> FacilityReservation:
    """
    Book facility_id for horse_ids over [start_time, end_time). New reservations are pending.
    Raises CapacityExceededError (with suggestions) when the facility would be over capacity.
    """
    horse_ids = list(horse_ids or [])
    if not horse_ids:
        raise HorsesRequiredError()
    validate_booking_interval(start_time, end_time, len(horse_ids))
    reservation_id = uuid.uuid4().hex

    def work(session: Session) -> FacilityReservation:
        facility = _get_facility(session, facility_id)
        if facility.status != FACILITY_STATUS_ACTIVE:
            raise FacilityNotReservableError(facility_id, facility.status)
        _check_horses(facility, horse_ids)

        slot_ref, slot_data = read_slot_document(session, facility_id, start_time)
        result = validate_capacity(
            slot_data, start_time, end_time, len(horse_ids), facility.max_concurrent_horses
        )
        if not result.valid:
            raise _reject(result, facility, slot_data)

        reservation = FacilityReservation(
            id=reservation_id,
            facility_id=facility_id,
            user_id=user_id,
            start_time=start_time,
            end_time=end_time,
            slot_date=slot_data.date,
            horse_ids=horse_ids,
            horse_names=list(horse_names or []),
            purpose=_sanitize(purpose, PURPOSE_MAX_LENGTH),
            notes=_sanitize(notes, NOTES_MAX_LENGTH),
            status=STATUS_PENDING,
            created_by=created_by or user_id,
            last_modified_by=created_by or user_id,
        )
        session.add(reservation)
        add_booking_to_slot(
            session,
            slot_ref,
            slot_data,
            SlotBookingEntry(
                reservation_id=reservation_id,
                start_time=start_time.isoformat(),
                end_time=end_time.isoformat(),
                horse_count=len(horse_ids),
                user_id=user_id,
                status=STATUS_PENDING,
            ),
        )
        return reservation

    try:
        reservation = run_in_transaction(db, work)
    except CapacityExceededError as exc:
        _attach_suggestions(exc, start_time, end_time, len(horse_ids))
        raise
    logger.info(
        "Reservation %s created on %s (%s horse(s), %s..%s)",
        reservation_id,
        facility_id,
        len(horse_ids),
        start_time.isoformat(),
        end_time.isoformat(),
    )
    return reservation


def update_reservation(
    db: Session,
    reservation_id: str,
    *,
    facility_id: str | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    horse_ids: list[str] | None = None,
    horse_names: list[str] | None = None,
    purpose: str | None = None,
    notes: str | None = None,
    modified_by: str | None = None,
) -> FacilityReservation:
    """
    Edit a reservation. When the facility, times or horses change, capacity is re-checked with the
    reservation's own slot entry excluded. Moving to another facility or day removes the entry from
    the old slot and adds it to the new one in the same transaction.
    """
    footprint_changed = any(v is not None for v in (facility_id, start_time, end_time, horse_ids))
    rejected_window: dict[str, Any] = {}

    def work(session: Session) -> FacilityReservation:
        reservation = _get_reservation(session, reservation_id)
        if reservation.status in INACTIVE_BOOKING_STATUSES:
            raise InvalidStatusTransitionError(reservation.status, "edited")

        target_facility_id = facility_id or reservation.facility_id
        old_ref = slot_document_id(reservation.facility_id, reservation.slot_date)
        new_ref = slot_document_id(target_facility_id, start_time or reservation.slot_date)

        # Lock both slots in key order so two moves in opposite directions cannot deadlock
        slots: dict[str, FacilityDaySlotData] = {}
        for ref in sorted({old_ref, new_ref}):
            if ref == old_ref:
                _, slots[ref] = read_slot_document(session, reservation.facility_id, reservation.slot_date)
            else:
                _, slots[ref] = read_slot_document(
                    session, target_facility_id, start_time or reservation.slot_date
                )
        old_slot = slots[old_ref]
        old_entry = old_slot.find(reservation.id)

        if footprint_changed:
            facility = _get_facility(session, target_facility_id)
            ids = list(horse_ids) if horse_ids is not None else list(reservation.horse_ids or [])
            _check_horses(facility, ids)
            start = start_time or (parse_time(old_entry.start_time) if old_entry else reservation.start_time)
            end = end_time or (parse_time(old_entry.end_time) if old_entry else reservation.end_time)
            validate_booking_interval(start, end, len(ids))

            new_slot = slots[new_ref]
            result = validate_capacity(
                new_slot,
                start,
                end,
                len(ids),
                facility.max_concurrent_horses,
                exclude_reservation_id=reservation.id,
            )
            if not result.valid:
                rejected_window.update(start=start, end=end, horse_count=len(ids))
                raise _reject(result, facility, new_slot)

            footprint = {
                "start_time": start.isoformat(),
                "end_time": end.isoformat(),
                "horse_count": len(ids),
            }
            if new_ref == old_ref and old_entry is not None:
                update_booking_in_slot(session, new_ref, new_slot, reservation.id, footprint)
            else:
                if old_entry is not None:
                    remove_booking_from_slot(session, old_ref, old_slot, reservation.id)
                add_booking_to_slot(
                    session,
                    new_ref,
                    new_slot,
                    SlotBookingEntry(
                        reservation_id=reservation.id,
                        user_id=reservation.user_id,
                        status=reservation.status,
                        **footprint,
                    ),
                )

            reservation.facility_id = target_facility_id
            reservation.start_time = start
            reservation.end_time = end
            reservation.slot_date = new_slot.date
            if horse_ids is not None:
                reservation.horse_ids = ids
                reservation.horse_names = list(horse_names or [])

        if purpose is not None:
            reservation.purpose = _sanitize(purpose, PURPOSE_MAX_LENGTH)
        if notes is not None:
            reservation.notes = _sanitize(notes, NOTES_MAX_LENGTH)
        if modified_by:
            reservation.last_modified_by = modified_by
        return reservation

    try:
        reservation = run_in_transaction(db, work)
    except CapacityExceededError as exc:
        _attach_suggestions(
            exc, rejected_window["start"], rejected_window["end"], rejected_window["horse_count"]
        )
        raise
    logger.info("Reservation %s updated (footprint_changed=%s)", reservation_id, footprint_changed)
    return reservation


def _transition(
    db: Session,
    reservation_id: str,
    target: str,
    modified_by: str | None = None,
) -> FacilityReservation:
    """Move a reservation to target status and mirror it into its slot entry. Same status is a no-op."""

    def work(session: Session) -> FacilityReservation:
        reservation = _get_reservation(session, reservation_id)
        if reservation.status == target:
            return reservation
        if reservation.status not in ALLOWED_STATUS_TRANSITIONS[target]:
            raise InvalidStatusTransitionError(reservation.status, target)

        slot_ref, slot_data = read_slot_document(session, reservation.facility_id, reservation.slot_date)
        if slot_data.find(reservation.id) is not None:
            update_booking_in_slot(session, slot_ref, slot_data, reservation.id, {"status": target})
        else:
            logger.warning("Reservation %s has no entry in slot %s", reservation.id, slot_ref)

        previous = reservation.status
        reservation.status = target
        if modified_by:
            reservation.last_modified_by = modified_by
        logger.info("Reservation %s: %s -> %s", reservation.id, previous, target)
        return reservation

    return run_in_transaction(db, work)


def cancel_reservation(db: Session, reservation_id: str, modified_by: str | None = None) -> FacilityReservation:
    """Soft cancel: the slot entry stays with status cancelled and no longer counts toward capacity."""
    return _transition(db, reservation_id, STATUS_CANCELLED, modified_by)


def confirm_reservation(db: Session, reservation_id: str, modified_by: str | None = None) -> FacilityReservation:
    return _transition(db, reservation_id, STATUS_CONFIRMED, modified_by)


def reject_reservation(db: Session, reservation_id: str, modified_by: str | None = None) -> FacilityReservation:
    return _transition(db, reservation_id, STATUS_REJECTED, modified_by)


def complete_reservation(db: Session, reservation_id: str, modified_by: str | None = None) -> FacilityReservation:
    return _transition(db, reservation_id, STATUS_COMPLETED, modified_by)


def mark_no_show(db: Session, reservation_id: str, modified_by: str | None = None) -> FacilityReservation:
    return _transition(db, reservation_id, STATUS_NO_SHOW, modified_by)


def delete_reservation(db: Session, reservation_id: str) -> None:
    """Hard delete: removes the reservation row and its slot entry."""

    def work(session: Session) -> None:
        reservation = _get_reservation(session, reservation_id)
        slot_ref, slot_data = read_slot_document(session, reservation.facility_id, reservation.slot_date)
        if slot_data.find(reservation.id) is not None:
            remove_booking_from_slot(session, slot_ref, slot_data, reservation.id)
        session.delete(reservation)

    run_in_transaction(db, work)
    logger.info("Reservation %s deleted", reservation_id)


def get_reservation(db: Session, reservation_id: str) -> FacilityReservation:
    return _get_reservation(db, reservation_id)


def get_day_slot(db: Session, facility_id: str, day: date | datetime | str) -> FacilityDaySlotData:
    """Stored slot for facility + day, or the empty default. Never writes."""
    try:
        _get_facility(db, facility_id)
        _, slot_data = read_slot_document(db, facility_id, day)
    finally:
        db.rollback()
    return slot_data


def check_availability(
    db: Session,
    facility_id: str,
    start_time: datetime,
    end_time: datetime,
    horse_count: int,
    exclude_reservation_id: str | None = None,
) -> dict:
    """
    Read-only capacity check for a prospective booking. Never writes; the result may be stale by
    the time a booking is attempted, which re-checks inside its own transaction.
    """
    validate_booking_interval(start_time, end_time, horse_count)
    try:
        facility = _get_facility(db, facility_id)
        max_capacity = facility.max_concurrent_horses
        _, slot_data = read_slot_document(db, facility_id, start_time)
    finally:
        db.rollback()

    result = validate_capacity(
        slot_data, start_time, end_time, horse_count, max_capacity, exclude_reservation_id=exclude_reservation_id
    )
    suggestions = []
    if not result.valid:
        suggestions = find_suggested_slots(slot_data, start_time, end_time, horse_count, max_capacity)
    return {
        "facility_id": facility_id,
        "valid": result.valid,
        "peak_concurrent": result.peak_concurrent,
        "peak_time": result.peak_time.isoformat() if result.peak_time else None,
        "remaining_capacity": result.remaining_capacity,
        "max_capacity": max_capacity,
        "suggested_slots": [s.to_dict() for s in suggestions],
    }
