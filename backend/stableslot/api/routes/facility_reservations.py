"""
Facility reservations: create, edit, status changes and delete.

Every write goes through reservation_service, which runs the read-validate-write unit against the
facility day slot in one transaction. Capacity rejections come back as 409 with suggested slots.
"""
import logging
from datetime import datetime
from typing import NoReturn

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from stableslot.core.errors import BookingError, booking_error_to_http
from stableslot.db.session import get_db
from stableslot.services import reservation_service

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateReservationBody(BaseModel):
    facility_id: str = Field(..., min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=64)
    start_time: datetime
    end_time: datetime
    horse_ids: list[str] = Field(default_factory=list)
    horse_names: list[str] = Field(default_factory=list)
    purpose: str | None = None
    notes: str | None = None


class UpdateReservationBody(BaseModel):
    facility_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    horse_ids: list[str] | None = None
    horse_names: list[str] | None = None
    purpose: str | None = None
    notes: str | None = None
    modified_by: str | None = None


class StatusChangeBody(BaseModel):
    modified_by: str | None = None


def _handle_booking_error(exc: BookingError, log_message: str) -> NoReturn:
    logger.info("%s: %s", log_message, exc)
    raise booking_error_to_http(exc) from exc


@router.post("", response_model=dict)
def create_reservation(body: CreateReservationBody, db: Session = Depends(get_db)):
    """Book a facility. New reservations are pending until confirmed."""
    try:
        reservation = reservation_service.create_reservation(
            db,
            facility_id=body.facility_id,
            user_id=body.user_id,
            start_time=body.start_time,
            end_time=body.end_time,
            horse_ids=body.horse_ids,
            horse_names=body.horse_names,
            purpose=body.purpose,
            notes=body.notes,
        )
    except BookingError as e:
        _handle_booking_error(e, "Reservation rejected")
    return reservation.to_dict()


@router.get("/{reservation_id}", response_model=dict)
def get_reservation(reservation_id: str, db: Session = Depends(get_db)):
    try:
        return reservation_service.get_reservation(db, reservation_id).to_dict()
    except BookingError as e:
        _handle_booking_error(e, "Reservation lookup failed")


@router.patch("/{reservation_id}", response_model=dict)
def update_reservation(reservation_id: str, body: UpdateReservationBody, db: Session = Depends(get_db)):
    """Edit time, facility, horses, purpose or notes. Capacity is re-checked when the footprint changes."""
    try:
        reservation = reservation_service.update_reservation(
            db,
            reservation_id,
            facility_id=body.facility_id,
            start_time=body.start_time,
            end_time=body.end_time,
            horse_ids=body.horse_ids,
            horse_names=body.horse_names,
            purpose=body.purpose,
            notes=body.notes,
            modified_by=body.modified_by,
        )
    except BookingError as e:
        _handle_booking_error(e, "Reservation update rejected")
    return reservation.to_dict()


_TRANSITIONS = {
    "cancel": reservation_service.cancel_reservation,
    "confirm": reservation_service.confirm_reservation,
    "reject": reservation_service.reject_reservation,
    "complete": reservation_service.complete_reservation,
    "no-show": reservation_service.mark_no_show,
}


@router.post("/{reservation_id}/{action}", response_model=dict)
def change_status(
    reservation_id: str,
    action: str,
    body: StatusChangeBody | None = None,
    db: Session = Depends(get_db),
):
    """Status change: cancel | confirm | reject | complete | no-show."""
    handler = _TRANSITIONS.get(action)
    if handler is None:
        raise booking_error_to_http(BookingError(f"Unknown reservation action: {action}"))
    try:
        reservation = handler(db, reservation_id, body.modified_by if body else None)
    except BookingError as e:
        _handle_booking_error(e, f"Reservation {action} rejected")
    return reservation.to_dict()


@router.delete("/{reservation_id}", response_model=dict)
def delete_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """Hard delete (reservation row and its slot entry). Use /cancel to keep history."""
    try:
        reservation_service.delete_reservation(db, reservation_id)
    except BookingError as e:
        _handle_booking_error(e, "Reservation delete failed")
    return {"ok": True, "id": reservation_id}
