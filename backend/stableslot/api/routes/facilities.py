"""
Facility availability: read-only capacity checks and the day-slot view.
"""
import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stableslot.core.errors import BookingError, booking_error_to_http
from stableslot.db.session import get_db
from stableslot.services import reservation_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{facility_id}/availability", response_model=dict)
def check_availability(
    facility_id: str,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    horse_count: int = Query(1, ge=0),
    exclude_reservation_id: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """
    Would a booking fit right now? Returns peak load, remaining capacity and, when it would not fit,
    up to 3 nearby windows of the same length. Nothing is reserved.
    """
    try:
        return reservation_service.check_availability(
            db,
            facility_id,
            start_time,
            end_time,
            horse_count,
            exclude_reservation_id=exclude_reservation_id,
        )
    except BookingError as e:
        logger.info("Availability check failed for %s: %s", facility_id, e)
        raise booking_error_to_http(e) from e


@router.get("/{facility_id}/day-slots/{day}", response_model=dict)
def get_day_slot(facility_id: str, day: date, db: Session = Depends(get_db)):
    """All booking footprints (including cancelled/rejected) on a facility for one day."""
    try:
        return reservation_service.get_day_slot(db, facility_id, day).to_dict()
    except BookingError as e:
        raise booking_error_to_http(e) from e
