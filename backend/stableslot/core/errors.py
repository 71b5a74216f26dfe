"""
Centralized error handling for booking failures.
Domain exceptions plus a reusable helper so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from fastapi import HTTPException

if TYPE_CHECKING:
    from stableslot.services.slots.suggestions import SuggestedSlot
    from stableslot.services.slots.types import FacilityDaySlotData

# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409  # capacity exceeded, or concurrent writers exhausted retries
STATUS_INTERNAL_ERROR = 500


class BookingError(Exception):
    """Base for every error the booking core and reservation service raise on purpose."""

    error = "Bad Request"


class InvalidIntervalError(BookingError):
    """end <= start, or a negative horse count. Checked before the capacity sweep runs."""

    def __init__(self, message: str = "Reservation end time must be after its start time"):
        super().__init__(message)


class HorsesRequiredError(BookingError):
    def __init__(self):
        super().__init__("At least one horse must be selected for the reservation")


class TooManyHorsesError(BookingError):
    def __init__(self, max_horses: int):
        self.max_horses = max_horses
        super().__init__(
            f"Too many horses selected. Maximum {max_horses} horses allowed per reservation."
        )


class FacilityNotReservableError(BookingError):
    def __init__(self, facility_id: str, status: str):
        self.facility_id = facility_id
        super().__init__(f"Facility {facility_id} is not accepting reservations (status={status})")


class InvalidStatusTransitionError(BookingError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change reservation status from {current} to {target}")


class FacilityNotFoundError(BookingError):
    error = "Not Found"

    def __init__(self, facility_id: str):
        self.facility_id = facility_id
        super().__init__("Facility not found")


class ReservationNotFoundError(BookingError):
    error = "Not Found"

    def __init__(self, reservation_id: str):
        self.reservation_id = reservation_id
        super().__init__("Reservation not found")


class CapacityExceededError(BookingError):
    """
    Candidate booking would push peak concurrent horses above the facility capacity.
    slot_data is the snapshot the rejection was decided on; suggestions are filled in by the
    reservation service after the transaction has been rolled back.
    """

    error = "Capacity Exceeded"

    def __init__(
        self,
        *,
        peak_concurrent: int,
        peak_time: datetime | None,
        max_capacity: int,
        slot_data: FacilityDaySlotData | None = None,
    ):
        self.peak_concurrent = peak_concurrent
        self.peak_time = peak_time
        self.max_capacity = max_capacity
        self.slot_data = slot_data
        self.suggestions: list[SuggestedSlot] = []
        super().__init__(
            f"Facility capacity exceeded: {peak_concurrent} horses at peak, maximum {max_capacity}"
        )

    def to_detail(self) -> dict:
        return {
            "error": self.error,
            "message": str(self),
            "max_concurrent": self.peak_concurrent,
            "max_concurrent_time": self.peak_time.isoformat() if self.peak_time else None,
            "max_capacity": self.max_capacity,
            "suggested_slots": [s.to_dict() for s in self.suggestions],
        }


class BookingConflictError(BookingError):
    error = "CONFLICT"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__("Time slot no longer available")


# ---------------------------------------------------------------------------
# Error rules: (exception type, status_code). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

BOOKING_ERROR_RULES: list[tuple[type[BookingError], int]] = [
    (CapacityExceededError, STATUS_CONFLICT),
    (BookingConflictError, STATUS_CONFLICT),
    (FacilityNotFoundError, STATUS_NOT_FOUND),
    (ReservationNotFoundError, STATUS_NOT_FOUND),
    (BookingError, STATUS_BAD_REQUEST),
]


def booking_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from the reservation service into an HTTPException.
    Uses BOOKING_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for exc_type, status_code in BOOKING_ERROR_RULES:
        if isinstance(exc, exc_type):
            if isinstance(exc, CapacityExceededError):
                return HTTPException(status_code=status_code, detail=exc.to_detail())
            return HTTPException(status_code=status_code, detail={"error": exc.error, "message": str(exc)})
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
