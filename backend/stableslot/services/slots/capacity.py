"""
Capacity validator: peak concurrent horses on a facility via an interval timeline sweep.

- Active entries = not the excluded reservation, status not cancelled/rejected.
- Only entries overlapping or touching the candidate [start, end) matter; others cannot raise
  concurrency inside the candidate's window. Touching entries (one ends exactly where the other
  starts) must reach the sweep, otherwise the START-before-END rule below never applies to them.
- Events: START +horses at start, END -horses at end. At equal times every START is applied before
  any END, so a booking ending at T and one starting at T count as coexisting at T.
- valid = peak <= capacity; remaining = max(0, capacity - peak).

Pure: no I/O, never raises for well-formed input. Interval/count well-formedness is checked by
validate_booking_interval, which callers run first.
"""
import logging
from datetime import datetime
from typing import NamedTuple

from stableslot.core.constants import INACTIVE_BOOKING_STATUSES
from stableslot.core.errors import InvalidIntervalError
from stableslot.services.slots.types import FacilityDaySlotData, epoch_ms, parse_time

logger = logging.getLogger(__name__)

_START = 0  # sorts before _END at the same instant
_END = 1


class CapacityResult(NamedTuple):
    valid: bool
    peak_concurrent: int
    peak_time: datetime | None
    remaining_capacity: int


def validate_booking_interval(start: datetime, end: datetime, horse_count: int) -> None:
    """Raise InvalidIntervalError for end <= start or a negative horse count."""
    if epoch_ms(end) <= epoch_ms(start):
        raise InvalidIntervalError()
    if horse_count < 0:
        raise InvalidIntervalError("Horse count cannot be negative")


def validate_capacity(
    slot_data: FacilityDaySlotData,
    candidate_start: datetime,
    candidate_end: datetime,
    candidate_horse_count: int,
    max_capacity: int,
    exclude_reservation_id: str | None = None,
) -> CapacityResult:
    n_start = epoch_ms(candidate_start)
    n_end = epoch_ms(candidate_end)

    # (time_ms, kind, horses, when)
    events: list[tuple[int, int, int, datetime]] = []
    for b in slot_data.current_bookings:
        if exclude_reservation_id and b.reservation_id == exclude_reservation_id:
            continue
        if b.status in INACTIVE_BOOKING_STATUSES:
            continue
        if b.horse_count == 0:
            continue
        b_start = epoch_ms(b.start_time)
        b_end = epoch_ms(b.end_time)
        if n_start > b_end or n_end < b_start:
            continue
        events.append((b_start, _START, b.horse_count, parse_time(b.start_time)))
        events.append((b_end, _END, b.horse_count, parse_time(b.end_time)))

    if candidate_horse_count != 0:
        events.append((n_start, _START, candidate_horse_count, candidate_start))
        events.append((n_end, _END, candidate_horse_count, candidate_end))

    events.sort(key=lambda ev: (ev[0], ev[1]))

    current = 0
    peak_concurrent = 0
    peak_time: datetime | None = None
    for _, kind, horses, when in events:
        if kind == _START:
            current += horses
            if current > peak_concurrent:
                peak_concurrent = current
                peak_time = when
        else:
            current -= horses

    valid = peak_concurrent <= max_capacity
    logger.debug(
        "Capacity check %s %s..%s horses=%s: peak=%s max=%s valid=%s",
        slot_data.facility_id,
        candidate_start.isoformat(),
        candidate_end.isoformat(),
        candidate_horse_count,
        peak_concurrent,
        max_capacity,
        valid,
    )
    return CapacityResult(
        valid=valid,
        peak_concurrent=peak_concurrent,
        peak_time=peak_time,
        remaining_capacity=max(0, max_capacity - peak_concurrent),
    )
