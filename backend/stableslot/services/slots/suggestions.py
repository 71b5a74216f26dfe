"""
Alternative slot finder: nearby windows of the same duration that pass the capacity check.

Forward 30-min steps up to 8h (stop at 22:00 local), backward up to 4h (stop before 06:00 local),
never leaving the requested day,
all evaluated against the same snapshot that produced the rejection. Accepted windows are ranked
by distance from the requested start. A request made outside 06:00-22:00 still only gets windows
inside it. Suggested times keep the requested start's zone (naive in, naive out; +01:00 in,
+01:00 out), they are not converted to UTC. No I/O; a booking made from a suggestion must go
through the full transactional check again.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta

from stableslot.core.constants import (
    DEFAULT_MAX_SUGGESTIONS,
    SUGGESTION_BACKWARD_STEPS,
    SUGGESTION_EARLIEST_START_HOUR,
    SUGGESTION_FORWARD_STEPS,
    SUGGESTION_LATEST_START_HOUR,
    SUGGESTION_STEP_MINUTES,
)
from stableslot.services.slots.capacity import validate_capacity
from stableslot.services.slots.types import FacilityDaySlotData


@dataclass(frozen=True)
class SuggestedSlot:
    start_time: str
    end_time: str
    remaining_capacity: int

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "remaining_capacity": self.remaining_capacity,
        }


def _local(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone()
    return dt


def find_suggested_slots(
    slot_data: FacilityDaySlotData,
    requested_start: datetime,
    requested_end: datetime,
    horse_count: int,
    max_capacity: int,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
) -> list[SuggestedSlot]:
    duration = requested_end - requested_start
    step = timedelta(minutes=SUGGESTION_STEP_MINUTES)
    requested_day = _local(requested_start).date()
    accepted: list[tuple[datetime, datetime, int]] = []

    def _try(candidate_start: datetime) -> None:
        if not SUGGESTION_EARLIEST_START_HOUR <= _local(candidate_start).hour < SUGGESTION_LATEST_START_HOUR:
            return
        candidate_end = candidate_start + duration
        result = validate_capacity(slot_data, candidate_start, candidate_end, horse_count, max_capacity)
        if result.valid:
            accepted.append((candidate_start, candidate_end, result.remaining_capacity))

    for offset in range(1, SUGGESTION_FORWARD_STEPS + 1):
        candidate_start = requested_start + offset * step
        local = _local(candidate_start)
        if local.hour >= SUGGESTION_LATEST_START_HOUR or local.date() != requested_day:
            break
        _try(candidate_start)

    for offset in range(1, SUGGESTION_BACKWARD_STEPS + 1):
        candidate_start = requested_start - offset * step
        local = _local(candidate_start)
        if local.hour < SUGGESTION_EARLIEST_START_HOUR or local.date() != requested_day:
            break
        _try(candidate_start)

    # Stable sort: at equal distance the later (forward) window stays first
    accepted.sort(key=lambda c: abs(c[0] - requested_start))
    return [
        SuggestedSlot(start_time=s.isoformat(), end_time=e.isoformat(), remaining_capacity=remaining)
        for s, e, remaining in accepted[: max(0, max_suggestions)]
    ]
