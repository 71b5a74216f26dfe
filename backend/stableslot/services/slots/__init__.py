"""
Facility day-slot booking core.

- facility_day_slots row per (facility_id, YYYY-MM-DD) is the lock for every booking on that day.
- store: read (or synthesize) the slot inside a transaction.
- capacity: timeline sweep for peak concurrent horses.
- mutators: add / update / remove an entry, staged in the caller's transaction.
- suggestions: nearby windows that would pass the capacity check.
"""
from stableslot.services.slots.capacity import CapacityResult, validate_booking_interval, validate_capacity
from stableslot.services.slots.mutators import (
    add_booking_to_slot,
    remove_booking_from_slot,
    update_booking_in_slot,
)
from stableslot.services.slots.store import local_date, read_slot_document, slot_document_id
from stableslot.services.slots.suggestions import SuggestedSlot, find_suggested_slots
from stableslot.services.slots.types import FacilityDaySlotData, SlotBookingEntry

__all__ = [
    "CapacityResult",
    "FacilityDaySlotData",
    "SlotBookingEntry",
    "SuggestedSlot",
    "add_booking_to_slot",
    "find_suggested_slots",
    "local_date",
    "read_slot_document",
    "remove_booking_from_slot",
    "slot_document_id",
    "update_booking_in_slot",
    "validate_booking_interval",
    "validate_capacity",
]
