"""
Centralized constants for booking and alternative-slot search (Encapsulate What Changes).

Change statuses or search bounds here instead of scattering literals across services and routes.
"""

# Slot entries with these statuses stay in the document but never count toward capacity
INACTIVE_BOOKING_STATUSES = frozenset({"cancelled", "rejected"})

# Reservation lifecycle
STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_REJECTED = "rejected"
STATUS_COMPLETED = "completed"
STATUS_NO_SHOW = "no_show"

# target status -> statuses it may be reached from; cancelled and rejected are terminal
ALLOWED_STATUS_TRANSITIONS = {
    STATUS_CONFIRMED: frozenset({STATUS_PENDING}),
    STATUS_REJECTED: frozenset({STATUS_PENDING}),
    STATUS_CANCELLED: frozenset({STATUS_PENDING, STATUS_CONFIRMED}),
    STATUS_COMPLETED: frozenset({STATUS_CONFIRMED}),
    STATUS_NO_SHOW: frozenset({STATUS_CONFIRMED}),
}

# Facility lifecycle: only active facilities take new bookings
FACILITY_STATUS_ACTIVE = "active"

# Alternative slot search: 30-min steps, 8h forward, 4h back, within 06:00–22:00 local
SUGGESTION_STEP_MINUTES = 30
SUGGESTION_FORWARD_STEPS = 16
SUGGESTION_BACKWARD_STEPS = 8
SUGGESTION_LATEST_START_HOUR = 22  # candidates starting at/after this hour are not offered
SUGGESTION_EARLIEST_START_HOUR = 6  # candidates starting before this hour are not offered
DEFAULT_MAX_SUGGESTIONS = 3

# Free-text limits on reservation fields
PURPOSE_MAX_LENGTH = 200
NOTES_MAX_LENGTH = 500
