"""
Single source of truth for database tables that exist after migrations (001–002).

Use these names when writing raw SQL (e.g. TRUNCATE in scripts).
"""
# Per facility per day booking row; the only table concurrent booking writers contend on
DAY_SLOT_TABLE_NAME = "facility_day_slots"

# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "facilities",
    "facility_reservations",
    "facility_day_slots",
)

# Tables cleared when resetting booking state (TRUNCATE). Facilities are kept.
BOOKING_TABLE_NAMES = (
    "facility_day_slots",
    "facility_reservations",
)
