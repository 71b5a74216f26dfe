#!/usr/bin/env python3
"""
Completely clear booking state (facility_day_slots, facility_reservations). Facilities are kept.
Run with backend stopped to avoid locks: python backend/scripts/clear_booking_tables.py
"""
import sys
from pathlib import Path

# backend/scripts/ -> backend/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import text

from stableslot.db.session import engine
from stableslot.db.tables import BOOKING_TABLE_NAMES


def main():
    print(f"Connecting to DB and clearing {', '.join(BOOKING_TABLE_NAMES)} ...")
    with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            conn.execute(text(f"TRUNCATE TABLE {', '.join(BOOKING_TABLE_NAMES)}"))
        else:
            for table in BOOKING_TABLE_NAMES:
                conn.execute(text(f"DELETE FROM {table}"))
    print("Done. Booking tables are empty; slots are recreated by the next booking.")


if __name__ == "__main__":
    main()
