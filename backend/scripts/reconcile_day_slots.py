#!/usr/bin/env python3
"""Compare facility_reservations with the facility_day_slots entries that hold them.
Reports missing entries, orphan entries and status mismatches; --fix repairs status mismatches.
Run from backend: python scripts/reconcile_day_slots.py [--facility arena1] [--fix]
"""
import argparse
import logging
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from stableslot.db.session import SessionLocal
from stableslot.services.slot_reconcile import find_slot_drift, repair_status_drift


def main():
    parser = argparse.ArgumentParser(description="Check day-slot entries against reservation rows")
    parser.add_argument("--facility", help="Only check this facility id")
    parser.add_argument("--fix", action="store_true", help="Mirror reservation status into mismatched entries")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    db = SessionLocal()
    try:
        drift = find_slot_drift(db, facility_id=args.facility)
        for d in drift:
            print(
                f"  {d.kind:16} {d.slot_ref} reservation={d.reservation_id}"
                f" reservation_status={d.reservation_status} entry_status={d.entry_status}"
            )
        print(f"Found {len(drift)} drift item(s).")
        if args.fix and drift:
            print(f"Repaired {repair_status_drift(db, drift)} status mismatch(es).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
