"""
Slot document store: maps (facility_id, date) to its facility_day_slots row.

The row id is computable by any caller without a lookup. Reads happen inside the caller's
transaction; on PostgreSQL the row is locked (SELECT ... FOR UPDATE) until commit/rollback.
A missing row is synthesized in memory and never written here; the first mutator write creates it.
"""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from stableslot.models.facility_day_slot import FacilityDaySlot
from stableslot.services.slots.types import FacilityDaySlotData, SlotBookingEntry, parse_time

logger = logging.getLogger(__name__)


def local_date(day: date | datetime | str) -> date:
    """Calendar date in local time. Aware datetimes are converted to the local zone first."""
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            day = day.astimezone()
        return day.date()
    if isinstance(day, date):
        return day
    if len(day.strip()) == 10:
        return date.fromisoformat(day.strip())
    return local_date(parse_time(day))


def slot_document_id(facility_id: str, day: date | datetime | str) -> str:
    """Stable slot key. E.g. arena1_2026-03-07."""
    d = local_date(day)
    return f"{facility_id}_{d.year:04d}-{d.month:02d}-{d.day:02d}"


def _date_part(slot_ref: str) -> str:
    # Facility ids may themselves contain underscores; the date is always the last segment.
    return slot_ref.rsplit("_", 1)[1]


def row_to_data(row: FacilityDaySlot) -> FacilityDaySlotData:
    return FacilityDaySlotData(
        facility_id=row.facility_id,
        date=row.date,
        current_bookings=[SlotBookingEntry.from_dict(b) for b in (row.current_bookings or [])],
        last_modified=row.last_modified,
        version=row.version,
    )


def read_slot_document(
    db: Session,
    facility_id: str,
    day: date | datetime | str,
) -> tuple[str, FacilityDaySlotData]:
    """
    Read the slot for facility_id + day inside the session's transaction.
    Returns (slot_ref, data); data is an empty default (not persisted) when no row exists.
    """
    ref = slot_document_id(facility_id, day)
    row = db.get(FacilityDaySlot, ref, with_for_update=True, populate_existing=True)
    if row is not None:
        return ref, row_to_data(row)

    logger.debug("Slot %s not stored yet; using empty default", ref)
    return ref, FacilityDaySlotData(
        facility_id=facility_id,
        date=_date_part(ref),
        current_bookings=(),
        last_modified=datetime.now(timezone.utc),
        version=None,
    )
