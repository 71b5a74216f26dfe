"""
Value types for the facility day-slot core. Same shape whether the slot row exists or was synthesized.

Times inside a slot are ISO-8601 strings; an entry covers the half-open interval [start_time, end_time).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable


def parse_time(value: datetime | str) -> datetime:
    """datetime passthrough; ISO-8601 string (a trailing Z is accepted) to datetime."""
    if isinstance(value, datetime):
        return value
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


def epoch_ms(value: datetime | str) -> int:
    """Integer milliseconds since the epoch. Naive datetimes are read as local time."""
    return round(parse_time(value).timestamp() * 1000)


@dataclass(frozen=True)
class SlotBookingEntry:
    """A reservation's footprint in a day slot."""

    reservation_id: str
    start_time: str
    end_time: str
    horse_count: int
    user_id: str
    status: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SlotBookingEntry":
        return cls(
            reservation_id=str(raw["reservation_id"]),
            start_time=str(raw["start_time"]),
            end_time=str(raw["end_time"]),
            horse_count=int(raw.get("horse_count") or 0),
            user_id=str(raw.get("user_id") or ""),
            status=str(raw.get("status") or ""),
        )

    def merged(self, updates: dict[str, Any]) -> "SlotBookingEntry":
        """Shallow merge: fields in updates win, everything else is kept."""
        return replace(self, **updates)


@dataclass(frozen=True)
class FacilityDaySlotData:
    """
    Snapshot of one facility_day_slots row as read inside a transaction.
    version is None when the row does not exist yet (synthesized default).
    """

    facility_id: str
    date: str  # YYYY-MM-DD
    current_bookings: tuple[SlotBookingEntry, ...] = field(default_factory=tuple)
    last_modified: datetime | None = None
    version: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "current_bookings", tuple(self.current_bookings))

    @property
    def exists(self) -> bool:
        return self.version is not None

    def find(self, reservation_id: str) -> SlotBookingEntry | None:
        for entry in self.current_bookings:
            if entry.reservation_id == reservation_id:
                return entry
        return None

    def with_bookings(
        self, bookings: Iterable[SlotBookingEntry], last_modified: datetime, version: int | None
    ) -> "FacilityDaySlotData":
        return replace(self, current_bookings=tuple(bookings), last_modified=last_modified, version=version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "facility_id": self.facility_id,
            "date": self.date,
            "current_bookings": [b.to_dict() for b in self.current_bookings],
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }
