from stableslot.db.base import Base
from stableslot.db.session import get_db, engine, SessionLocal
from stableslot.db.tables import ALL_TABLE_NAMES, BOOKING_TABLE_NAMES
from stableslot.db.transactions import run_in_transaction

__all__ = [
    "get_db",
    "engine",
    "SessionLocal",
    "Base",
    "ALL_TABLE_NAMES",
    "BOOKING_TABLE_NAMES",
    "run_in_transaction",
]
