"""
Transaction host for read-validate-write units.

A unit is a callable taking the session; it runs inside the session's transaction and is
committed when it returns. A write conflict (stale slot version, or an IntegrityError from the
facility_day_slots INSERT when two transactions create the same new slot) rolls the session back
and runs the whole unit again, up to settings.booking_transaction_attempts. Any other exception,
including integrity failures on other tables, rolls back and propagates unchanged.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from stableslot.config import settings
from stableslot.core.errors import BookingConflictError
from stableslot.db.tables import DAY_SLOT_TABLE_NAME

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SLOT_INSERT = f"INSERT INTO {DAY_SLOT_TABLE_NAME}"


def is_write_conflict(exc: BaseException) -> bool:
    """Another transaction wrote the same slot first. Other integrity failures are real errors."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, IntegrityError):
        return _SLOT_INSERT in (exc.statement or "")
    return False


def _short_exc(retry_state: RetryCallState) -> str | None:
    if retry_state.outcome is None or not retry_state.outcome.failed:
        return None
    exc = retry_state.outcome.exception()
    if exc is None:
        return None
    # First line only: IntegrityError messages carry the full statement
    msg = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


def _log_before_sleep(retry_state: RetryCallState) -> None:
    logger.warning(
        "Booking transaction conflict on attempt %s, retrying (%s)",
        retry_state.attempt_number,
        _short_exc(retry_state),
    )


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    *,
    attempts: int | None = None,
    wait_seconds: float | None = None,
) -> T:
    """
    Run work(db) and commit. Retries the whole unit on write conflicts.
    Raises BookingConflictError when every attempt conflicted.
    """
    max_attempts = attempts if attempts is not None else settings.booking_transaction_attempts
    wait = wait_seconds if wait_seconds is not None else settings.booking_retry_wait_seconds
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait, max=1),
        retry=retry_if_exception(is_write_conflict),
        before_sleep=_log_before_sleep,
    )
    try:
        for attempt in retrying:
            with attempt:
                try:
                    result = work(db)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
    except RetryError as e:
        last = e.last_attempt.exception()
        logger.error(
            "Booking transaction gave up after %s attempt(s): %s",
            max_attempts,
            str(last).strip().splitlines()[0] if str(last).strip() else type(last).__name__,
        )
        raise BookingConflictError(attempts=max_attempts) from last
    return result
