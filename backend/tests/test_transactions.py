from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from stableslot.core.errors import BookingConflictError, CapacityExceededError
from stableslot.db.transactions import run_in_transaction


def test_commits_once_on_success() -> None:
    db = MagicMock()

    assert run_in_transaction(db, lambda session: "ok", attempts=3, wait_seconds=0) == "ok"
    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_retries_the_whole_unit_after_a_conflict() -> None:
    db = MagicMock()
    calls = []

    def work(session):
        calls.append(session)
        if len(calls) == 1:
            raise StaleDataError("slot changed")
        return len(calls)

    assert run_in_transaction(db, work, attempts=3, wait_seconds=0) == 2
    assert db.rollback.call_count == 1
    assert db.commit.call_count == 1


def test_gives_up_with_booking_conflict_after_all_attempts() -> None:
    db = MagicMock()

    def work(session):
        raise StaleDataError("slot changed")

    with pytest.raises(BookingConflictError) as exc_info:
        run_in_transaction(db, work, attempts=2, wait_seconds=0)

    assert exc_info.value.attempts == 2
    assert isinstance(exc_info.value.__cause__, StaleDataError)
    assert db.rollback.call_count == 2
    db.commit.assert_not_called()


def test_non_conflict_errors_roll_back_and_propagate_without_retry() -> None:
    db = MagicMock()
    calls = []

    def work(session):
        calls.append(1)
        raise CapacityExceededError(peak_concurrent=6, peak_time=None, max_capacity=5)

    with pytest.raises(CapacityExceededError):
        run_in_transaction(db, work, attempts=3, wait_seconds=0)

    assert len(calls) == 1
    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_conflict_raised_by_commit_is_retried() -> None:
    db = MagicMock()
    db.commit.side_effect = [StaleDataError("slot changed"), None]

    assert run_in_transaction(db, lambda session: "done", attempts=2, wait_seconds=0) == "done"
    assert db.commit.call_count == 2
    db.rollback.assert_called_once()


def _integrity_error(statement: str) -> IntegrityError:
    return IntegrityError(statement, {}, Exception("UNIQUE constraint failed"))


def test_duplicate_slot_insert_is_retried() -> None:
    db = MagicMock()
    calls = []

    def work(session):
        calls.append(1)
        if len(calls) == 1:
            raise _integrity_error("INSERT INTO facility_day_slots (id, facility_id) VALUES (?, ?)")
        return "booked"

    assert run_in_transaction(db, work, attempts=3, wait_seconds=0) == "booked"
    assert len(calls) == 2


def test_integrity_error_on_another_table_is_not_a_conflict() -> None:
    db = MagicMock()
    calls = []

    def work(session):
        calls.append(1)
        raise _integrity_error("INSERT INTO facility_reservations (id, user_id) VALUES (?, ?)")

    with pytest.raises(IntegrityError):
        run_in_transaction(db, work, attempts=3, wait_seconds=0)

    assert len(calls) == 1
    db.rollback.assert_called_once()
