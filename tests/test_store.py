"""
tests/test_store.py — SqlStreakStore Integration Tests
=======================================================

Runs the SQLAlchemy store against an in-memory SQLite schema.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select

from cadence.database.models import HistoryType, UserStreak
from cadence.engine.streak import HistoryEntry, StreakRecord
from cadence.errors import ConcurrentUpdateError, RecordNotFoundError, StoreError
from cadence.services.store import SqlStreakStore


class TestInsertAndGet:
    def test_get_missing_returns_none(self, store):
        assert store.get("nobody") is None

    def test_insert_defaults(self, store):
        rec = store.insert(StreakRecord.empty("u-1"))
        assert rec.user_id == "u-1"
        assert rec.current_streak == 0
        assert rec.longest_streak == 0
        assert rec.streak_freezes == 0
        assert rec.last_activity_date is None
        assert rec.streak_history == ()
        assert rec.version == 1

    def test_history_round_trips_through_json(self, store, db_session):
        history = (
            HistoryEntry(date(2024, 3, 1), HistoryType.ACTIVITY),
            HistoryEntry(date(2024, 3, 2), HistoryType.FREEZE_USED, "Auto-consumed to save streak"),
        )
        store.insert(StreakRecord(
            user_id="u-1", current_streak=1, last_activity_date=date(2024, 3, 2),
            streak_history=history,
        ))

        assert store.get("u-1").streak_history == history
        row = db_session.scalar(select(UserStreak).where(UserStreak.user_id == "u-1"))
        assert row.streak_history == [
            {"date": "2024-03-01", "type": "activity"},
            {"date": "2024-03-02", "type": "freeze_used", "note": "Auto-consumed to save streak"},
        ]

    def test_duplicate_insert_returns_existing_row(self, store):
        store.insert(StreakRecord(user_id="u-1", current_streak=4))
        again = store.insert(StreakRecord.empty("u-1"))
        assert again.current_streak == 4


class TestUpdate:
    def test_update_fields_and_bump_version(self, store):
        store.insert(StreakRecord.empty("u-1"))
        rec = store.update("u-1", {
            "current_streak": 1,
            "longest_streak": 1,
            "last_activity_date": date(2024, 3, 1),
            "streak_history": (HistoryEntry(date(2024, 3, 1), HistoryType.ACTIVITY),),
        })
        assert rec.current_streak == 1
        assert rec.last_activity_date == date(2024, 3, 1)
        assert rec.version == 2
        assert store.get("u-1") == rec

    def test_missing_user(self, store):
        with pytest.raises(RecordNotFoundError):
            store.update("ghost", {"current_streak": 1})

    def test_unknown_field_rejected(self, store):
        store.insert(StreakRecord.empty("u-1"))
        with pytest.raises(ValueError):
            store.update("u-1", {"user_id": "u-2"})

    def test_stale_version_conflicts(self, store):
        first = store.insert(StreakRecord.empty("u-1"))
        store.update("u-1", {"current_streak": 1}, expected_version=first.version)
        with pytest.raises(ConcurrentUpdateError) as info:
            store.update("u-1", {"current_streak": 2}, expected_version=first.version)
        assert info.value.code == "CONCURRENT_UPDATE"
        assert store.get("u-1").current_streak == 1

    def test_conflict_is_a_store_error(self):
        assert issubclass(ConcurrentUpdateError, StoreError)


class TestStoreFailures:
    def test_database_errors_are_wrapped(self):
        from conftest import make_sqlite_engine

        broken = SqlStreakStore(make_sqlite_engine(create_tables=False))
        with pytest.raises(StoreError) as info:
            broken.get("u-1")
        assert info.value.to_dict()["code"] == "STORE_ERROR"
        assert info.value.__cause__ is not None

    def test_failed_insert_is_wrapped(self):
        from conftest import make_sqlite_engine

        broken = SqlStreakStore(make_sqlite_engine(create_tables=False))
        with pytest.raises(StoreError):
            broken.insert(StreakRecord.empty("u-1"))

    def test_malformed_history_is_a_store_error(self, store, db_session):
        db_session.add(UserStreak(
            user_id="u-1",
            streak_history=[{"date": "2024-03-01", "type": "vacation"}],
        ))
        db_session.commit()

        with pytest.raises(StoreError) as info:
            store.get("u-1")
        assert info.value.details == {"user_id": "u-1"}
        assert isinstance(info.value.__cause__, ValueError)
