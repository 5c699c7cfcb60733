"""
cadence.services.store — Streak Record Store
=============================================

The engine talks to persistence through three calls only::

    get(user_id)                               -> StreakRecord | None
    insert(record)                             -> StreakRecord
    update(user_id, fields, expected_version)  -> StreakRecord

:class:`SqlStreakStore` is the SQLAlchemy implementation over the
``user_streaks`` table.  Each call runs in its own session and either
commits fully or raises :class:`~cadence.errors.StoreError` with nothing
written.

Concurrency: records carry the row ``version`` they were read at.  Passing
it back as ``expected_version`` turns a lost update into a
:class:`~cadence.errors.ConcurrentUpdateError` instead of a silent
double-increment.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from cadence.database.engine import get_session
from cadence.database.models import UserStreak
from cadence.engine.streak import HistoryEntry, StreakRecord, history_to_json
from cadence.errors import ConcurrentUpdateError, RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

# Columns the engine is allowed to write.
WRITABLE_FIELDS: frozenset[str] = frozenset({
    "current_streak",
    "longest_streak",
    "streak_freezes",
    "last_activity_date",
    "streak_history",
})


class StreakStore(Protocol):
    """Anything the streak service can persist through."""

    def get(self, user_id: str) -> StreakRecord | None: ...

    def insert(self, record: StreakRecord) -> StreakRecord: ...

    def update(
        self,
        user_id: str,
        fields: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> StreakRecord: ...


# ---------------------------------------------------------------------------
# Row ↔ record conversion
# ---------------------------------------------------------------------------
def to_record(row: UserStreak) -> StreakRecord:
    try:
        history = tuple(HistoryEntry.from_dict(raw) for raw in row.streak_history or [])
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(
            f"Malformed streak history for user {row.user_id}.",
            details={"user_id": row.user_id},
        ) from exc
    return StreakRecord(
        user_id=row.user_id,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        streak_freezes=row.streak_freezes,
        last_activity_date=row.last_activity_date,
        streak_history=history,
        updated_at=row.updated_at,
        version=row.version,
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "streak_history":
        return history_to_json(tuple(value))
    return value


# ---------------------------------------------------------------------------
# SQLAlchemy store
# ---------------------------------------------------------------------------
class SqlStreakStore:
    """:class:`StreakStore` backed by the ``user_streaks`` table."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get(self, user_id: str) -> StreakRecord | None:
        try:
            with get_session(self._engine) as session:
                row = session.get(UserStreak, user_id)
                return to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Failed to read streak for user {user_id}.",
                details={"user_id": user_id},
            ) from exc

    def insert(self, record: StreakRecord) -> StreakRecord:
        """Insert *record*; if the row already exists, return the existing one."""
        row = UserStreak(
            user_id=record.user_id,
            current_streak=record.current_streak,
            longest_streak=record.longest_streak,
            streak_freezes=record.streak_freezes,
            last_activity_date=record.last_activity_date,
            streak_history=history_to_json(record.streak_history),
        )
        try:
            with get_session(self._engine) as session:
                session.add(row)
                session.flush()
                return to_record(row)
        except IntegrityError:
            # Lost an init race with another request for the same user.
            logger.info("Streak row for user %s already exists; reusing it", record.user_id)
            existing = self.get(record.user_id)
            if existing is None:
                raise StoreError(
                    f"Failed to insert streak for user {record.user_id}.",
                    details={"user_id": record.user_id},
                ) from None
            return existing
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Failed to insert streak for user {record.user_id}.",
                details={"user_id": record.user_id},
            ) from exc

    def update(
        self,
        user_id: str,
        fields: Mapping[str, Any],
        *,
        expected_version: int | None = None,
    ) -> StreakRecord:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update streak fields: {sorted(unknown)}")

        try:
            with get_session(self._engine) as session:
                row = session.get(UserStreak, user_id)
                if row is None:
                    raise RecordNotFoundError(user_id)
                if expected_version is not None and row.version != expected_version:
                    raise ConcurrentUpdateError(user_id, expected_version, row.version)
                for name, value in fields.items():
                    setattr(row, name, _column_value(name, value))
                session.flush()
                return to_record(row)
        except StaleDataError as exc:
            raise ConcurrentUpdateError(user_id, expected_version, None) from exc
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Failed to update streak for user {user_id}.",
                details={"user_id": user_id, "fields": sorted(fields)},
            ) from exc
