"""
cadence.engine.streak — Gap Reconciliation & Daily Credit
==========================================================

Pure functions over :class:`StreakRecord`.  No DB I/O inside the engine:
each step returns the new record plus the ``changes`` mapping the service
layer hands to the store.

Pipeline for one credited day::

    StreakRecord ─► reconcile_gap(today) ─► apply_daily_credit(today) ─► StreakRecord
                    (bridge with freezes    (idempotent +1, freeze
                     or reset to zero)       every N consecutive days)

Reconciliation is eager: missed days are already in the past, so freezes
are spent as soon as a gap is seen, whether or not a credit follows.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any

from cadence.config import DEFAULT_CONFIG, CadenceConfig
from cadence.database.models import HistoryType
from cadence.engine.dates import add_days, days_between, format_date, parse_local_date

logger = logging.getLogger(__name__)

__all__ = [
    "CreditOutcome",
    "CreditResult",
    "GapOutcome",
    "GapResult",
    "HistoryEntry",
    "StreakRecord",
    "StreakStatus",
    "apply_daily_credit",
    "describe_status",
    "reconcile_gap",
]


# ---------------------------------------------------------------------------
# Record types
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One line of the streak history log."""

    date: date
    type: HistoryType
    note: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {"date": format_date(self.date), "type": self.type.value}
        if self.note:
            payload["note"] = self.note
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> HistoryEntry:
        return cls(
            date=parse_local_date(raw["date"]),
            type=HistoryType(raw["type"]),
            note=raw.get("note"),
        )


@dataclass(frozen=True, slots=True)
class StreakRecord:
    """Detached snapshot of a user's streak row."""

    user_id: str
    current_streak: int = 0
    longest_streak: int = 0
    streak_freezes: int = 0
    last_activity_date: date | None = None
    streak_history: tuple[HistoryEntry, ...] = ()
    updated_at: datetime | None = None
    version: int | None = None

    @classmethod
    def empty(cls, user_id: str) -> StreakRecord:
        return cls(user_id=user_id)


def history_to_json(history: tuple[HistoryEntry, ...]) -> list[dict[str, str]]:
    return [entry.to_dict() for entry in history]


# ---------------------------------------------------------------------------
# Stage 1: Gap reconciliation
# ---------------------------------------------------------------------------
class GapOutcome(enum.StrEnum):
    UNCHANGED = "unchanged"
    BRIDGED = "bridged"
    RESET = "reset"


@dataclass(frozen=True, slots=True)
class GapResult:
    record: StreakRecord
    outcome: GapOutcome
    gap: int = 0
    changes: dict[str, Any] = field(default_factory=dict)


def reconcile_gap(
    record: StreakRecord,
    today: date,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> GapResult:
    """Settle the missed days between ``last_activity_date`` and *today*.

    ``gap`` counts the days strictly between the two dates.  If the freeze
    bank covers it, one freeze is spent per missed day and the record's
    last date becomes yesterday (a ghost date).  Otherwise the streak drops
    to zero; freezes, longest and the stale last date are kept.
    """
    last = record.last_activity_date
    if last is None or record.current_streak == 0:
        return GapResult(record, GapOutcome.UNCHANGED)

    gap = days_between(last, today) - 1
    if gap <= 0:
        return GapResult(record, GapOutcome.UNCHANGED)

    if record.streak_freezes >= gap:
        bridged = tuple(
            HistoryEntry(add_days(last, offset), HistoryType.FREEZE_USED, config.bridge_note)
            for offset in range(1, gap + 1)
        )
        history = record.streak_history + bridged
        changes = {
            "streak_freezes": record.streak_freezes - gap,
            "last_activity_date": add_days(today, -1),
            "streak_history": history,
        }
        return GapResult(replace(record, **changes), GapOutcome.BRIDGED, gap, changes)

    changes = {"current_streak": 0}
    return GapResult(replace(record, **changes), GapOutcome.RESET, gap, changes)


# ---------------------------------------------------------------------------
# Stage 2: Daily credit
# ---------------------------------------------------------------------------
class CreditOutcome(enum.StrEnum):
    DUPLICATE = "duplicate"       # day already credited
    CREDITED = "credited"
    RESTARTED = "restarted"       # residual gap or out-of-order day


@dataclass(frozen=True, slots=True)
class CreditResult:
    record: StreakRecord
    outcome: CreditOutcome
    freeze_earned: bool = False
    changes: dict[str, Any] = field(default_factory=dict)


def apply_daily_credit(
    record: StreakRecord,
    day: date,
    event_type: HistoryType = HistoryType.ACTIVITY,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> CreditResult:
    """Credit *day* to the streak.  Call after :func:`reconcile_gap`.

    A second credit for the same day is a no-op.  Activity and rest-day
    check-ins are treated identically; only the history entry differs.
    Any other state (a gap the reconciler did not settle, or a day earlier
    than ``last_activity_date``) restarts the streak at 1 on *day*.
    """
    last = record.last_activity_date
    if last == day:
        return CreditResult(record, CreditOutcome.DUPLICATE)

    days_diff = days_between(last, day) if last is not None else 1

    if days_diff == 1 or record.current_streak == 0:
        current = record.current_streak + 1
        freeze_earned = current % config.freeze_award_interval == 0
        changes = {
            "current_streak": current,
            "longest_streak": max(record.longest_streak, current),
            "streak_freezes": record.streak_freezes + (1 if freeze_earned else 0),
            "last_activity_date": day,
            "streak_history": record.streak_history + (HistoryEntry(day, event_type),),
        }
        return CreditResult(
            replace(record, **changes), CreditOutcome.CREDITED, freeze_earned, changes
        )

    if days_diff < 0:
        logger.warning(
            "User %s: credit for %s predates last activity %s; restarting streak",
            record.user_id, day, last,
        )
    else:
        logger.warning(
            "User %s: %d-day gap survived reconciliation; restarting streak at %s",
            record.user_id, days_diff - 1, day,
        )
    changes = {
        "current_streak": 1,
        "last_activity_date": day,
        "streak_history": record.streak_history
        + (HistoryEntry(day, event_type, config.reset_note),),
    }
    return CreditResult(replace(record, **changes), CreditOutcome.RESTARTED, False, changes)


# ---------------------------------------------------------------------------
# Read-only status
# ---------------------------------------------------------------------------
class StreakStatus(enum.StrEnum):
    COLD = "cold"
    CREDITED_TODAY = "credited_today"
    PENDING = "pending"      # not yet credited today, freezes still banked
    AT_RISK = "at_risk"      # not yet credited today, no freezes left
    LOST = "lost"            # missed days outnumber the banked freezes


def describe_status(record: StreakRecord, today: date) -> StreakStatus:
    """Display condition of *record* on *today*.  Never persisted.

    Missed days not yet settled by :func:`reconcile_gap` are charged
    against the freeze bank the same way reconciliation would charge them.
    """
    last = record.last_activity_date
    if record.current_streak == 0 or last is None:
        return StreakStatus.COLD
    if last == today:
        return StreakStatus.CREDITED_TODAY

    gap = max(days_between(last, today) - 1, 0)
    remaining = record.streak_freezes - gap
    if remaining < 0:
        return StreakStatus.LOST
    if remaining == 0:
        return StreakStatus.AT_RISK
    return StreakStatus.PENDING
