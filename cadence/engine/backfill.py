"""
cadence.engine.backfill — Rebuild Streak State from Activity History
=====================================================================

Used on first sync with an activity provider (and on explicit resync).
The input is every day the user was active, from any number of sources,
in any order, with duplicates.  The output *replaces* the stored record;
nothing is merged.

Walk::

    anchor = today if today is active else yesterday
    anchor, anchor-1, anchor-2, …  count while active, stop at first gap

An inactive *today* never breaks the streak: the day is still open.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from cadence.config import DEFAULT_CONFIG, CadenceConfig
from cadence.database.models import HistoryType
from cadence.engine.dates import DateLike, add_days, parse_local_date
from cadence.engine.streak import HistoryEntry

__all__ = ["BackfillResult", "collect_active_dates", "rebuild_from_history"]


@dataclass(frozen=True, slots=True)
class BackfillResult:
    """Outcome of a rebuild.  ``changes`` is empty when nothing was found."""

    streak_length: int
    last_active: date | None = None
    changes: dict[str, Any] = field(default_factory=dict)

    @property
    def found_streak(self) -> bool:
        return self.streak_length > 0


def collect_active_dates(*sources: Iterable[DateLike | Mapping]) -> set[date]:
    """Union history entries from every source into a set of calendar days.

    Each entry may be a date, a ``YYYY-MM-DD`` string, a local timestamp
    string, or a mapping such as ``{"date": ..., "source": "strava"}``.
    """
    active: set[date] = set()
    for source in sources:
        for entry in source:
            active.add(parse_local_date(entry))
    return active


def rebuild_from_history(
    active_dates: Iterable[date],
    today: date,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> BackfillResult:
    """Count the run of consecutive active days ending today or yesterday.

    Freezes are re-derived from the run length (one per full interval) and
    ``longest_streak`` is set to the run length, discarding prior values.
    """
    active = set(active_dates)
    check = today if today in active else add_days(today, -1)

    count = 0
    last_active: date | None = None
    history: list[HistoryEntry] = []

    for _ in range(config.backfill_max_days):
        if check not in active:
            break
        count += 1
        if last_active is None:
            last_active = check
        history.append(HistoryEntry(check, HistoryType.ACTIVITY, config.backfill_note))
        check = add_days(check, -1)

    if count == 0:
        return BackfillResult(streak_length=0)

    history.reverse()
    changes = {
        "current_streak": count,
        "longest_streak": count,
        "streak_freezes": count // config.freeze_award_interval,
        "last_activity_date": last_active,
        "streak_history": tuple(history),
    }
    return BackfillResult(streak_length=count, last_active=last_active, changes=changes)
