"""
cadence.services.streak_service — Streak Operations
====================================================

Public entry points, callable from any request handler or sync job.
Every function takes the :class:`~cadence.services.store.StreakStore` as
its first argument and holds no state of its own.  The caller supplies
the user's local calendar day; the engine never reads the system clock.

Operations:
    get_or_init_streak    — fetch, lazily creating an all-zero record
    validate_and_sync     — settle missed days (bridge or reset) on view
    record_activity_day   — credit a day with a logged workout
    record_rest_check_in  — credit a rest day the user checked in on
    resync_from_history   — replace state from an activity history
    load_streak           — dashboard flow: init, first backfill, reconcile

Store failures propagate as :class:`~cadence.errors.StoreError`.  Each
write is computed from the last persisted state, so retrying a failed
operation from the top is always safe.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from cadence.config import DEFAULT_CONFIG, CadenceConfig
from cadence.database.models import CREDIT_TYPES, HistoryType
from cadence.engine.backfill import collect_active_dates, rebuild_from_history
from cadence.engine.dates import DateLike, parse_local_date
from cadence.engine.streak import (
    CreditOutcome,
    GapOutcome,
    StreakRecord,
    apply_daily_credit,
    reconcile_gap,
)
from cadence.services.store import StreakStore

logger = logging.getLogger(__name__)


def get_or_init_streak(store: StreakStore, user_id: str) -> StreakRecord:
    """Fetch the user's record, inserting an empty one on first access."""
    record = store.get(user_id)
    if record is None:
        record = store.insert(StreakRecord.empty(user_id))
        logger.info("Initialized streak record for user %s", user_id)
    return record


def _reconcile(
    store: StreakStore,
    record: StreakRecord,
    today: DateLike,
    config: CadenceConfig,
) -> StreakRecord:
    result = reconcile_gap(record, parse_local_date(today), config)
    if result.outcome is GapOutcome.UNCHANGED:
        return record

    if result.outcome is GapOutcome.BRIDGED:
        logger.info(
            "User %s: bridged %d missed day(s) with freezes (%d left)",
            record.user_id, result.gap, result.record.streak_freezes,
        )
    else:
        logger.info(
            "User %s: %d missed day(s) exceed %d freeze(s); streak of %d reset",
            record.user_id, result.gap, record.streak_freezes, record.current_streak,
        )
    return store.update(record.user_id, result.changes, expected_version=record.version)


def validate_and_sync(
    store: StreakStore,
    user_id: str,
    today: DateLike,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    """Resolve any backlog of missed days up to *today*.

    Bridging is eager: freezes are spent for days already past even if the
    user never logs anything today.
    """
    record = get_or_init_streak(store, user_id)
    return _reconcile(store, record, today, config)


def process_daily_event(
    store: StreakStore,
    user_id: str,
    day: DateLike,
    event_type: HistoryType = HistoryType.ACTIVITY,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    """Reconcile, then credit *day* once.

    Repeating the call for an already credited day returns the record
    unchanged and writes nothing.
    """
    if event_type not in CREDIT_TYPES:
        raise ValueError(f"{event_type!r} does not credit a day")

    local_day = parse_local_date(day)
    record = validate_and_sync(store, user_id, local_day, config=config)

    result = apply_daily_credit(record, local_day, event_type, config)
    if result.outcome is CreditOutcome.DUPLICATE:
        logger.debug("User %s: %s already credited; no change", user_id, local_day)
        return record

    updated = store.update(user_id, result.changes, expected_version=record.version)
    if result.freeze_earned:
        logger.info(
            "User %s: %d-day streak earned a freeze (%d banked)",
            user_id, updated.current_streak, updated.streak_freezes,
        )
    return updated


def record_activity_day(
    store: StreakStore,
    user_id: str,
    day: DateLike,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    return process_daily_event(store, user_id, day, HistoryType.ACTIVITY, config=config)


def record_rest_check_in(
    store: StreakStore,
    user_id: str,
    day: DateLike,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    """A rest-day check-in sustains the streak exactly like a workout."""
    return process_daily_event(store, user_id, day, HistoryType.REST_CHECKIN, config=config)


def resync_from_history(
    store: StreakStore,
    user_id: str,
    history: Iterable[DateLike | Mapping],
    today: DateLike,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    """Rebuild the record from *history*, replacing what is stored.

    A history that yields no live streak leaves the stored record alone.
    """
    record = get_or_init_streak(store, user_id)
    active = collect_active_dates(history)
    result = rebuild_from_history(active, parse_local_date(today), config)

    if not result.found_streak:
        logger.info(
            "User %s: %d history date(s) hold no live streak; record kept", user_id, len(active)
        )
        return record

    logger.info(
        "User %s: backfilled %d-day streak ending %s",
        user_id, result.streak_length, result.last_active,
    )
    return store.update(user_id, result.changes, expected_version=record.version)


def load_streak(
    store: StreakStore,
    user_id: str,
    today: DateLike,
    history: Iterable[DateLike | Mapping] | None = None,
    *,
    config: CadenceConfig = DEFAULT_CONFIG,
) -> StreakRecord:
    """Fetch the streak for display.

    Backfills from *history* only while the record has never been
    populated: the activity feed carries no rest-day check-ins, so
    resyncing a live record would erase them.
    """
    record = get_or_init_streak(store, user_id)
    entries = list(history or ())
    if record.current_streak == 0 and not record.streak_history and entries:
        record = resync_from_history(store, user_id, entries, today, config=config)
    return _reconcile(store, record, today, config)
