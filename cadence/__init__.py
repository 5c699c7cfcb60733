"""
Cadence — Streak Consistency Engine for a Training Coach
=========================================================
Maintains a per-user training streak, a bank of streak freezes earned
through consistency, and a history log that can be rebuilt from a
provider's activity feed.  "Showing up" counts: a rest-day check-in
sustains the streak exactly like a logged workout.

Package layout::

    cadence/
    ├── config.py          # YAML → typed tuning config
    ├── errors.py          # StoreError & friends
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   └── models.py      # user_streaks ORM model
    ├── engine/
    │   ├── dates.py       # Local calendar-date arithmetic
    │   ├── streak.py      # Gap reconciliation + daily credit (pure)
    │   └── backfill.py    # Rebuild state from activity history (pure)
    └── services/
        ├── store.py          # Store protocol + SQLAlchemy adapter
        └── streak_service.py # Public operations (store in, record out)
"""

__version__ = "0.1.0"
