"""
cadence.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- user_streaks — One row per user: streak counters, freeze bank, and the
  JSON history log.  Created lazily the first time a user is seen.
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Cadence ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class HistoryType(enum.StrEnum):
    """Kinds of entries written to ``user_streaks.streak_history``."""
    ACTIVITY = "activity"
    REST_CHECKIN = "rest_checkin"
    FREEZE_USED = "freeze_used"
    RESTORED = "restored"


# Event kinds that credit a day.  Both count the same for the streak.
CREDIT_TYPES: frozenset[HistoryType] = frozenset({
    HistoryType.ACTIVITY,
    HistoryType.REST_CHECKIN,
})


# ---------------------------------------------------------------------------
# UserStreak — one row per user
# ---------------------------------------------------------------------------
class UserStreak(Base):
    __tablename__ = "user_streaks"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_freezes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # The user's local calendar day, never converted.
    last_activity_date: Mapped[date | None] = mapped_column(Date, default=None)
    streak_history: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("streak_freezes >= 0", name="ck_user_streaks_freezes_nonneg"),
        CheckConstraint("current_streak >= 0", name="ck_user_streaks_current_nonneg"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<UserStreak user={self.user_id!r} current={self.current_streak} "
            f"freezes={self.streak_freezes} last={self.last_activity_date}>"
        )
