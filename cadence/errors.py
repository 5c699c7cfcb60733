"""
cadence.errors — Exception Hierarchy
=====================================

Every error carries a machine-readable ``code`` so callers can branch on it
without parsing English messages.  The engine itself never rejects a
record's state; the only failures surfaced are persistence failures.
"""

from __future__ import annotations

from typing import Any


class CadenceError(Exception):
    """Base class for all Cadence errors."""

    code: str = "CADENCE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StoreError(CadenceError):
    """The streak store failed to read or write.

    Nothing was committed; retrying the whole operation is safe.
    """

    code = "STORE_ERROR"


class RecordNotFoundError(StoreError):
    code = "STREAK_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No streak record for user {user_id}.",
            details={"user_id": user_id},
        )


class ConcurrentUpdateError(StoreError):
    """The record changed between read and write."""

    code = "CONCURRENT_UPDATE"

    def __init__(self, user_id: str, expected: int | None, actual: int | None):
        super().__init__(
            message=(
                f"Streak record for user {user_id} was modified concurrently "
                f"(expected version {expected}, found {actual})."
            ),
            details={"user_id": user_id, "expected": expected, "actual": actual},
        )
