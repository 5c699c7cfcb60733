"""
cadence.config — YAML Configuration Loader
===========================================

**Why this file exists:**
The streak rules have a handful of tuning knobs (how many consecutive days
earn a freeze, how far back a backfill may walk, the notes written into the
history log).  They live in ``cadence.yaml`` so product can adjust them
without a code change.  Every key is optional; a missing key keeps the
default shown on :class:`CadenceConfig`.

Usage::

    from cadence.config import load_config

    cfg = load_config()               # reads ./cadence.yaml by default
    print(cfg.freeze_award_interval)  # 7
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CadenceConfig:
    """Immutable streak tuning loaded from ``cadence.yaml``."""

    # One freeze is banked every time the streak hits a multiple of this.
    freeze_award_interval: int = 7

    # Upper bound on days inspected when rebuilding from history.
    backfill_max_days: int = 365

    # History notes
    bridge_note: str = "Auto-consumed to save streak"
    reset_note: str = "Reset due to gap"
    backfill_note: str = "Backfilled from activity history"


DEFAULT_CONFIG = CadenceConfig()

# Smallest accepted value per integer key.  A defensive restart never
# awards a freeze, so an interval of 1 is rejected.
_INT_MINIMUMS = {"freeze_award_interval": 2, "backfill_max_days": 1}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "cadence.yaml") -> CadenceConfig:
    """Read *path* and return a :class:`CadenceConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``cadence.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If an interval or bound is below its minimum
        (``freeze_award_interval`` >= 2, ``backfill_max_days`` >= 1).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy cadence.yaml.example → cadence.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    known = {f.name for f in fields(CadenceConfig)}
    values = {key: raw[key] for key in known if raw.get(key) is not None}

    for key, minimum in _INT_MINIMUMS.items():
        if key in values:
            values[key] = int(values[key])
            if values[key] < minimum:
                raise ValueError(f"{key} must be at least {minimum}, got {values[key]}")

    return CadenceConfig(**values)
