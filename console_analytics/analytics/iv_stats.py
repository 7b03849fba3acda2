"""IV rank and percentile over the stored snapshot history."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats


def iv_rank(history: Sequence[float], current: float) -> float | None:
    """Return where ``current`` sits in the history range, 0-100.

    None when the history is empty or flat. Values outside the range are
    clipped.
    """
    if len(history) == 0:
        return None
    arr = np.asarray([float(value) for value in history], dtype=float)
    low, high = float(arr.min()), float(arr.max())
    if high == low:
        return None
    rank = (float(current) - low) / (high - low) * 100.0
    return float(np.clip(rank, 0.0, 100.0))


def iv_percentile(history: Sequence[float], current: float) -> float | None:
    """Return the percentage of historical snapshots strictly below ``current``."""
    if len(history) == 0:
        return None
    arr = np.asarray([float(value) for value in history], dtype=float)
    return float(stats.percentileofscore(arr, float(current), kind="strict"))


def iv_summary(history: Sequence[float]) -> dict[str, float | int | None]:
    """Summarise a history using its most recent value as the current IV."""
    if len(history) == 0:
        return {"latest": None, "rank": None, "percentile": None, "samples": 0}
    latest = float(history[-1])
    return {
        "latest": latest,
        "rank": iv_rank(history, latest),
        "percentile": iv_percentile(history, latest),
        "samples": len(history),
    }
