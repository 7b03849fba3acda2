"""Intraday P&L summary statistics."""

from __future__ import annotations

import numpy as np
import pandas as pd


def max_drawdown(pnl: pd.Series) -> float:
    """Return the largest drop from a running peak (a non-positive number)."""
    if pnl.empty:
        return 0.0
    values = pnl.to_numpy(dtype=float)
    running_peak = np.maximum.accumulate(values)
    return float((values - running_peak).min())


def pnl_summary(frame: pd.DataFrame) -> dict[str, float | int]:
    """
    Summarise a replayed P&L log.

    Parameters
    ----------
    frame : pd.DataFrame
        Frame with a float ``pnl`` column in log order.

    Returns
    -------
    dict with last, high, low, max_drawdown and samples (zeros when empty).
    """
    if frame.empty:
        return {
            "last": 0.0,
            "high": 0.0,
            "low": 0.0,
            "max_drawdown": 0.0,
            "samples": 0,
        }
    pnl = frame["pnl"].astype(float)
    return {
        "last": float(pnl.iloc[-1]),
        "high": float(pnl.max()),
        "low": float(pnl.min()),
        "max_drawdown": max_drawdown(pnl),
        "samples": int(len(pnl)),
    }
