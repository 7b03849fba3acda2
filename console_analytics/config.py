"""Configuration constants for the trading console analytics core."""

from __future__ import annotations

import datetime as dt
import os
import sys
from pathlib import Path

# ── Storage locations ──────────────────────────────────────────────────────
APP_FOLDER_NAME: str = "TradingConsole"
IV_DATABASE_FILENAME: str = "historical_iv.json"
PNL_LOG_DIRNAME: str = "PerformanceLogs"
PNL_LOG_PREFIX: str = "pnl_history_"
PNL_LOG_SUFFIX: str = ".json"

# ── IV snapshots ───────────────────────────────────────────────────────────
# Trailing calendar-day window; also the prune horizon applied on save.
IV_RETENTION_DAYS: int = 90
IV_DATABASE_INDENT: int = 2

# ── P&L log rotation ───────────────────────────────────────────────────────
# A log found on disk before the cutoff belongs to the previous session.
REFERENCE_TIMEZONE: str = "Asia/Kolkata"
PNL_LOG_RESET_CUTOFF: dt.time = dt.time(8, 0)

# ── Market hours (reference time zone, no holiday calendar) ────────────────
MARKET_OPEN: dt.time = dt.time(9, 15)
MARKET_CLOSE: dt.time = dt.time(15, 30)

# ── GEX ────────────────────────────────────────────────────────────────────
CONTRACT_MULTIPLIER: int = 100
# Scales spot^2 to exposure per 1% underlying move.
GEX_SCALE: float = 0.0001

# ── Breadth ────────────────────────────────────────────────────────────────
# Index heavyweights and their approximate index weights (percent).
NIFTY_HEAVYWEIGHTS: dict[str, float] = {
    "RELIANCE": 11.5,
    "HDFCBANK": 8.5,
    "ICICIBANK": 7.9,
    "INFY": 5.8,
    "TCS": 4.5,
    "BHARTIARTL": 4.0,
    "LARTURBO": 3.8,
}
BREADTH_NEUTRAL_SCORE: int = 50
BREADTH_DIVERGENCE_SCORE: int = 10
BREADTH_MIN_INDEX_MOVE: float = 0.001
BREADTH_MAX_DIFFERENCE: float = 0.01


def app_data_dir() -> Path:
    """Return the per-user application data folder for the console."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    else:
        base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_FOLDER_NAME
