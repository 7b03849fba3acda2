"""Append-only daily log of portfolio P&L samples.

One file per calendar day. Writers only ever produce newline-delimited JSON
objects; readers also accept the legacy layout where the whole file is a single
JSON array. Every file access goes through one process-wide lock.
"""

from __future__ import annotations

import codecs
import datetime as dt
import json
import logging
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable
from zoneinfo import ZoneInfo

import pandas as pd

from console_analytics.config import (
    PNL_LOG_DIRNAME,
    PNL_LOG_PREFIX,
    PNL_LOG_RESET_CUTOFF,
    PNL_LOG_SUFFIX,
    REFERENCE_TIMEZONE,
    app_data_dir,
)
from console_analytics.data.models import PnlSample


LOGGER = logging.getLogger(__name__)

# Shared by every PnlLogStore in the process.
_FILE_LOCK = threading.Lock()

# Errors raised while decoding a single record.
_RECORD_ERRORS = (ValueError, KeyError, TypeError, ArithmeticError)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def default_pnl_log_dir() -> Path:
    """Return the P&L log folder under the user's app data folder."""
    return app_data_dir() / PNL_LOG_DIRNAME


def pnl_log_filename(day: dt.date) -> str:
    """Return the log file name for a calendar day."""
    return f"{PNL_LOG_PREFIX}{day.strftime('%Y-%m-%d')}{PNL_LOG_SUFFIX}"


class PnlLogStore:
    """Daily P&L log file with tolerant replay.

    Attributes:
        path: Log file for the day the store was created.
        day: Local calendar day the file belongs to.
    """

    def __init__(
        self,
        log_dir: str | Path | None = None,
        now: Callable[[], dt.datetime] | None = None,
        rotate: bool = True,
    ) -> None:
        """Select today's log file and clear a stale one.

        Args:
            log_dir: Folder holding the daily files. Defaults to the app data folder.
            now: Clock returning the current aware instant.
            rotate: Delete an existing file for today when the reference-zone
                time is before the daily cutoff. Read-only consumers pass False.
        """
        self._now = now or _utc_now
        directory = Path(log_dir) if log_dir is not None else default_pnl_log_dir()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Could not create P&L log folder %s: %s", directory, exc)
        self.day = self._now().astimezone().date()
        self.path = directory / pnl_log_filename(self.day)
        if rotate:
            self._clear_stale_log()

    def _clear_stale_log(self) -> None:
        reference_now = self._now().astimezone(ZoneInfo(REFERENCE_TIMEZONE))
        if reference_now.time() >= PNL_LOG_RESET_CUTOFF:
            return
        with _FILE_LOCK:
            if not self.path.exists():
                return
            try:
                self.path.unlink()
            except OSError as exc:
                LOGGER.error("Could not clear old P&L log %s: %s", self.path, exc)
                return
        LOGGER.info("Cleared P&L log left before %s: %s", PNL_LOG_RESET_CUTOFF, self.path)

    def append(self, sample: PnlSample) -> None:
        """Append one sample as a JSON line. I/O errors are logged, never raised."""
        line = json.dumps(sample.to_dict())
        with _FILE_LOCK:
            try:
                with open(self.path, "a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
            except OSError as exc:
                LOGGER.error("Error writing to P&L log %s: %s", self.path, exc)

    def load_all(self) -> list[PnlSample]:
        """Return every readable sample in file order.

        The encoding is chosen from the first non-blank line: a leading ``[``
        means a legacy JSON array, anything else one JSON object per line.
        Lines that are not valid UTF-8 or not a valid record are skipped.
        """
        with _FILE_LOCK:
            if not self.path.exists():
                return []
            try:
                raw = self.path.read_bytes()
            except OSError as exc:
                LOGGER.error("Error reading P&L log %s: %s", self.path, exc)
                return []

        raw = raw.removeprefix(codecs.BOM_UTF8)
        lines = raw.splitlines()
        first_line = next((line.strip() for line in lines if line.strip()), b"")
        if first_line.startswith(b"["):
            return _parse_array(raw, self.path)
        return _parse_lines(lines, self.path)

    def load_frame(self) -> pd.DataFrame:
        """Return the replayed log as a frame with ``timestamp`` and float ``pnl``."""
        samples = self.load_all()
        return pd.DataFrame(
            {
                "timestamp": [sample.timestamp for sample in samples],
                "pnl": pd.Series([float(sample.pnl) for sample in samples], dtype=float),
            }
        )


def _parse_array(raw: bytes, path: Path) -> list[PnlSample]:
    # Undecodable bytes become U+FFFD and then fail the record they sit in.
    text = raw.decode("utf-8", errors="replace")
    try:
        payload: Any = json.loads(text, parse_float=Decimal)
    except ValueError as exc:
        LOGGER.warning("Unreadable legacy P&L log %s: %s", path, exc)
        return []
    if not isinstance(payload, list):
        LOGGER.warning("Legacy P&L log %s is not a JSON array", path)
        return []

    samples: list[PnlSample] = []
    for position, item in enumerate(payload):
        try:
            samples.append(PnlSample.from_dict(item))
        except _RECORD_ERRORS as exc:
            LOGGER.warning("Skipped corrupted entry %d in P&L log %s: %s", position, path, exc)
    return samples


def _parse_lines(lines: list[bytes], path: Path) -> list[PnlSample]:
    samples: list[PnlSample] = []
    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            record = json.loads(stripped.decode("utf-8"), parse_float=Decimal)
            samples.append(PnlSample.from_dict(record))
        except _RECORD_ERRORS as exc:
            LOGGER.warning(
                "Skipped corrupted line %d in P&L log %s: %s", line_number, path, exc
            )
    return samples
