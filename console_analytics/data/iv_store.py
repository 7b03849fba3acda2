"""Persistent daily IV snapshots with a rolling retention window.

The database is a single JSON document mapping an instrument key to its daily
records. It is read once when the store is constructed, mutated in memory, and
pruned and rewritten in full on every :meth:`IvSnapshotStore.save`. Callers are
expected to serialise calls to the mutating methods.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from console_analytics.config import (
    IV_DATABASE_FILENAME,
    IV_DATABASE_INDENT,
    IV_RETENTION_DAYS,
    app_data_dir,
)
from console_analytics.data.models import DailyIvRecord, to_decimal


LOGGER = logging.getLogger(__name__)


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def default_iv_database_path() -> Path:
    """Return the IV database location under the user's app data folder."""
    return app_data_dir() / IV_DATABASE_FILENAME


class IvSnapshotStore:
    """One IV snapshot per instrument per day, kept for a trailing window.

    Attributes:
        path: Location of the JSON database file.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        now: Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Load the database, starting empty if it is missing or unreadable.

        Args:
            path: Database file. Defaults to the app data folder.
            now: Clock returning the current aware instant (UTC); the local
                calendar day of that instant is "today".
        """
        self.path = Path(path) if path is not None else default_iv_database_path()
        self._now = now or _utc_now
        self._records: dict[str, list[DailyIvRecord]] = self._load()

    def _today(self) -> dt.date:
        return self._now().astimezone().date()

    def _load(self) -> dict[str, list[DailyIvRecord]]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(
                self.path.read_text(encoding="utf-8"), parse_float=Decimal
            )
            return decode_database(payload)
        except Exception as exc:
            LOGGER.warning(
                "Could not load IV database %s, starting empty: %s", self.path, exc
            )
            return {}

    def keys(self) -> list[str]:
        """Return the instrument keys that have records."""
        return [key for key, records in self._records.items() if records]

    def records(self, key: str) -> list[DailyIvRecord]:
        """Return a copy of the stored records for ``key`` ordered by date."""
        return sorted(self._records.get(key, []), key=lambda record: record.date)

    def record_snapshot(self, key: str, value: Any) -> bool:
        """Record today's IV for ``key`` unless one already exists.

        Empty keys and non-positive or non-numeric values are ignored. The
        first snapshot of a day wins; later calls that day are no-ops.

        Returns:
            True when a new record was appended.
        """
        if not key:
            return False
        try:
            iv = to_decimal(value)
        except (TypeError, ValueError, ArithmeticError):
            return False
        if iv <= 0:
            return False

        now = self._now()
        today = now.astimezone().date()
        records = self._records.setdefault(key, [])
        if any(record.date == today for record in records):
            return False

        records.append(
            DailyIvRecord(
                date=today,
                snapshot_iv=iv,
                snapshot_timestamp=now.astimezone(dt.timezone.utc),
            )
        )
        LOGGER.debug("Recorded IV snapshot for %s: %s", key, iv)
        return True

    def history(self, key: str, window_days: int = IV_RETENTION_DAYS) -> list[Decimal]:
        """Return snapshot values for ``key`` dated within the trailing window."""
        cutoff = self._today() - dt.timedelta(days=window_days)
        return [
            record.snapshot_iv
            for record in self.records(key)
            if record.date >= cutoff
        ]

    def history_series(
        self, key: str, window_days: int = IV_RETENTION_DAYS
    ) -> pd.Series:
        """Return the trailing window as a float series indexed by date."""
        cutoff = self._today() - dt.timedelta(days=window_days)
        window = [record for record in self.records(key) if record.date >= cutoff]
        index = pd.DatetimeIndex(
            [pd.Timestamp(record.date) for record in window], name="date"
        )
        return pd.Series(
            [float(record.snapshot_iv) for record in window],
            index=index,
            name=key,
            dtype=float,
        )

    def prune(self) -> int:
        """Drop records older than the retention window; return how many."""
        cutoff = self._today() - dt.timedelta(days=IV_RETENTION_DAYS)
        removed = 0
        for key, records in self._records.items():
            kept = [record for record in records if record.date >= cutoff]
            removed += len(records) - len(kept)
            self._records[key] = kept
        return removed

    def save(self) -> None:
        """Prune expired records, then rewrite the database file.

        Write failures are logged and swallowed; the in-memory state is kept.
        """
        removed = self.prune()
        if removed:
            LOGGER.info("Pruned %d expired IV records", removed)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            text = json.dumps(encode_database(self._records), indent=IV_DATABASE_INDENT)
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.error("Error saving IV database %s: %s", self.path, exc)
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
            return
        LOGGER.info("Saved IV database: %s", self.path)


def encode_database(records: dict[str, list[DailyIvRecord]]) -> dict[str, Any]:
    """Return the JSON document for a key -> records mapping."""
    return {
        "Records": {
            key: [record.to_dict() for record in items]
            for key, items in records.items()
        }
    }


def decode_database(payload: Any) -> dict[str, list[DailyIvRecord]]:
    """Parse the JSON document written by :func:`encode_database`."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("IV database root must be an object.")
    raw = payload.get("Records") or {}
    if not isinstance(raw, dict):
        raise ValueError("IV database 'Records' must be an object.")
    return {
        str(key): [DailyIvRecord.from_dict(item) for item in (items or [])]
        for key, items in raw.items()
    }
