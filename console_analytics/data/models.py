"""Record types shared by the snapshot stores and the analytics."""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """Convert a JSON string or number to an exact, finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Not a decimal value: {value!r}")
    if isinstance(value, float):
        # Shortest round-trip text, so 0.1 stays 0.1 rather than its binary expansion.
        value = str(value)
    result = Decimal(value) if isinstance(value, (str, Decimal)) else Decimal(int(value))
    if not result.is_finite():
        raise ValueError(f"Non-finite decimal value: {value!r}")
    return result


def decimal_to_json(value: Decimal) -> float | str:
    """Return a JSON number for ``value`` when a float carries it exactly.

    Values with more significant digits than a double holds are written as
    strings, which :func:`to_decimal` reads back unchanged.
    """
    as_float = float(value)
    if math.isfinite(as_float) and Decimal(str(as_float)) == value:
        return as_float
    return str(value)


def parse_date(value: Any) -> dt.date:
    """Parse ``YYYY-MM-DD`` or a full ISO timestamp to a calendar date."""
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO date string, got {value!r}")
    return dt.datetime.fromisoformat(value).date()


def parse_instant(value: Any, assume_utc: bool = False) -> dt.datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``."""
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO timestamp string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    stamp = dt.datetime.fromisoformat(text)
    if assume_utc and stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=dt.timezone.utc)
    return stamp


@dataclass(frozen=True)
class DailyIvRecord:
    """First IV snapshot captured for an instrument on a calendar day."""

    date: dt.date
    snapshot_iv: Decimal
    snapshot_timestamp: dt.datetime  # UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "Date": self.date.isoformat(),
            "SnapshotIv": decimal_to_json(self.snapshot_iv),
            "SnapshotTimestamp": self.snapshot_timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DailyIvRecord":
        return cls(
            date=parse_date(payload["Date"]),
            snapshot_iv=to_decimal(payload["SnapshotIv"]),
            snapshot_timestamp=parse_instant(
                payload["SnapshotTimestamp"], assume_utc=True
            ),
        )


@dataclass(frozen=True)
class PnlSample:
    """Portfolio net P&L observed at a local instant."""

    timestamp: dt.datetime
    pnl: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"Timestamp": self.timestamp.isoformat(), "Pnl": decimal_to_json(self.pnl)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PnlSample":
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a JSON object, got {type(payload).__name__}")
        return cls(
            timestamp=parse_instant(payload["Timestamp"]),
            pnl=to_decimal(payload["Pnl"]),
        )


@dataclass(frozen=True)
class OptionSide:
    """Greeks for one side (call or put) of a strike; either field may be missing."""

    gamma: float | None = None
    open_interest: float | None = None

    def exposure(self) -> float:
        """Return gamma * open interest, treating missing values as zero."""
        return float(self.gamma or 0.0) * float(self.open_interest or 0.0)


@dataclass(frozen=True)
class OptionChainRow:
    """One strike of an option chain snapshot."""

    strike: float
    call: OptionSide | None = None
    put: OptionSide | None = None

    @property
    def call_exposure(self) -> float:
        return self.call.exposure() if self.call is not None else 0.0

    @property
    def put_exposure(self) -> float:
        return self.put.exposure() if self.put is not None else 0.0


@dataclass(frozen=True)
class InstrumentSnapshot:
    """Live quote for an index or stock."""

    open: float
    ltp: float
    underlying_symbol: str | None = None
