"""Market-hours oracle (reference time zone). Weekday 09:15-15:30, no holiday calendar."""

from __future__ import annotations

import datetime as dt
from zoneinfo import ZoneInfo

from console_analytics.config import MARKET_CLOSE, MARKET_OPEN, REFERENCE_TIMEZONE


_REFERENCE_TZ = ZoneInfo(REFERENCE_TIMEZONE)


def is_market_open(now: dt.datetime | None = None) -> bool:
    """True if ``now`` falls on a weekday between the open and the close."""
    if now is None:
        now = dt.datetime.now(dt.timezone.utc)
    local = now.astimezone(_REFERENCE_TZ)
    if local.weekday() >= 5:
        return False
    return MARKET_OPEN <= local.time() < MARKET_CLOSE


class NseMarketHours:
    """Default market-hours oracle for :class:`~console_analytics.sampling.PnlRecorder`."""

    def is_market_open(self) -> bool:
        return is_market_open()
