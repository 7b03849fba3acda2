"""When to log portfolio P&L, and the background recorder that does it.

The producer calls :meth:`PnlRecorder.notify_pnl_changed` whenever the upstream
net P&L may have moved. The recorder applies the trigger policy and hands the
write to a worker thread without waiting for it.
"""

from __future__ import annotations

import datetime as dt
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Callable, Iterable, Protocol

from console_analytics.data.models import PnlSample, to_decimal
from console_analytics.data.pnl_log import PnlLogStore


LOGGER = logging.getLogger(__name__)


class OpenPosition(Protocol):
    @property
    def has_live_price(self) -> bool:
        """True once the position has received its first live price tick."""


class PortfolioObserver(Protocol):
    @property
    def net_pnl(self) -> Any:
        """Current portfolio net P&L."""

    @property
    def open_positions(self) -> Iterable[OpenPosition]:
        """Positions currently open."""


class MarketHoursOracle(Protocol):
    def is_market_open(self) -> bool:
        """True while the market is in session."""


def should_record_pnl(
    previous_pnl: Decimal | None,
    portfolio: PortfolioObserver,
    market: MarketHoursOracle,
) -> bool:
    """Return True when a P&L sample should be logged.

    All three must hold: the P&L differs from ``previous_pnl``, the market is
    open, and no open position is still waiting for its first price.
    """
    current = to_decimal(portfolio.net_pnl)
    if previous_pnl is not None and current == previous_pnl:
        return False
    if not market.is_market_open():
        return False
    return all(position.has_live_price for position in portfolio.open_positions)


def _local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def _report_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        LOGGER.error("P&L sample write failed: %s", exc)


class PnlRecorder:
    """Fire-and-forget P&L sampler feeding a :class:`PnlLogStore`."""

    def __init__(
        self,
        store: PnlLogStore,
        portfolio: PortfolioObserver,
        market: MarketHoursOracle,
        now: Callable[[], dt.datetime] | None = None,
    ) -> None:
        self._store = store
        self._portfolio = portfolio
        self._market = market
        self._now = now or _local_now
        self._last_pnl: Decimal | None = None
        # One worker keeps appends in submission order.
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pnl-log")

    def notify_pnl_changed(self) -> bool:
        """Apply the trigger policy and queue a write; never blocks on I/O.

        Returns:
            True when a sample was queued.
        """
        try:
            current = to_decimal(self._portfolio.net_pnl)
            record = should_record_pnl(self._last_pnl, self._portfolio, self._market)
        except (TypeError, ValueError, ArithmeticError) as exc:
            LOGGER.warning("Ignoring unreadable portfolio P&L: %s", exc)
            return False
        self._last_pnl = current
        if not record:
            return False

        sample = PnlSample(timestamp=self._now(), pnl=current)
        try:
            future = self._executor.submit(self._store.append, sample)
        except RuntimeError as exc:
            LOGGER.warning("P&L recorder is closed, dropping sample: %s", exc)
            return False
        future.add_done_callback(_report_failure)
        return True

    def close(self) -> None:
        """Wait for queued writes and stop the worker."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "PnlRecorder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
