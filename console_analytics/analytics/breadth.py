"""Index participation score against its heavyweight constituents."""

from __future__ import annotations

from typing import Iterable, Mapping

import numpy as np

from console_analytics.config import (
    BREADTH_DIVERGENCE_SCORE,
    BREADTH_MAX_DIFFERENCE,
    BREADTH_MIN_INDEX_MOVE,
    BREADTH_NEUTRAL_SCORE,
    NIFTY_HEAVYWEIGHTS,
)
from console_analytics.data.models import InstrumentSnapshot


def _pct_change(snapshot: InstrumentSnapshot) -> float:
    return (float(snapshot.ltp) - float(snapshot.open)) / float(snapshot.open)


def compute_participation_score(
    index: InstrumentSnapshot,
    constituents: Iterable[InstrumentSnapshot],
    weights: Mapping[str, float] = NIFTY_HEAVYWEIGHTS,
) -> int:
    """Score 0-100 for how closely the index move tracks its heavyweights.

    100 means the index and the weighted heavyweight basket moved by the same
    percentage; the score falls linearly to 0 at a 1% gap. An index move of
    more than 0.1% against the basket direction scores 10. Returns 50 while
    the index has no opening price and 0 when no heavyweight is quoted.
    """
    if float(index.open) == 0:
        return BREADTH_NEUTRAL_SCORE

    table = {str(symbol).upper(): weight for symbol, weight in weights.items()}
    tracked = [
        stock
        for stock in constituents
        if stock.underlying_symbol
        and stock.underlying_symbol.upper() in table
        and float(stock.open) != 0
    ]
    if not tracked:
        return 0

    stock_weights = np.array([table[stock.underlying_symbol.upper()] for stock in tracked])
    stock_changes = np.array([_pct_change(stock) for stock in tracked])
    total_weight = float(stock_weights.sum())
    if total_weight == 0:
        return BREADTH_NEUTRAL_SCORE

    basket_change = float(np.dot(stock_changes, stock_weights)) / total_weight
    index_change = _pct_change(index)

    if (
        np.sign(index_change) != np.sign(basket_change)
        and abs(index_change) > BREADTH_MIN_INDEX_MOVE
    ):
        return BREADTH_DIVERGENCE_SCORE

    difference = min(abs(index_change - basket_change), BREADTH_MAX_DIFFERENCE)
    # Round off float noise before truncating: a 0.30% gap is 70, any gap
    # under one basis point is still 100.
    score = 100 - int(round(difference * 10000, 9))
    return int(np.clip(score, 0, 100))
