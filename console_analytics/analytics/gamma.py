"""Gamma exposure calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from console_analytics.config import CONTRACT_MULTIPLIER, GEX_SCALE
from console_analytics.data.models import OptionChainRow, OptionSide


GEX_COLUMNS = ["strike", "call_gex", "put_gex", "net_gex"]


def _empty_series() -> pd.DataFrame:
    return pd.DataFrame({column: pd.Series(dtype=float) for column in GEX_COLUMNS})


@dataclass(frozen=True)
class GexResult:
    """Aggregated gamma exposure for one chain snapshot.

    ``max_gex_strike`` and ``gex_flip_strike`` are 0.0 when there is no such
    strike. ``per_strike`` keeps the input row order.
    """

    net_gex: float = 0.0
    max_gex_strike: float = 0.0
    gex_flip_strike: float = 0.0
    per_strike: pd.DataFrame = field(default_factory=_empty_series, compare=False)


def compute_gex(rows: Iterable[OptionChainRow], underlying_price: float) -> GexResult:
    """Compute net GEX, the max-exposure strike and the gamma flip strike.

    Per side: ``gamma * OI * 100 * spot^2 * 0.0001`` (exposure per 1% move).
    Calls count positive and puts negative. Missing sides or greeks count as zero.

    Parameters
    ----------
    rows : iterable of OptionChainRow
        Chain snapshot, one row per strike.
    underlying_price : float
        Current spot of the underlying.

    Returns
    -------
    GexResult
        Zero aggregates and an empty series for an empty chain.
    """
    rows = list(rows)
    if not rows:
        return GexResult()

    scale = CONTRACT_MULTIPLIER * float(underlying_price) ** 2 * GEX_SCALE
    frame = pd.DataFrame(
        {
            "strike": [float(row.strike) for row in rows],
            "call_exposure": [row.call_exposure for row in rows],
            "put_exposure": [row.put_exposure for row in rows],
        }
    )
    frame["call_gex"] = frame["call_exposure"] * scale
    frame["put_gex"] = frame["put_exposure"] * scale
    frame["net_gex"] = frame["call_gex"] - frame["put_gex"]

    net_gex = float(frame["call_gex"].sum() - frame["put_gex"].sum())

    # idxmax keeps the first row on ties; a chain with no exposure has no max strike.
    abs_net = frame["net_gex"].abs()
    max_gex_strike = 0.0
    if abs_net.max() > 0:
        max_gex_strike = float(frame.loc[abs_net.idxmax(), "strike"])

    ordered = frame.sort_values("strike", kind="mergesort")
    call_dominant = ordered[ordered["call_exposure"] > ordered["put_exposure"]]
    gex_flip_strike = 0.0
    if not call_dominant.empty:
        gex_flip_strike = float(call_dominant["strike"].iloc[-1])

    return GexResult(
        net_gex=net_gex,
        max_gex_strike=max_gex_strike,
        gex_flip_strike=gex_flip_strike,
        per_strike=frame[GEX_COLUMNS].reset_index(drop=True),
    )


def top_gamma_strikes(result: GexResult, n: int = 3) -> list[tuple[float, float]]:
    """
    Return top N strikes by absolute net GEX.

    Parameters
    ----------
    result : GexResult
        Output of :func:`compute_gex`.
    n : int
        Number of top strikes to return

    Returns
    -------
    list of tuples
        [(strike, net_gex), ...] sorted by |net_gex| descending
    """
    series = result.per_strike
    if series.empty:
        return []
    ranked = series.reindex(
        series["net_gex"].abs().sort_values(ascending=False, kind="mergesort").index
    )
    return [
        (float(strike), float(net))
        for strike, net in zip(ranked["strike"].head(n), ranked["net_gex"].head(n))
    ]


def chain_rows_from_frame(chain: pd.DataFrame) -> list[OptionChainRow]:
    """Group a long-format chain into one row per strike.

    Expects ``strike``, ``option_type`` ("call"/"put"), ``gamma`` and
    ``openInterest`` columns. Missing values become None.
    """
    required = ["strike", "option_type", "gamma", "openInterest"]
    missing = [col for col in required if col not in chain.columns]
    if missing:
        raise ValueError(f"Missing option fields: {missing}")

    rows: list[OptionChainRow] = []
    for strike, group in chain.groupby("strike", sort=True):
        sides: dict[str, OptionSide] = {}
        for _, leg in group.iterrows():
            option_type = str(leg["option_type"]).lower()
            if option_type not in ("call", "put") or option_type in sides:
                continue
            sides[option_type] = OptionSide(
                gamma=None if pd.isna(leg["gamma"]) else float(leg["gamma"]),
                open_interest=(
                    None if pd.isna(leg["openInterest"]) else float(leg["openInterest"])
                ),
            )
        rows.append(
            OptionChainRow(
                strike=float(strike), call=sides.get("call"), put=sides.get("put")
            )
        )
    return rows
