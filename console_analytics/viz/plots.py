"""Plot generation for reports."""

from __future__ import annotations

import base64
from io import BytesIO

import matplotlib
import matplotlib.pyplot as plt
import pandas as pd


matplotlib.use("Agg")


def plot_pnl_curve(frame: pd.DataFrame, title: str = "Intraday P&L") -> str:
    """Return base64 PNG of the P&L samples in log order."""
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.plot(range(len(frame)), frame["pnl"].astype(float), color="#2f6f7e")
    ax.axhline(0.0, color="#999999", linewidth=0.8)
    ax.set_title(title)
    ax.set_xlabel("Sample")
    ax.set_ylabel("P&L")
    return _encode(fig)


def plot_iv_history(series: pd.Series) -> str:
    """Return base64 PNG of a daily IV snapshot history."""
    fig, ax = plt.subplots(figsize=(5, 3))
    ax.plot(series.index, series.to_numpy(dtype=float), marker="o", markersize=3)
    ax.set_title(f"{series.name} IV (daily snapshot)")
    ax.set_ylabel("IV")
    fig.autofmt_xdate()
    return _encode(fig)


def plot_gex_profile(per_strike: pd.DataFrame) -> str:
    """Return base64 PNG of net GEX by strike."""
    fig, ax = plt.subplots(figsize=(6, 3))
    colors = ["#2f7e4a" if value >= 0 else "#a33b3b" for value in per_strike["net_gex"]]
    ax.bar(per_strike["strike"], per_strike["net_gex"], color=colors)
    ax.set_title("Gamma Exposure (per 1% move)")
    ax.set_xlabel("Strike Price")
    return _encode(fig)


def _encode(fig, dpi: int = 120) -> str:
    """Render ``fig`` to a base64 PNG for inlining in the report, then close it."""
    try:
        fig.tight_layout()
        with BytesIO() as buffer:
            fig.savefig(buffer, format="png", dpi=dpi)
            payload = buffer.getvalue()
    finally:
        plt.close(fig)
    return base64.b64encode(payload).decode("ascii")
