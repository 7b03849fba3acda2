"""CLI entrypoint for the offline analytics report."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
from pathlib import Path

import pandas as pd

from console_analytics.analytics.gamma import (
    chain_rows_from_frame,
    compute_gex,
    top_gamma_strikes,
)
from console_analytics.analytics.iv_stats import iv_summary
from console_analytics.analytics.pnl_stats import pnl_summary
from console_analytics.config import (
    IV_DATABASE_FILENAME,
    IV_RETENTION_DAYS,
    PNL_LOG_DIRNAME,
    app_data_dir,
)
from console_analytics.data.iv_store import IvSnapshotStore
from console_analytics.data.pnl_log import PnlLogStore
from console_analytics.reports.reporter import write_report
from console_analytics.viz.plots import plot_gex_profile, plot_iv_history, plot_pnl_curve


LOGGER = logging.getLogger(__name__)


def build_iv_rows(store: IvSnapshotStore, window_days: int, plots: bool) -> list[dict]:
    """Summarise every stored instrument's trailing IV history."""
    rows = []
    for key in sorted(store.keys()):
        series = store.history_series(key, window_days)
        row = {"key": key, **iv_summary(series.tolist())}
        row["plot"] = plot_iv_history(series) if plots and len(series) > 1 else None
        rows.append(row)
    return rows


def build_gex_section(chain_path: Path, spot: float, plots: bool) -> dict:
    """Load a long-format chain CSV and summarise its gamma exposure."""
    chain = pd.read_csv(chain_path)
    result = compute_gex(chain_rows_from_frame(chain), spot)
    return {
        "spot": spot,
        "net_gex": result.net_gex,
        "max_gex_strike": result.max_gex_strike,
        "gex_flip_strike": result.gex_flip_strike,
        "top_strikes": top_gamma_strikes(result, n=5),
        "plot": (
            plot_gex_profile(result.per_strike)
            if plots and not result.per_strike.empty
            else None
        ),
    }


def main(argv: list[str] | None = None) -> None:
    """Render the IV / P&L (and optional GEX) report from the stored files."""
    parser = argparse.ArgumentParser(description="Trading console analytics report")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Folder holding historical_iv.json and PerformanceLogs/ (default: app data)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="reports/analytics_report.html",
        help="Output HTML report path",
    )
    parser.add_argument(
        "--window-days",
        type=int,
        default=IV_RETENTION_DAYS,
        help="Trailing IV window in days",
    )
    parser.add_argument(
        "--chain",
        type=str,
        default=None,
        help="Option chain CSV (strike, option_type, gamma, openInterest) for GEX",
    )
    parser.add_argument("--spot", type=float, default=None, help="Underlying price for GEX")
    parser.add_argument("--no-plots", action="store_true", help="Skip embedded charts")
    args = parser.parse_args(argv)

    if args.chain and args.spot is None:
        parser.error("--spot is required with --chain")
    if args.window_days <= 0:
        parser.error("--window-days must be positive")

    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    data_dir = Path(args.data_dir) if args.data_dir else app_data_dir()
    plots = not args.no_plots
    iv_store = IvSnapshotStore(data_dir / IV_DATABASE_FILENAME)
    pnl_store = PnlLogStore(data_dir / PNL_LOG_DIRNAME, rotate=False)
    pnl_frame = pnl_store.load_frame()
    LOGGER.info(
        "Loaded %d IV instruments and %d P&L samples from %s",
        len(iv_store.keys()),
        len(pnl_frame),
        data_dir,
    )

    context = {
        "generated_at": dt.datetime.now().strftime("%Y-%m-%d %H:%M"),
        "window_days": args.window_days,
        "iv_rows": build_iv_rows(iv_store, args.window_days, plots),
        "pnl_day": pnl_store.day.isoformat(),
        "pnl": pnl_summary(pnl_frame),
        "pnl_plot": plot_pnl_curve(pnl_frame) if plots and not pnl_frame.empty else None,
        "gex": build_gex_section(Path(args.chain), args.spot, plots) if args.chain else None,
    }

    output_path = Path(args.output)
    write_report(output_path, context)
    LOGGER.info("Report written to %s", output_path)


if __name__ == "__main__":
    main()
