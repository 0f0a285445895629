"""
Static reports for a single backtest run.
"""
import logging
import os
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from tradelab.backtester.results import BacktestResult
from tradelab.io import save_result
from tradelab.risk import RiskMetrics, generate_risk_report

logger = logging.getLogger(__name__)


def generate_report(
    result: BacktestResult,
    output_dir: str,
    risk_metrics: Optional[RiskMetrics] = None,
):
    """
    Generates a collection of static report files (plots, tables) in the
    specified output directory.

    Files written: ``equity_curve.png``, ``trades.csv``, ``summary.txt`` and
    ``result.json``.
    """
    os.makedirs(output_dir, exist_ok=True)

    # 1. Equity vs benchmark plot
    _plot_equity_curve(result, output_dir)

    # 2. Trade ledger
    result.trades_frame().to_csv(os.path.join(output_dir, "trades.csv"), index=False)

    # 3. Summary
    _write_summary(result, output_dir, risk_metrics)

    # 4. Machine-readable result
    save_result(result, os.path.join(output_dir, "result.json"))

    logger.info("Report generated in '%s'", output_dir)


def _plot_equity_curve(result: BacktestResult, output_dir: str):
    """Plots the strategy's equity curve against buy-and-hold."""
    df = result.to_frame()
    if df.empty:
        return

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(df.index, df["portfolio_value"], label=result.strategy)
    ax.plot(df.index, df["benchmark_value"], linestyle='--', label="Buy & Hold")

    buys = [t for t in result.trades if t.side == "BUY"]
    sells = [t for t in result.trades if t.side == "SELL"]
    values = df["portfolio_value"]
    if buys:
        ax.scatter([t.date for t in buys], [values.loc[pd.Timestamp(t.date)] for t in buys], marker='^', color='green', zorder=3)
    if sells:
        ax.scatter([t.date for t in sells], [values.loc[pd.Timestamp(t.date)] for t in sells], marker='v', color='red', zorder=3)

    ax.set_xlabel("Date")
    ax.set_ylabel("Portfolio Value")
    ax.set_title(f"{result.symbol} {result.strategy}: Equity Curve")
    ax.legend()
    ax.grid(True)

    fig.autofmt_xdate()
    plt.savefig(os.path.join(output_dir, "equity_curve.png"))
    plt.close(fig)


def _write_summary(result: BacktestResult, output_dir: str, risk_metrics: Optional[RiskMetrics]):
    with open(os.path.join(output_dir, "summary.txt"), 'w') as f:
        f.write("=== Backtest Summary ===\n\n")
        f.write(f"Symbol:          {result.symbol}\n")
        f.write(f"Strategy:        {result.strategy}\n")
        f.write(f"Period:          {result.start_date} to {result.end_date}\n")
        f.write(f"Initial Capital: {result.initial_capital:,.2f}\n")
        f.write(f"Final Value:     {result.final_value:,.2f}\n")
        f.write(f"Total Return:    {result.total_return_percent:.2f}%\n")
        f.write(f"Benchmark:       {result.benchmark_return:.2f}%\n")
        f.write(f"Max Drawdown:    {result.max_drawdown:.2f}%\n")
        f.write(f"Sharpe Ratio:    {result.sharpe_ratio:.2f}\n")
        f.write(f"Win Rate:        {result.win_rate:.1f}%\n")
        f.write(f"Total Trades:    {result.total_trades}\n")

        if risk_metrics is not None:
            f.write("\n")
            f.write(generate_risk_report(risk_metrics))
            f.write("\n")
