"""
Parameter sweeps: many independent backtests over the same price history.
"""
import itertools
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from tradelab.analysis import format_summary, summarize
from tradelab.backtester.engine import run_backtest
from tradelab.backtester.results import BacktestResult
from tradelab.config import BacktestConfig
from tradelab.io import parse_strategy_config

logger = logging.getLogger(__name__)

SUMMARY_METRICS = (
    "total_return_percent",
    "sharpe_ratio",
    "max_drawdown",
    "win_rate",
    "total_trades",
)


@dataclass
class RunResult:
    """Result from a single parameter combination."""
    params: Dict[str, Any]
    result: Optional[BacktestResult]
    error: Optional[str] = None


def expand_grid(grid: Dict[str, Sequence[Any]]) -> List[Dict[str, Any]]:
    """
    Expands a mapping of parameter name to candidate values into every
    combination, in the order the names and values were given.
    """
    if not grid:
        return [{}]
    names = list(grid)
    for name in names:
        if isinstance(grid[name], (str, bytes)) or not isinstance(grid[name], Iterable):
            raise ValueError(f"Grid values for '{name}' must be a list of candidates.")
    return [dict(zip(names, combo)) for combo in itertools.product(*(list(grid[n]) for n in names))]


def _run_one(data: pd.DataFrame, base_config: BacktestConfig, params: Dict[str, Any]) -> RunResult:
    """Runs a single combination. Module-level so worker processes can import it."""
    try:
        strategy = parse_strategy_config({**base_config.strategy.model_dump(), **params})
        config = base_config.model_copy(update={"strategy": strategy})
        return RunResult(params=params, result=run_backtest(config, data))
    except Exception as e:
        logger.warning("Run %s failed: %s", params, e)
        return RunResult(params=params, result=None, error=str(e))


class SweepResults:
    """
    Aggregates results from the runs of a parameter sweep.
    """

    def __init__(self, run_results: List[RunResult], base_config: BacktestConfig):
        self.run_results = run_results
        self.base_config = base_config
        self.successful_runs = [r for r in run_results if r.result is not None]
        self.failed_runs = [r for r in run_results if r.error is not None]

    def ranked(self, metric: str = "sharpe_ratio", descending: bool = True) -> List[RunResult]:
        """
        Returns the successful runs ordered by a BacktestResult field.

        Raises:
            ValueError: If `metric` is not a numeric result field.
        """
        if metric not in BacktestResult.model_fields or metric in ("trades", "equity_curve"):
            raise ValueError(f"Unknown metric '{metric}'.")
        return sorted(
            self.successful_runs,
            key=lambda run: getattr(run.result, metric),
            reverse=descending,
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per run: its parameters, headline metrics and any error."""
        rows = []
        for run in self.run_results:
            row = dict(run.params)
            if run.result is not None:
                row["final_value"] = run.result.final_value
                for metric in SUMMARY_METRICS:
                    row[metric] = getattr(run.result, metric)
                row["benchmark_return"] = run.result.benchmark_return
            row["error"] = run.error
            rows.append(row)
        return pd.DataFrame(rows)

    def aggregate(self) -> Dict[str, Any]:
        """Computes aggregate statistics across all successful runs."""
        result: Dict[str, Any] = {
            "num_runs": len(self.run_results),
            "successful_runs": len(self.successful_runs),
            "failed_runs": len(self.failed_runs),
        }
        for metric in SUMMARY_METRICS:
            values = [float(getattr(run.result, metric)) for run in self.successful_runs]
            summary = summarize(values)
            result[f"{metric}_mean"] = summary.get("mean")
            result[f"{metric}_std"] = summary.get("std")
            result[f"{metric}_ci_lower"] = summary.get("ci_lower")
            result[f"{metric}_ci_upper"] = summary.get("ci_upper")
        return result

    def generate_report(self, output_dir: str):
        """Writes a summary, a per-run CSV and a ranking plot to `output_dir`."""
        os.makedirs(output_dir, exist_ok=True)

        agg = self.aggregate()
        summary_path = os.path.join(output_dir, "sweep_summary.txt")
        with open(summary_path, 'w') as f:
            f.write("=== Sweep Summary ===\n\n")
            f.write(f"Strategy: {self.base_config.strategy.kind}\n")
            f.write(f"Total runs: {agg['num_runs']}\n")
            f.write(f"Successful: {agg['successful_runs']}\n")
            f.write(f"Failed: {agg['failed_runs']}\n\n")

            for metric in SUMMARY_METRICS:
                values = [float(getattr(run.result, metric)) for run in self.successful_runs]
                f.write(format_summary(metric, summarize(values)))
                f.write("\n\n")

            if self.successful_runs:
                best = self.ranked("total_return_percent")[0]
                f.write("=== Best Run (Total Return) ===\n\n")
                f.write(f"Params: {best.params}\n")
                f.write(f"Return: {best.result.total_return_percent:.2f}% "
                        f"(benchmark {best.result.benchmark_return:.2f}%)\n")

            if self.failed_runs:
                f.write("\n=== Failed Runs ===\n\n")
                for run in self.failed_runs:
                    f.write(f"{run.params}: {run.error}\n")

        self.to_frame().to_csv(os.path.join(output_dir, "sweep_results.csv"), index=False)

        if self.successful_runs:
            self._plot_returns(output_dir)

        logger.info("Sweep report generated in '%s'", output_dir)

    def _plot_returns(self, output_dir: str):
        """Plots each run's return against the benchmark."""
        runs = self.successful_runs
        labels = [", ".join(f"{k}={v}" for k, v in run.params.items()) or "base" for run in runs]
        returns = [run.result.total_return_percent for run in runs]

        fig, ax = plt.subplots(figsize=(12, 6))
        x = range(len(runs))
        ax.bar(x, returns, alpha=0.8, label='Strategy')
        ax.axhline(y=runs[0].result.benchmark_return, color='darkorange', linestyle='--', label='Buy & Hold')
        ax.axhline(y=0, color='black', linestyle='-', linewidth=0.5)

        ax.set_xlabel("Parameters")
        ax.set_ylabel("Total Return (%)")
        ax.set_title("Return per Parameter Combination")
        ax.set_xticks(list(x))
        ax.set_xticklabels(labels, rotation=45, ha='right')
        ax.legend()
        ax.grid(True, axis='y')

        plt.tight_layout()
        plt.savefig(os.path.join(output_dir, "sweep_returns.png"))
        plt.close(fig)


def run_sweep(
    data: pd.DataFrame,
    base_config: BacktestConfig,
    grid: Dict[str, Sequence[Any]],
    max_workers: Optional[int] = None,
    parallel: bool = True,
) -> SweepResults:
    """
    Runs one backtest per combination of strategy parameters in `grid`.

    Each combination replaces the matching fields of `base_config.strategy`.
    A combination that fails validation or lacks data is recorded with its
    error and does not affect the others.

    Args:
        data (pd.DataFrame): Validated OHLCV history shared by every run.
        base_config (BacktestConfig): Dates, capital and the strategy whose
            parameters are swept.
        grid (Dict[str, Sequence[Any]]): Candidate values per parameter.
        max_workers (Optional[int]): Worker processes when `parallel`.
        parallel (bool): Run combinations in a process pool.

    Returns:
        SweepResults: One RunResult per combination, in grid order.
    """
    combos = expand_grid(grid)
    logger.info(
        "Sweeping %s over %d combinations (parallel: %s)",
        base_config.strategy.kind, len(combos), parallel,
    )

    if parallel and len(combos) > 1:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(_run_one, data, base_config, params) for params in combos]
            run_results = [future.result() for future in futures]
    else:
        run_results = [_run_one(data, base_config, params) for params in combos]

    return SweepResults(run_results, base_config)
