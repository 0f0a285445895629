"""
Tests for parameter sweeps and their aggregation.
"""
import os
from datetime import date

import pytest

from tradelab.analysis import compute_confidence_interval, summarize
from tradelab.backtester.engine import run_backtest
from tradelab.config import BacktestConfig, MovingAverageConfig
from tradelab.data.provider import SyntheticProvider
from tradelab.sweep import SweepResults, expand_grid, run_sweep


@pytest.fixture(scope="module")
def history():
    return SyntheticProvider("2023-01-02", "2023-12-29", seed=17, start_price=80.0).load()


@pytest.fixture
def base_config() -> BacktestConfig:
    return BacktestConfig(
        symbol="SWEEP",
        start_date=date(2023, 1, 2),
        end_date=date(2023, 12, 29),
        initial_capital=50000,
        strategy=MovingAverageConfig(short_window=10, long_window=30),
    )


def test_expand_grid():
    combos = expand_grid({"short_window": [5, 10], "long_window": [20, 40]})
    assert combos == [
        {"short_window": 5, "long_window": 20},
        {"short_window": 5, "long_window": 40},
        {"short_window": 10, "long_window": 20},
        {"short_window": 10, "long_window": 40},
    ]
    assert expand_grid({}) == [{}]
    with pytest.raises(ValueError):
        expand_grid({"short_window": "5"})


def test_serial_sweep_matches_single_runs(history, base_config):
    grid = {"short_window": [5, 10], "long_window": [20, 40]}
    sweep = run_sweep(history, base_config, grid, parallel=False)

    assert isinstance(sweep, SweepResults)
    assert len(sweep.run_results) == 4
    assert not sweep.failed_runs

    run = sweep.run_results[1]
    assert run.params == {"short_window": 5, "long_window": 40}
    strategy = MovingAverageConfig(short_window=5, long_window=40)
    expected = run_backtest(base_config.model_copy(update={"strategy": strategy}), history)
    assert run.result == expected


def test_invalid_combination_is_recorded(history, base_config):
    grid = {"short_window": [10, 50], "long_window": [30]}
    sweep = run_sweep(history, base_config, grid, parallel=False)

    assert len(sweep.successful_runs) == 1
    assert len(sweep.failed_runs) == 1
    failed = sweep.failed_runs[0]
    assert failed.params == {"short_window": 50, "long_window": 30}
    assert failed.result is None
    assert "short_window" in failed.error


def test_parallel_sweep_matches_serial(history, base_config):
    grid = {"short_window": [5, 10]}
    serial = run_sweep(history, base_config, grid, parallel=False)
    parallel = run_sweep(history, base_config, grid, max_workers=2, parallel=True)

    assert [r.params for r in parallel.run_results] == [r.params for r in serial.run_results]
    assert [r.result for r in parallel.run_results] == [r.result for r in serial.run_results]


def test_ranked_and_frame(history, base_config):
    sweep = run_sweep(history, base_config, {"short_window": [3, 5, 10, 20]}, parallel=False)

    ranked = sweep.ranked("total_return_percent")
    returns = [r.result.total_return_percent for r in ranked]
    assert returns == sorted(returns, reverse=True)
    with pytest.raises(ValueError):
        sweep.ranked("trades")

    df = sweep.to_frame()
    assert len(df) == 4
    assert {"short_window", "total_return_percent", "sharpe_ratio", "error"} <= set(df.columns)


def test_aggregate(history, base_config):
    sweep = run_sweep(history, base_config, {"short_window": [3, 5, 10, 20]}, parallel=False)
    agg = sweep.aggregate()

    values = [r.result.sharpe_ratio for r in sweep.successful_runs]
    mean, lower, upper = compute_confidence_interval(values)
    assert agg["num_runs"] == 4
    assert agg["successful_runs"] == 4
    assert agg["sharpe_ratio_mean"] == pytest.approx(mean)
    assert agg["sharpe_ratio_ci_lower"] == pytest.approx(lower)
    assert agg["sharpe_ratio_ci_upper"] == pytest.approx(upper)


def test_generate_report(tmp_path, history, base_config):
    grid = {"short_window": [5, 50]}
    sweep = run_sweep(history, base_config, grid, parallel=False)
    sweep.generate_report(str(tmp_path))

    for name in ("sweep_summary.txt", "sweep_results.csv", "sweep_returns.png"):
        assert os.path.exists(tmp_path / name)
    summary = (tmp_path / "sweep_summary.txt").read_text()
    assert "Failed: 1" in summary
    assert "=== Failed Runs ===" in summary


def test_confidence_interval_edge_cases():
    assert compute_confidence_interval([]) == (0.0, 0.0, 0.0)
    assert compute_confidence_interval([2.5]) == (2.5, 2.5, 2.5)
    assert compute_confidence_interval([1.0, 1.0, 1.0]) == (1.0, 1.0, 1.0)

    mean, lower, upper = compute_confidence_interval([1.0, 2.0, 3.0, 4.0])
    assert mean == pytest.approx(2.5)
    assert lower < mean < upper


def test_summarize():
    summary = summarize([1.0, 2.0, 3.0])
    assert summary["n"] == 3
    assert summary["median"] == 2.0
    assert summary["std"] == pytest.approx(1.0)
    assert summarize([]) == {"n": 0}
