"""
Tests for the backtest orchestrator.
"""
from datetime import date

import numpy as np
import pandas as pd
import pytest

from tradelab import metrics
from tradelab.backtester.engine import Backtester, run_backtest, run_config
from tradelab.backtester.results import BacktestResult
from tradelab.config import (
    BacktestConfig,
    BuyAndHoldConfig,
    Config,
    DataConfig,
    MovingAverageConfig,
    RsiConfig,
)
from tradelab.data.provider import SyntheticProvider
from tradelab.errors import ConfigurationError, InsufficientDataError


def make_frame(closes) -> pd.DataFrame:
    closes = np.asarray(closes, dtype=float)
    index = pd.bdate_range("2024-01-01", periods=len(closes), name="date")
    return pd.DataFrame(
        {"open": closes, "high": closes, "low": closes, "close": closes, "volume": 1_000_000.0},
        index=index,
    )


@pytest.fixture(scope="module")
def history() -> pd.DataFrame:
    return SyntheticProvider("2023-01-02", "2024-12-31", seed=8, start_price=120.0).load()


def _config(**overrides) -> BacktestConfig:
    raw = {
        "symbol": "TEST",
        "start_date": date(2023, 1, 2),
        "end_date": date(2024, 12, 31),
        "initial_capital": 100000,
        "strategy": MovingAverageConfig(short_window=10, long_window=30),
        **overrides,
    }
    return BacktestConfig(**raw)


def test_constant_buy_and_hold():
    result = Backtester(make_frame([100.0] * 30), initial_capital=10000).run(BuyAndHoldConfig(), symbol="FLAT")

    assert isinstance(result, BacktestResult)
    assert result.symbol == "FLAT"
    assert result.strategy == "buy_and_hold"
    assert result.final_value == 10000
    assert result.total_return == 0
    assert result.total_return_percent == 0
    assert result.max_drawdown == 0
    assert result.sharpe_ratio == 0
    assert result.total_trades == 1
    assert result.win_rate == 0
    assert result.avg_trade_return == 0
    assert result.benchmark_return == 0


def test_moving_average_scenario_summary():
    data = make_frame([10, 11, 12, 13, 20, 19, 18, 17])
    result = Backtester(data, initial_capital=10000).run(MovingAverageConfig(short_window=2, long_window=4))

    assert result.final_value == pytest.approx(13076)
    assert result.total_return == pytest.approx(3076)
    assert result.total_return_percent == pytest.approx(30.76)
    assert result.total_trades == 2
    assert result.win_rate == 100.0
    assert result.avg_trade_return == pytest.approx(30.76)
    assert result.benchmark_return == pytest.approx(70.0)
    assert result.start_date == date(2024, 1, 1)
    assert result.end_date == date(2024, 1, 10)
    # Peak 3 + 769 * 20 = 15383 falls to 3 + 769 * 17 = 13076
    assert result.max_drawdown == pytest.approx((15383 - 13076) / 15383 * 100)


@pytest.mark.parametrize("strategy", [
    BuyAndHoldConfig(),
    MovingAverageConfig(short_window=10, long_window=30),
    RsiConfig(),
])
def test_result_consistency(history, strategy):
    result = Backtester(history, initial_capital=100000).run(strategy)
    values = [p.portfolio_value for p in result.equity_curve]

    assert result.final_value == values[-1]
    assert result.total_return == pytest.approx(result.final_value - 100000)
    assert 0 <= result.max_drawdown <= 100
    assert 0 <= result.win_rate <= 100
    assert result.total_trades == len(result.trades)

    # Rebuilding from the curve's returns reproduces the summary figures
    returns = metrics.calculate_returns([100000] + values)
    assert metrics.total_return_percent_from_returns(returns) == pytest.approx(result.total_return_percent)
    assert metrics.calculate_max_drawdown(values) == pytest.approx(result.max_drawdown)

    expected_benchmark = 100000 * history["close"].iloc[-1] / history["close"].iloc[0]
    assert result.equity_curve[-1].benchmark_value == pytest.approx(expected_benchmark)
    assert result.benchmark_return == pytest.approx((expected_benchmark / 100000 - 1) * 100)


def test_sharpe_uses_configured_risk_free_rate(history):
    strategy = BuyAndHoldConfig()
    default = Backtester(history).run(strategy)
    zero_rf = Backtester(history, risk_free_rate=0.0).run(strategy)

    returns = metrics.calculate_returns([p.portfolio_value for p in zero_rf.equity_curve])
    assert zero_rf.sharpe_ratio == pytest.approx(metrics.calculate_sharpe_ratio(returns, 0.0))
    assert zero_rf.sharpe_ratio > default.sharpe_ratio


def test_backtester_rejects_bad_input():
    with pytest.raises(ConfigurationError):
        Backtester(make_frame([100.0] * 5), initial_capital=0)
    with pytest.raises(InsufficientDataError):
        Backtester(make_frame([]))


def test_run_backtest_slices_dates(history):
    config = _config(start_date=date(2024, 1, 1), end_date=date(2024, 6, 28))
    result = run_backtest(config, history)

    assert result.symbol == "TEST"
    assert result.start_date == date(2024, 1, 1)
    assert result.end_date == date(2024, 6, 28)
    assert len(result.equity_curve) == len(history.loc["2024-01-01":"2024-06-28"])


def test_run_backtest_is_deterministic(history):
    first = run_backtest(_config(), history)
    second = run_backtest(_config(), history)
    assert first == second


def test_run_backtest_validates_raw_mapping(history):
    raw = {
        "symbol": "TEST",
        "start_date": "2023-01-02",
        "end_date": "2024-12-31",
        "initial_capital": 100000,
        "strategy": {"kind": "moving_average", "short_window": 10, "long_window": 30},
    }
    assert run_backtest(raw, history) == run_backtest(_config(), history)


@pytest.mark.parametrize("overrides", [
    {"initial_capital": 0},
    {"strategy": {"kind": "moving_average", "short_window": 5, "long_window": 3}},
])
def test_run_backtest_rejects_invalid_mapping(history, overrides):
    raw = {
        "symbol": "TEST",
        "start_date": "2023-01-02",
        "end_date": "2024-12-31",
        "initial_capital": 100000,
        "strategy": {"kind": "moving_average"},
        **overrides,
    }
    with pytest.raises(ConfigurationError):
        run_backtest(raw, history)


def test_run_backtest_empty_window(history):
    config = _config(start_date=date(2030, 1, 1), end_date=date(2030, 2, 1))
    with pytest.raises(InsufficientDataError):
        run_backtest(config, history)


def test_run_backtest_short_window(history):
    config = _config(start_date=date(2024, 1, 1), end_date=date(2024, 1, 19))
    with pytest.raises(InsufficientDataError):
        run_backtest(config, history)


def test_run_config_with_synthetic_data():
    config = Config(
        data=DataConfig(source="synthetic", seed=3, start_price=50.0),
        backtest=_config(strategy=RsiConfig()),
    )
    result = run_config(config)

    assert result.strategy == "rsi"
    assert result.start_date == date(2023, 1, 2)
    assert result.equity_curve[0].benchmark_value == pytest.approx(100000)
    assert run_config(config) == result
