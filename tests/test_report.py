"""
Tests for result export, reports and logging setup.
"""
import logging
import os
from datetime import date

import pandas as pd
import pytest
from pydantic import ValidationError

from tradelab import metrics
from tradelab.backtester.engine import run_backtest
from tradelab.config import BacktestConfig, LoggingConfig, MovingAverageConfig
from tradelab.data.provider import SyntheticProvider
from tradelab.io import load_result, save_result
from tradelab.log import setup_logging
from tradelab.report import generate_report
from tradelab.risk import calculate_risk_metrics


@pytest.fixture(scope="module")
def result():
    data = SyntheticProvider("2023-01-02", "2023-12-29", seed=4, start_price=60.0).load()
    config = BacktestConfig(
        symbol="RPT",
        start_date=date(2023, 1, 2),
        end_date=date(2023, 12, 29),
        initial_capital=25000,
        strategy=MovingAverageConfig(short_window=5, long_window=20),
    )
    return run_backtest(config, data)


def test_save_and_load_result(tmp_path, result):
    path = tmp_path / "nested" / "result.json"
    save_result(result, str(path))

    assert path.exists()
    assert load_result(str(path)) == result


def test_result_frames(result):
    frame = result.to_frame()
    assert isinstance(frame.index, pd.DatetimeIndex)
    assert list(frame.columns) == ["portfolio_value", "benchmark_value"]
    assert len(result.trades_frame()) == result.total_trades
    returns = result.returns()
    assert len(returns) == len(result.equity_curve) - 1
    assert returns.iloc[-1] == pytest.approx(frame["portfolio_value"].iloc[-1] / frame["portfolio_value"].iloc[-2] - 1)


def test_result_is_immutable(result):
    assert isinstance(result.trades, tuple)
    assert isinstance(result.equity_curve, tuple)
    with pytest.raises(AttributeError):
        result.trades.append(None)
    with pytest.raises(ValidationError):
        result.final_value = 0.0


def test_generate_report(tmp_path, result):
    values = [p.portfolio_value for p in result.equity_curve]
    risk = calculate_risk_metrics(metrics.calculate_returns(values))
    generate_report(result, str(tmp_path), risk_metrics=risk)

    for name in ("equity_curve.png", "trades.csv", "summary.txt", "result.json"):
        assert os.path.exists(tmp_path / name)

    summary = (tmp_path / "summary.txt").read_text()
    assert "Symbol:          RPT" in summary
    assert "Risk Management Report" in summary
    assert len(pd.read_csv(tmp_path / "trades.csv")) == result.total_trades


def test_generate_report_without_risk(tmp_path, result):
    generate_report(result, str(tmp_path))
    assert "Risk Management Report" not in (tmp_path / "summary.txt").read_text()


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(LoggingConfig(level="WARNING", file=str(log_file)))
    try:
        assert logger.name == "tradelab"
        assert len(logger.handlers) == 2
        logging.getLogger("tradelab.test").debug("written to file only")
        for handler in logger.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

        # A second call replaces the handlers instead of stacking them
        setup_logging(LoggingConfig(level="INFO"))
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
