"""
The backtest orchestrator.

`Backtester` runs one strategy through the executor and turns the ledger and
equity curve into a `BacktestResult`, alongside a buy-and-hold benchmark over
the same bars. `run_backtest` and `run_config` are the entry points that
start from a configuration.
"""
import logging
from typing import Any, Mapping, Union

import pandas as pd

from tradelab import metrics
from tradelab.backtester.base import BaseBacktester
from tradelab.backtester.executor import execute_strategy
from tradelab.backtester.results import BacktestResult
from tradelab.config import BacktestConfig, Config, StrategyConfig
from tradelab.data.provider import get_provider, slice_dates
from tradelab.errors import InsufficientDataError
from tradelab.io import parse_backtest_config

logger = logging.getLogger(__name__)


class Backtester(BaseBacktester):
    """
    An event-driven, single-position backtesting engine.
    """

    def run(self, strategy: StrategyConfig, symbol: str = "") -> BacktestResult:
        """
        Runs the strategy over the full history held by this backtester.

        Args:
            strategy (StrategyConfig): The strategy to be backtested.
            symbol (str): The instrument label recorded in the result.

        Returns:
            BacktestResult: Ledger, equity curve and summary statistics.
        """
        execution = execute_strategy(self._data, strategy, self._initial_capital)
        curve = execution.equity_curve
        trades = execution.trades

        values = [point.portfolio_value for point in curve]
        final_value = values[-1]
        total_return = metrics.calculate_total_return(final_value, self._initial_capital)
        total_return_percent = metrics.calculate_total_return_percent(final_value, self._initial_capital)
        round_trips = len(metrics.completed_round_trips(trades))

        result = BacktestResult(
            symbol=symbol,
            strategy=strategy.kind,
            start_date=curve[0].date,
            end_date=curve[-1].date,
            initial_capital=self._initial_capital,
            final_value=final_value,
            total_return=total_return,
            total_return_percent=total_return_percent,
            max_drawdown=metrics.calculate_max_drawdown(values),
            sharpe_ratio=metrics.calculate_sharpe_ratio(
                metrics.calculate_returns(values), self._risk_free_rate
            ),
            win_rate=metrics.calculate_win_rate(trades),
            total_trades=len(trades),
            avg_trade_return=total_return_percent / round_trips if round_trips else 0.0,
            trades=trades,
            equity_curve=curve,
            benchmark_return=metrics.calculate_total_return_percent(
                curve[-1].benchmark_value, self._initial_capital
            ),
        )
        logger.info(
            "%s %s: %d trades, return %.2f%% (benchmark %.2f%%), max drawdown %.2f%%",
            symbol or "-", strategy.kind, result.total_trades, result.total_return_percent,
            result.benchmark_return, result.max_drawdown,
        )
        return result


def run_backtest(
    config: Union[BacktestConfig, Mapping[str, Any]],
    data: pd.DataFrame,
) -> BacktestResult:
    """
    Runs the backtest described by `config` over the matching slice of `data`.

    Args:
        config (Union[BacktestConfig, Mapping]): A validated backtest
            configuration, or a raw mapping that is validated first.
        data (pd.DataFrame): Validated OHLCV history. It is not modified.

    Returns:
        BacktestResult: The result of the run.

    Raises:
        ConfigurationError: If a raw mapping fails validation.
        InsufficientDataError: If no bar falls inside the configured dates or
            the slice is shorter than the strategy's warm-up.
    """
    if not isinstance(config, BacktestConfig):
        config = parse_backtest_config(config)
    window = slice_dates(data, config.start_date, config.end_date)
    if window.empty:
        raise InsufficientDataError(1, 0, f"price history {config.start_date}..{config.end_date}")

    logger.info(
        "Running %s on %s from %s to %s (%d bars)",
        config.strategy.kind, config.symbol, config.start_date, config.end_date, len(window),
    )
    backtester = Backtester(window, config.initial_capital, config.risk_free_rate)
    return backtester.run(config.strategy, symbol=config.symbol)


def run_config(config: Config) -> BacktestResult:
    """
    Loads the configured price history and runs the configured backtest.
    """
    provider = get_provider(config.data, config.backtest.start_date, config.backtest.end_date)
    data = provider.load()
    return run_backtest(config.backtest, data)
