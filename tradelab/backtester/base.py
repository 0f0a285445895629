"""
Abstract base class for backtesting engines.
"""
from abc import ABC, abstractmethod

import pandas as pd

from tradelab.backtester.results import BacktestResult
from tradelab.config import StrategyConfig
from tradelab.errors import ConfigurationError, InsufficientDataError
from tradelab.metrics import DEFAULT_RISK_FREE_RATE


class BaseBacktester(ABC):
    """
    Abstract base class for all backtesting engines.

    It defines the common interface for running a backtest against a given
    strategy and dataset. The dataset is treated as read-only and may be
    shared between backtesters.
    """

    def __init__(
        self,
        data: pd.DataFrame,
        initial_capital: float = 100000.0,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    ):
        """
        Initializes the backtester.

        Args:
            data (pd.DataFrame): The OHLCV data to be used for the backtest.
            initial_capital (float): The starting cash for the portfolio.
            risk_free_rate (float): Annual risk-free rate for the Sharpe ratio.

        Raises:
            ConfigurationError: If `initial_capital` is not positive.
            InsufficientDataError: If `data` has no rows.
        """
        if initial_capital <= 0:
            raise ConfigurationError(f"Initial capital must be positive, got {initial_capital}.")
        if data.empty:
            raise InsufficientDataError(1, 0, "price history")
        self._data = data
        self._initial_capital = float(initial_capital)
        self._risk_free_rate = risk_free_rate

    @abstractmethod
    def run(self, strategy: StrategyConfig, symbol: str = "") -> BacktestResult:
        """
        Runs a backtest for the given strategy configuration.

        Args:
            strategy (StrategyConfig): The strategy to be backtested.
            symbol (str): The instrument label recorded in the result.

        Returns:
            BacktestResult: An object containing the results of the backtest.
        """
        raise NotImplementedError
