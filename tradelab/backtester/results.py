"""
Data structures for holding the results of a backtest.
"""
from datetime import date
from typing import Literal, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


class Trade(BaseModel):
    """
    Represents a single fill in the trade ledger.

    Args:
        date (date): The bar on which the trade was filled.
        side (str): 'BUY' or 'SELL'.
        price (float): The fill price (the bar's close).
        shares (int): Whole shares traded.
        value (float): Notional value, ``price * shares``.
        reason (str): Human-readable rationale with the triggering values.
    """
    model_config = ConfigDict(frozen=True)

    date: date
    side: Literal["BUY", "SELL"]
    price: float = Field(..., gt=0)
    shares: int = Field(..., gt=0)
    value: float
    reason: str


class EquityPoint(BaseModel):
    """
    Account valuation at the close of one bar.

    Args:
        date (date): The bar's date.
        portfolio_value (float): ``cash + shares * close`` for the strategy.
        benchmark_value (float): Value of a buy-and-hold of the initial
            capital at the first close.
    """
    model_config = ConfigDict(frozen=True)

    date: date
    portfolio_value: float
    benchmark_value: float


class BacktestResult(BaseModel):
    """
    Holds all the results from a single backtest run of a strategy.

    Percent fields are expressed in percent (12.5 means 12.5%). Values are not
    rounded; rounding is left to whoever displays them.

    Args:
        symbol (str): The instrument tested.
        strategy (str): The strategy kind.
        start_date (date): First bar of the run.
        end_date (date): Last bar of the run.
        initial_capital (float): Starting cash.
        final_value (float): Portfolio value at the last close.
        total_return (float): ``final_value - initial_capital``.
        total_return_percent (float): `total_return` relative to capital.
        max_drawdown (float): Largest peak-to-trough decline of the equity
            curve, in percent.
        sharpe_ratio (float): Annualized Sharpe ratio of the daily returns.
        win_rate (float): Percent of completed round trips that made money.
        total_trades (int): Number of ledger entries (BUYs and SELLs).
        avg_trade_return (float): `total_return_percent` per completed round
            trip.
        trades (Tuple[Trade, ...]): The full trade ledger.
        equity_curve (Tuple[EquityPoint, ...]): One point per bar.
        benchmark_return (float): Buy-and-hold return over the same bars, in
            percent.
    """
    model_config = ConfigDict(frozen=True)

    symbol: str
    strategy: str
    start_date: date
    end_date: date
    initial_capital: float
    final_value: float
    total_return: float
    total_return_percent: float
    max_drawdown: float
    sharpe_ratio: float
    win_rate: float
    total_trades: int
    avg_trade_return: float
    trades: Tuple[Trade, ...] = Field(..., description="The full trade ledger.")
    equity_curve: Tuple[EquityPoint, ...] = Field(..., description="Portfolio value per bar.")
    benchmark_return: float

    def to_frame(self) -> pd.DataFrame:
        """Returns the equity curve as a DataFrame indexed by date."""
        df = pd.DataFrame([point.model_dump() for point in self.equity_curve])
        if df.empty:
            return pd.DataFrame(columns=["portfolio_value", "benchmark_value"])
        df["date"] = pd.to_datetime(df["date"])
        return df.set_index("date")

    def equity_series(self) -> pd.Series:
        """Returns the strategy's equity curve as a Series."""
        return self.to_frame()["portfolio_value"]

    def returns(self) -> pd.Series:
        """Returns the strategy's daily returns; the first bar has none."""
        return self.equity_series().pct_change().dropna()

    def trades_frame(self) -> pd.DataFrame:
        """Returns the trade ledger as a DataFrame."""
        return pd.DataFrame(
            [trade.model_dump() for trade in self.trades],
            columns=list(Trade.model_fields),
        )
