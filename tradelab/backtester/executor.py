"""
Bar-by-bar strategy execution.

`execute_strategy` folds a strategy's decisions over a price history with a
long-only, all-in or all-out portfolio. It returns the trade ledger and one
equity point per bar and leaves the input DataFrame untouched.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from tradelab.backtester.results import EquityPoint, Trade
from tradelab.backtester.strategies import get_strategy
from tradelab.config import StrategyConfig
from tradelab.errors import ConfigurationError, InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass
class PortfolioState:
    """
    Cash and shares held during one run. Either all cash is deployed or no
    shares are held.
    """
    cash: float
    shares: int = 0

    @property
    def is_long(self) -> bool:
        return self.shares > 0

    def value(self, price: float) -> float:
        return self.cash + self.shares * price


@dataclass
class ExecutionResult:
    """
    The raw output of one run: the ledger, the equity curve and the final
    portfolio.
    """
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)
    portfolio: Optional[PortfolioState] = None


def execute_strategy(
    data: pd.DataFrame,
    strategy: StrategyConfig,
    initial_capital: float,
) -> ExecutionResult:
    """
    Runs a strategy over a price history.

    On a BUY signal while flat, the largest whole number of shares the cash
    can pay for is bought at the close; on a SELL signal while long, the whole
    position is sold at the close. Every bar is then valued at its close,
    together with a benchmark that put the initial capital into the
    instrument at the first close.

    Args:
        data (pd.DataFrame): Validated OHLCV history, oldest first.
        strategy (StrategyConfig): The strategy to run.
        initial_capital (float): Starting cash.

    Returns:
        ExecutionResult: The ledger, the equity curve and the final portfolio.

    Raises:
        ConfigurationError: If the strategy kind is unknown or the capital is
            not positive.
        InsufficientDataError: If the history is shorter than the strategy's
            warm-up.
    """
    if initial_capital <= 0:
        raise ConfigurationError(f"Initial capital must be positive, got {initial_capital}.")

    kind = getattr(strategy, "kind", None)
    rule = get_strategy(kind)

    required = rule.min_bars(strategy)
    if len(data) < required:
        raise InsufficientDataError(required, len(data), f"Strategy '{kind}'")

    indicators = rule.prepare(data, strategy)
    closes = data["close"].to_numpy(dtype=float)
    dates = [ts.date() for ts in data.index]
    first_close = closes[0]

    portfolio = PortfolioState(cash=float(initial_capital))
    result = ExecutionResult(portfolio=portfolio)

    for i, (day, price) in enumerate(zip(dates, closes)):
        signal = rule.decide(strategy, indicators, i, portfolio.is_long)

        if signal.action == "BUY" and not portfolio.is_long:
            shares = math.floor(portfolio.cash / price)
            if shares * price > portfolio.cash:
                shares -= 1
            if shares > 0:
                cost = shares * price
                portfolio.cash -= cost
                portfolio.shares = shares
                result.trades.append(Trade(
                    date=day, side="BUY", price=price, shares=shares, value=cost, reason=signal.reason,
                ))
                logger.debug("%s BUY %d @ %.2f: %s", day, shares, price, signal.reason)

        elif signal.action == "SELL" and portfolio.is_long:
            shares = portfolio.shares
            proceeds = shares * price
            portfolio.cash += proceeds
            portfolio.shares = 0
            result.trades.append(Trade(
                date=day, side="SELL", price=price, shares=shares, value=proceeds, reason=signal.reason,
            ))
            logger.debug("%s SELL %d @ %.2f: %s", day, shares, price, signal.reason)

        result.equity_curve.append(EquityPoint(
            date=day,
            portfolio_value=portfolio.value(price),
            benchmark_value=initial_capital * (price / first_close),
        ))

    return result
