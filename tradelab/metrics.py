"""
Functions for calculating performance metrics of trading strategies.

Every function is pure and works on an equity curve or a series of periodic
returns ``r_i = (V_i - V_{i-1}) / V_{i-1}``. Returns are presumed daily and
annualized with 252 periods per year. Standard deviations are population
statistics (ddof=0).
"""
import math
from typing import Iterable, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from tradelab.backtester.results import Trade

TRADING_DAYS = 252
DEFAULT_RISK_FREE_RATE = 0.02

ArrayLike = Union[pd.Series, np.ndarray, Sequence[float]]


def as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=float)


def is_constant(values: ArrayLike) -> bool:
    """
    True when the series has no variance.

    Uses the range of the values: the standard deviation of a constant
    float series is not always exactly zero.
    """
    r = as_array(values)
    return len(r) == 0 or np.ptp(r) == 0


def calculate_returns(equity_curve: ArrayLike) -> np.ndarray:
    """
    Converts an equity curve into its periodic returns.

    Args:
        equity_curve (ArrayLike): Account values, oldest first.

    Returns:
        np.ndarray: ``len(equity_curve) - 1`` simple returns.
    """
    values = as_array(equity_curve)
    if len(values) < 2:
        return np.array([], dtype=float)
    return np.diff(values) / values[:-1]


def calculate_total_return(final_value: float, initial_capital: float) -> float:
    """Absolute profit or loss of the run."""
    return float(final_value - initial_capital)


def calculate_total_return_percent(final_value: float, initial_capital: float) -> float:
    """Profit or loss of the run in percent of the initial capital."""
    return float((final_value - initial_capital) / initial_capital * 100)


def total_return_percent_from_returns(returns: ArrayLike) -> float:
    """
    Compounds a return series into a total return in percent.

    Applied to the returns of an equity curve this reproduces
    `calculate_total_return_percent` of that curve.
    """
    r = as_array(returns)
    return float((np.prod(1.0 + r) - 1.0) * 100)


def calculate_max_drawdown(equity_curve: ArrayLike) -> float:
    """
    Calculates the largest peak-to-trough decline of an equity curve.

    The running peak starts at the first value of the curve.

    Args:
        equity_curve (ArrayLike): Account values, oldest first.

    Returns:
        float: The maximum drawdown in percent, in [0, 100]. 0.0 for an empty
        or non-decreasing curve.
    """
    values = as_array(equity_curve)
    if len(values) == 0:
        return 0.0
    peaks = np.maximum.accumulate(values)
    drawdowns = (peaks - values) / peaks
    return float(max(drawdowns.max(), 0.0) * 100)


def max_drawdown_from_returns(returns: ArrayLike) -> float:
    """
    Calculates the maximum drawdown, in percent, of the wealth index built
    from a return series.

    The wealth index starts at 1.0 before the first return, so a loss on the
    very first period counts as a drawdown.
    """
    r = as_array(returns)
    wealth = np.concatenate([[1.0], np.cumprod(1.0 + r)])
    return calculate_max_drawdown(wealth)


def calculate_volatility(returns: ArrayLike, periods_per_year: int = TRADING_DAYS) -> float:
    """Annualized standard deviation of the returns."""
    r = as_array(returns)
    if is_constant(r):
        return 0.0
    return float(r.std() * math.sqrt(periods_per_year))


def calculate_sharpe_ratio(
    returns: ArrayLike,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    periods_per_year: int = TRADING_DAYS,
) -> float:
    """
    Calculates the annualized Sharpe ratio from a series of periodic returns.

    ``(mean(r) * 252 - risk_free_rate) / (std(r) * sqrt(252))``

    Args:
        returns (ArrayLike): A series of periodic returns (e.g., daily).
        risk_free_rate (float): The annualized risk-free rate.
        periods_per_year (int): The number of trading periods in a year.

    Returns:
        float: The annualized Sharpe ratio. Returns 0.0 if there are no
        returns or their standard deviation is zero.
    """
    r = as_array(returns)
    if is_constant(r):
        return 0.0
    std_dev = r.std()
    annual_return = r.mean() * periods_per_year
    return float((annual_return - risk_free_rate) / (std_dev * math.sqrt(periods_per_year)))


def calculate_downside_deviation(returns: ArrayLike, periods_per_year: int = TRADING_DAYS) -> float:
    """
    Annualized root-mean-square of the negative returns.

    Returns 0.0 when no return is negative.
    """
    r = as_array(returns)
    downside = r[r < 0]
    if len(downside) == 0:
        return 0.0
    return float(math.sqrt(np.mean(downside ** 2)) * math.sqrt(periods_per_year))


def calculate_sortino_ratio(
    returns: ArrayLike,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    periods_per_year: int = TRADING_DAYS,
) -> float:
    """
    Calculates the annualized Sortino ratio.

    Same numerator as the Sharpe ratio, divided by the downside deviation.
    Returns 0.0 when the returns have no variance or none is negative.
    """
    r = as_array(returns)
    if is_constant(r):
        return 0.0
    downside_deviation = calculate_downside_deviation(r, periods_per_year)
    if downside_deviation == 0:
        return 0.0
    return float((r.mean() * periods_per_year - risk_free_rate) / downside_deviation)


def calculate_calmar_ratio(returns: ArrayLike, periods_per_year: int = TRADING_DAYS) -> float:
    """
    Annualized mean return divided by the maximum drawdown as a fraction.

    Returns 0.0 when the series never draws down.
    """
    r = as_array(returns)
    if len(r) == 0:
        return 0.0
    max_drawdown = max_drawdown_from_returns(r) / 100
    if max_drawdown == 0:
        return 0.0
    return float(r.mean() * periods_per_year / max_drawdown)


def calculate_beta_alpha(returns: ArrayLike, benchmark_returns: ArrayLike) -> Tuple[float, float]:
    """
    Calculates beta and alpha against a benchmark return series.

    ``beta = cov(r, b) / var(b)`` and ``alpha = mean(r) - beta * mean(b)``.

    Returns:
        Tuple[float, float]: (beta, alpha). Falls back to (1.0, 0.0) when the
        series lengths differ, are empty, or the benchmark has no variance.
    """
    r = as_array(returns)
    b = as_array(benchmark_returns)
    if len(r) == 0 or len(r) != len(b):
        return 1.0, 0.0
    if is_constant(b):
        return 1.0, 0.0
    benchmark_variance = b.var()
    covariance = np.mean((r - r.mean()) * (b - b.mean()))
    beta = covariance / benchmark_variance
    alpha = r.mean() - beta * b.mean()
    return float(beta), float(alpha)


def _tail_index(n: int, confidence: float) -> int:
    return int(math.floor(n * (1 - confidence)))


def calculate_value_at_risk(returns: ArrayLike, confidence: float = 0.95) -> float:
    """
    Historical Value-at-Risk.

    The absolute value of the return at the nearest-rank
    ``floor(n * (1 - confidence))`` position of the sorted series, with no
    interpolation.
    """
    r = np.sort(as_array(returns))
    if len(r) == 0:
        return 0.0
    return float(abs(r[_tail_index(len(r), confidence)]))


def calculate_expected_shortfall(returns: ArrayLike, confidence: float = 0.95) -> float:
    """
    Expected shortfall (conditional VaR).

    The absolute mean of the sorted returns at or below the VaR cutoff.
    """
    r = np.sort(as_array(returns))
    if len(r) == 0:
        return 0.0
    tail = r[: _tail_index(len(r), confidence) + 1]
    return float(abs(tail.mean()))


def completed_round_trips(trades: Iterable[Trade]) -> list:
    """
    Pairs each SELL with the BUY that opened the position.

    Returns:
        list: (buy, sell) tuples in ledger order. A trailing open BUY is not
        included.
    """
    trips = []
    entry = None
    for trade in trades:
        if trade.side == "BUY":
            entry = trade
        elif entry is not None:
            trips.append((entry, trade))
            entry = None
    return trips


def calculate_win_rate(trades: Iterable[Trade]) -> float:
    """
    Percent of completed BUY -> SELL round trips where the sell price beat
    the buy price.

    Returns:
        float: Win rate in [0, 100]; 0.0 when there is no completed round trip.
    """
    trips = completed_round_trips(trades)
    if not trips:
        return 0.0
    wins = sum(1 for buy, sell in trips if sell.price > buy.price)
    return wins / len(trips) * 100
