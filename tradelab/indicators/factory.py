"""
A factory for creating financial indicators.

This module provides simple, consistent wrappers for calculating common
technical indicators. Every function takes pandas Series and returns a Series
(or a DataFrame of Series) aligned to the input index, with NaN marking the
warm-up bars where the indicator is not yet defined.

Inputs shorter than an indicator's minimum window raise InsufficientDataError
instead of returning a neutral value, so a short history is never mistaken
for a real reading.
"""
import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from tradelab.errors import InsufficientDataError


def _require(series: pd.Series, required: int, what: str) -> None:
    if len(series) < required:
        raise InsufficientDataError(required, len(series), what)


def _check_length(length: int) -> None:
    if length < 1:
        raise ValueError(f"Indicator length must be positive, got {length}.")


def _trailing(values: np.ndarray, length: int, func) -> np.ndarray:
    """
    Applies `func` to every trailing window of `length` values.

    Each window is reduced on its own, so the result for a window does not
    depend on the values that came before it. The output is aligned to
    `values`, with NaN before the first full window.
    """
    out = np.full(len(values), np.nan)
    if len(values) >= length:
        out[length - 1:] = func(sliding_window_view(values, length), axis=1)
    return out


def latest(series: pd.Series) -> float:
    """
    Returns the most recent value of an indicator series.

    Raises:
        InsufficientDataError: If the series is empty or its last value is
            still undefined.
    """
    if series.empty or pd.isna(series.iloc[-1]):
        defined = int(series.notna().sum())
        raise InsufficientDataError(len(series) - defined + 1, len(series), str(series.name or "indicator"))
    return float(series.iloc[-1])


def sma(close: pd.Series, length: int = 20) -> pd.Series:
    """
    Calculates the Simple Moving Average (SMA).

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The time period.

    Returns:
        pd.Series: The trailing mean of exactly `length` values at every bar
        from index `length - 1`, NaN before that.
    """
    _check_length(length)
    _require(close, length, f"SMA({length})")
    values = close.to_numpy(dtype=float)
    return pd.Series(_trailing(values, length, np.mean), index=close.index, name=f"sma_{length}")


def ema(close: pd.Series, length: int = 20) -> pd.Series:
    """
    Calculates the Exponential Moving Average (EMA).

    The average is seeded with the SMA of the first `length` values and then
    follows ``ema[i] = price[i] * k + ema[i-1] * (1 - k)`` with
    ``k = 2 / (length + 1)``.

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The time period.

    Returns:
        pd.Series: A Series containing the EMA, NaN before index `length - 1`.
    """
    _check_length(length)
    _require(close, length, f"EMA({length})")
    values = close.to_numpy(dtype=float)
    k = 2.0 / (length + 1)

    out = np.full(len(values), np.nan)
    out[length - 1] = values[:length].mean()
    for i in range(length, len(values)):
        out[i] = values[i] * k + out[i - 1] * (1 - k)
    return pd.Series(out, index=close.index, name=f"ema_{length}")


def rsi(close: pd.Series, length: int = 14) -> pd.Series:
    """
    Calculates the Relative Strength Index (RSI).

    Gains and losses are plain averages over the trailing `length` price
    deltas (not Wilder-smoothed). When the average loss is exactly zero the RSI
    is exactly 100.

    Args:
        close (pd.Series): A Series of closing prices.
        length (int): The number of deltas averaged.

    Returns:
        pd.Series: A Series containing the RSI in [0, 100], NaN for the first
        `length` bars.
    """
    _check_length(length)
    _require(close, length + 1, f"RSI({length})")
    values = close.to_numpy(dtype=float)
    delta = np.diff(values)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = sliding_window_view(gains, length).mean(axis=1)
    avg_loss = sliding_window_view(losses, length).mean(axis=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        values_rsi = 100.0 - 100.0 / (1.0 + rs)
    values_rsi = np.where(avg_loss == 0, 100.0, values_rsi)

    out = np.full(len(values), np.nan)
    out[length:] = values_rsi
    return pd.Series(out, index=close.index, name=f"rsi_{length}")


def macd(
    close: pd.Series,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> pd.DataFrame:
    """
    Calculates the Moving Average Convergence Divergence (MACD).

    The signal line is the EMA of the MACD line itself, computed from the first
    bar where the MACD line is defined.

    Args:
        close (pd.Series): A Series of closing prices.
        fast (int): Period of the fast EMA.
        slow (int): Period of the slow EMA. Must exceed `fast`.
        signal (int): Period of the signal EMA.

    Returns:
        pd.DataFrame: Columns 'macd', 'signal' and 'histogram'.
    """
    if fast >= slow:
        raise ValueError(f"MACD fast period ({fast}) must be less than slow period ({slow}).")
    _check_length(signal)
    _require(close, slow + signal - 1, f"MACD({fast},{slow},{signal})")

    macd_line = ema(close, fast) - ema(close, slow)
    signal_line = ema(macd_line.iloc[slow - 1:], signal).reindex(close.index)
    return pd.DataFrame(
        {
            "macd": macd_line,
            "signal": signal_line,
            "histogram": macd_line - signal_line,
        },
        index=close.index,
    )


def bollinger_bands(close: pd.Series, length: int = 20, num_std: float = 2.0) -> pd.DataFrame:
    """
    Calculates Bollinger Bands around the SMA.

    The band width uses the population standard deviation of the same
    trailing window as the middle band.

    Returns:
        pd.DataFrame: Columns 'upper', 'middle' and 'lower'.
    """
    middle = sma(close, length)
    std = _trailing(close.to_numpy(dtype=float), length, np.std)
    return pd.DataFrame(
        {
            "upper": middle + num_std * std,
            "middle": middle,
            "lower": middle - num_std * std,
        },
        index=close.index,
    )


def stochastic(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    k_length: int = 14,
    d_length: int = 3,
    smooth_d: bool = True,
) -> pd.DataFrame:
    """
    Calculates the Stochastic Oscillator.

    %K is the position of the close within the highest high and lowest low of
    the trailing `k_length` bars, scaled to [0, 100]; a window with no range
    reads 50. %D is the `d_length`-bar SMA of %K. With `smooth_d=False`, %D
    is the raw %K, matching platforms that report an unsmoothed %D.

    Returns:
        pd.DataFrame: Columns 'k' and 'd'.
    """
    _check_length(k_length)
    _check_length(d_length)
    _require(close, k_length, f"Stochastic({k_length})")

    highest = pd.Series(_trailing(high.to_numpy(dtype=float), k_length, np.max), index=close.index)
    lowest = pd.Series(_trailing(low.to_numpy(dtype=float), k_length, np.min), index=close.index)
    span = highest - lowest

    k = ((close - lowest) / span.where(span != 0) * 100).where(span != 0, 50.0)
    k = k.where(highest.notna())

    if smooth_d:
        d = pd.Series(_trailing(k.to_numpy(dtype=float), d_length, np.mean), index=close.index)
    else:
        d = k.copy()
    return pd.DataFrame({"k": k, "d": d}, index=close.index)


def true_range(high: pd.Series, low: pd.Series, close: pd.Series) -> pd.Series:
    """
    Calculates the true range of every bar after the first.

    ``max(high - low, |high - prev_close|, |low - prev_close|)``; the first
    bar has no previous close and is NaN.
    """
    prev_close = close.shift(1)
    ranges = pd.concat(
        [high - low, (high - prev_close).abs(), (low - prev_close).abs()],
        axis=1,
    )
    tr = ranges.max(axis=1)
    tr.iloc[:1] = np.nan
    return tr.rename("true_range")


def atr(high: pd.Series, low: pd.Series, close: pd.Series, length: int = 14) -> pd.Series:
    """
    Calculates the Average True Range as the plain mean of the trailing
    `length` true ranges.
    """
    _check_length(length)
    _require(close, length + 1, f"ATR({length})")
    tr = true_range(high, low, close).to_numpy()
    out = np.full(len(tr), np.nan)
    out[1:] = _trailing(tr[1:], length, np.mean)
    return pd.Series(out, index=close.index, name=f"atr_{length}")


def adx(high: pd.Series, low: pd.Series, close: pd.Series, length: int = 14) -> pd.Series:
    """
    Calculates a simplified Average Directional Index.

    Directional movements and true ranges are averaged over the trailing
    `length` bars, turned into +DI and -DI, and combined as
    ``|+DI - -DI| / (+DI + -DI) * 100``. The result reads 0 when there is no
    directional movement in the window.
    """
    _check_length(length)
    _require(close, length + 1, f"ADX({length})")
    up_move = high.diff().to_numpy()
    down_move = (-low.diff()).to_numpy()
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)[1:]
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)[1:]
    tr = true_range(high, low, close).to_numpy()[1:]

    avg_tr = _trailing(tr, length, np.mean)
    avg_plus = _trailing(plus_dm, length, np.mean)
    avg_minus = _trailing(minus_dm, length, np.mean)

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(avg_tr > 0, avg_plus / avg_tr * 100, 0.0)
        minus_di = np.where(avg_tr > 0, avg_minus / avg_tr * 100, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, np.abs(plus_di - minus_di) / di_sum * 100, 0.0)
    dx = np.where(np.isnan(avg_tr), np.nan, dx)

    out = np.full(len(close), np.nan)
    out[1:] = dx
    return pd.Series(out, index=close.index, name=f"adx_{length}")


def momentum(close: pd.Series, length: int = 20) -> pd.Series:
    """
    Calculates the percentage change of the close over `length` bars.

    Returns:
        pd.Series: ``(close[i] - close[i-length]) / close[i-length] * 100``,
        NaN for the first `length` bars.
    """
    _check_length(length)
    _require(close, length + 1, f"Momentum({length})")
    past = close.shift(length)
    return ((close - past) / past * 100).rename(f"momentum_{length}")
