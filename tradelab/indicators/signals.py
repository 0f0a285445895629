"""
Point-in-time indicator readings and a rule-based composite signal.

`snapshot` reduces a price history to the latest value of every indicator in
the factory; `generate_trading_signal` turns a snapshot into a BUY / SELL /
HOLD vote using fixed thresholds.
"""
from typing import List, Literal

import pandas as pd
from pydantic import BaseModel, ConfigDict

from tradelab.indicators import factory

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
STOCH_OVERSOLD = 20.0
STOCH_OVERBOUGHT = 80.0
ADX_STRONG_TREND = 25.0
MIN_SIGNAL_STRENGTH = 0.3


class IndicatorSnapshot(BaseModel):
    """
    The latest reading of every indicator for one instrument.
    """
    model_config = ConfigDict(frozen=True)

    close: float
    sma: float
    ema: float
    rsi: float
    macd: float
    macd_signal: float
    macd_histogram: float
    bollinger_upper: float
    bollinger_middle: float
    bollinger_lower: float
    stochastic_k: float
    stochastic_d: float
    atr: float
    adx: float


class TradingSignal(BaseModel):
    """
    Result of the composite vote.

    Args:
        signal (str): 'BUY', 'SELL' or 'HOLD'.
        strength (float): |bullish - bearish| / (bullish + bearish), 0 when no
            rule fired.
        reasons (List[str]): One line per rule that fired.
    """
    model_config = ConfigDict(frozen=True)

    signal: Literal["BUY", "SELL", "HOLD"]
    strength: float
    reasons: List[str]


def snapshot(
    data: pd.DataFrame,
    ma_length: int = 20,
    rsi_length: int = 14,
    smooth_stochastic: bool = True,
) -> IndicatorSnapshot:
    """
    Computes the latest value of every indicator over an OHLCV DataFrame.

    The history must cover the longest default window (MACD needs 34 bars).

    Raises:
        InsufficientDataError: If the history is too short for any indicator.
    """
    close, high, low = data["close"], data["high"], data["low"]
    macd = factory.macd(close)
    bands = factory.bollinger_bands(close, ma_length)
    stoch = factory.stochastic(high, low, close, smooth_d=smooth_stochastic)

    return IndicatorSnapshot(
        close=float(close.iloc[-1]),
        sma=factory.latest(factory.sma(close, ma_length)),
        ema=factory.latest(factory.ema(close, ma_length)),
        rsi=factory.latest(factory.rsi(close, rsi_length)),
        macd=factory.latest(macd["macd"]),
        macd_signal=factory.latest(macd["signal"]),
        macd_histogram=factory.latest(macd["histogram"]),
        bollinger_upper=factory.latest(bands["upper"]),
        bollinger_middle=factory.latest(bands["middle"]),
        bollinger_lower=factory.latest(bands["lower"]),
        stochastic_k=factory.latest(stoch["k"]),
        stochastic_d=factory.latest(stoch["d"]),
        atr=factory.latest(factory.atr(high, low, close)),
        adx=factory.latest(factory.adx(high, low, close)),
    )


def generate_trading_signal(indicators: IndicatorSnapshot) -> TradingSignal:
    """
    Votes on a direction from the indicator snapshot.

    Each of RSI, MACD, Bollinger Bands and the Stochastic casts at most one
    bullish or bearish vote. ADX never votes but is reported when it shows a
    strong trend. A BUY or SELL needs a majority and a strength above 0.3.
    """
    reasons: List[str] = []
    bullish = 0
    bearish = 0

    if indicators.rsi < RSI_OVERSOLD:
        bullish += 1
        reasons.append(f"RSI oversold (< {RSI_OVERSOLD:g})")
    elif indicators.rsi > RSI_OVERBOUGHT:
        bearish += 1
        reasons.append(f"RSI overbought (> {RSI_OVERBOUGHT:g})")

    if indicators.macd > indicators.macd_signal and indicators.macd_histogram > 0:
        bullish += 1
        reasons.append("MACD bullish crossover")
    elif indicators.macd < indicators.macd_signal and indicators.macd_histogram < 0:
        bearish += 1
        reasons.append("MACD bearish crossover")

    if indicators.close < indicators.bollinger_lower:
        bullish += 1
        reasons.append("Price below lower Bollinger Band")
    elif indicators.close > indicators.bollinger_upper:
        bearish += 1
        reasons.append("Price above upper Bollinger Band")

    if indicators.stochastic_k < STOCH_OVERSOLD and indicators.stochastic_d < STOCH_OVERSOLD:
        bullish += 1
        reasons.append("Stochastic oversold")
    elif indicators.stochastic_k > STOCH_OVERBOUGHT and indicators.stochastic_d > STOCH_OVERBOUGHT:
        bearish += 1
        reasons.append("Stochastic overbought")

    if indicators.adx > ADX_STRONG_TREND:
        reasons.append(f"Strong trend (ADX: {indicators.adx:.1f})")

    total = bullish + bearish
    strength = abs(bullish - bearish) / total if total > 0 else 0.0

    signal = "HOLD"
    if bullish > bearish and strength > MIN_SIGNAL_STRENGTH:
        signal = "BUY"
    elif bearish > bullish and strength > MIN_SIGNAL_STRENGTH:
        signal = "SELL"

    return TradingSignal(signal=signal, strength=strength, reasons=reasons)
