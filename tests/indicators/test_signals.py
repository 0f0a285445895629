"""
Tests for the composite technical signal.
"""
import pytest

from tradelab.data.provider import SyntheticProvider
from tradelab.errors import InsufficientDataError
from tradelab.indicators.signals import (
    IndicatorSnapshot,
    generate_trading_signal,
    snapshot,
)

NEUTRAL = dict(
    close=100.0, sma=100.0, ema=100.0, rsi=50.0,
    macd=0.0, macd_signal=0.0, macd_histogram=0.0,
    bollinger_upper=105.0, bollinger_middle=100.0, bollinger_lower=95.0,
    stochastic_k=50.0, stochastic_d=50.0, atr=1.0, adx=10.0,
)


def _snapshot(**overrides) -> IndicatorSnapshot:
    return IndicatorSnapshot(**{**NEUTRAL, **overrides})


def test_neutral_snapshot_holds():
    signal = generate_trading_signal(_snapshot())
    assert signal.signal == "HOLD"
    assert signal.strength == 0.0
    assert signal.reasons == []


def test_all_bullish_votes_buy():
    signal = generate_trading_signal(_snapshot(
        rsi=25.0, macd=1.0, macd_signal=0.5, macd_histogram=0.5,
        close=94.0, stochastic_k=10.0, stochastic_d=15.0,
    ))
    assert signal.signal == "BUY"
    assert signal.strength == 1.0
    assert len(signal.reasons) == 4


def test_all_bearish_votes_sell():
    signal = generate_trading_signal(_snapshot(
        rsi=75.0, macd=-1.0, macd_signal=-0.5, macd_histogram=-0.5,
        close=106.0, stochastic_k=90.0, stochastic_d=85.0,
    ))
    assert signal.signal == "SELL"
    assert signal.strength == 1.0


def test_split_votes():
    # Two bullish, one bearish: strength 1/3 clears 0.3
    signal = generate_trading_signal(_snapshot(rsi=25.0, close=94.0, stochastic_k=90.0, stochastic_d=90.0))
    assert signal.signal == "BUY"
    assert signal.strength == pytest.approx(1 / 3)

    # One each: strength 0
    signal = generate_trading_signal(_snapshot(rsi=25.0, close=106.0))
    assert signal.signal == "HOLD"


def test_adx_is_reported_but_does_not_vote():
    signal = generate_trading_signal(_snapshot(adx=40.0))
    assert signal.signal == "HOLD"
    assert signal.reasons == ["Strong trend (ADX: 40.0)"]


def test_macd_needs_matching_histogram():
    signal = generate_trading_signal(_snapshot(macd=1.0, macd_signal=0.5, macd_histogram=-0.1))
    assert signal.reasons == []


def test_snapshot_from_price_history():
    data = SyntheticProvider("2024-01-01", "2024-06-30", seed=1).load()
    snap = snapshot(data)

    assert snap.close == data["close"].iloc[-1]
    assert snap.sma == pytest.approx(data["close"].iloc[-20:].mean())
    assert 0 <= snap.rsi <= 100
    assert snap.bollinger_lower <= snap.bollinger_middle <= snap.bollinger_upper
    assert generate_trading_signal(snap).signal in ("BUY", "SELL", "HOLD")


def test_snapshot_requires_enough_history():
    data = SyntheticProvider("2024-01-01", "2024-01-31", seed=1).load()
    with pytest.raises(InsufficientDataError):
        snapshot(data)
