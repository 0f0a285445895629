"""
Decision procedures for the built-in strategies.

Each strategy is a `StrategyRule`: how many bars it needs before it can
trade, how to precompute its indicators over the whole history, and a pure
decision function that maps one bar's indicator values and the current
position to BUY, SELL or HOLD. Rules are looked up by strategy kind in
`STRATEGY_REGISTRY`.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple

import numpy as np
import pandas as pd

from tradelab.config import (
    BuyAndHoldConfig,
    MomentumConfig,
    MovingAverageConfig,
    RsiConfig,
)
from tradelab.errors import ConfigurationError
from tradelab.indicators import factory

Indicators = Dict[str, np.ndarray]


class Signal(NamedTuple):
    """A decision for one bar and the reason behind it."""
    action: str
    reason: str = ""


HOLD = Signal("HOLD")


@dataclass(frozen=True)
class StrategyRule:
    """
    The pieces the executor needs to run one strategy kind.

    Args:
        min_bars (Callable): Bars of history needed before the strategy can
            produce its first signal.
        prepare (Callable): Computes the strategy's indicators over the full
            history. Values at bar i only use bars up to and including i.
        decide (Callable): ``decide(config, indicators, i, is_long)`` returns
            the Signal for bar i.
    """
    min_bars: Callable[[Any], int]
    prepare: Callable[[pd.DataFrame, Any], Indicators]
    decide: Callable[[Any, Indicators, int, bool], Signal]


# Registry for strategy rules
STRATEGY_REGISTRY: Dict[str, StrategyRule] = {}


def register_strategy(kind: str, rule: StrategyRule):
    """
    Registers the rule that runs a strategy kind.

    Args:
        kind (str): The strategy kind, as used in the configuration.
        rule (StrategyRule): The rule to register.
    """
    if kind in STRATEGY_REGISTRY:
        raise ValueError(f"Strategy '{kind}' is already registered.")
    STRATEGY_REGISTRY[kind] = rule


def get_strategy(kind: str) -> StrategyRule:
    """
    Retrieves the rule for a strategy kind.

    Raises:
        ConfigurationError: If no rule is registered for `kind`.
    """
    if kind not in STRATEGY_REGISTRY:
        raise ConfigurationError(
            f"Strategy '{kind}' is not registered. Available: {list(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[kind]


def _defined(*values: float) -> bool:
    return not any(np.isnan(v) for v in values)


# buy_and_hold

def _buy_and_hold_prepare(data: pd.DataFrame, config: BuyAndHoldConfig) -> Indicators:
    return {}


def _buy_and_hold_decide(config: BuyAndHoldConfig, indicators: Indicators, i: int, is_long: bool) -> Signal:
    if i == 0 and not is_long:
        return Signal("BUY", "Buy and hold strategy - initial purchase")
    return HOLD


# moving_average

def _moving_average_prepare(data: pd.DataFrame, config: MovingAverageConfig) -> Indicators:
    close = data["close"]
    return {
        "short": factory.sma(close, config.short_window).to_numpy(),
        "long": factory.sma(close, config.long_window).to_numpy(),
    }


def _moving_average_decide(config: MovingAverageConfig, indicators: Indicators, i: int, is_long: bool) -> Signal:
    short, long_ = indicators["short"][i], indicators["long"][i]
    if not _defined(short, long_):
        return HOLD
    if short > long_ and not is_long:
        return Signal("BUY", f"Short MA ({short:.2f}) > Long MA ({long_:.2f})")
    if short < long_ and is_long:
        return Signal("SELL", f"Short MA ({short:.2f}) < Long MA ({long_:.2f})")
    return HOLD


# rsi

def _rsi_prepare(data: pd.DataFrame, config: RsiConfig) -> Indicators:
    return {"rsi": factory.rsi(data["close"], config.rsi_period).to_numpy()}


def _rsi_decide(config: RsiConfig, indicators: Indicators, i: int, is_long: bool) -> Signal:
    value = indicators["rsi"][i]
    if not _defined(value):
        return HOLD
    if value < config.oversold_level and not is_long:
        return Signal("BUY", f"RSI oversold: {value:.1f} < {config.oversold_level:g}")
    if value > config.overbought_level and is_long:
        return Signal("SELL", f"RSI overbought: {value:.1f} > {config.overbought_level:g}")
    return HOLD


# momentum

def _momentum_prepare(data: pd.DataFrame, config: MomentumConfig) -> Indicators:
    return {"momentum": factory.momentum(data["close"], config.momentum_window).to_numpy()}


def _momentum_decide(config: MomentumConfig, indicators: Indicators, i: int, is_long: bool) -> Signal:
    value = indicators["momentum"][i]
    if not _defined(value):
        return HOLD
    if value > config.entry_threshold and not is_long:
        return Signal("BUY", f"Positive momentum: {value:.2f}% over {config.momentum_window} days")
    if value < config.exit_threshold and is_long:
        return Signal("SELL", f"Negative momentum: {value:.2f}% over {config.momentum_window} days")
    return HOLD


# Register the built-in strategies
register_strategy(
    "buy_and_hold",
    StrategyRule(
        min_bars=lambda config: 1,
        prepare=_buy_and_hold_prepare,
        decide=_buy_and_hold_decide,
    ),
)
register_strategy(
    "moving_average",
    StrategyRule(
        min_bars=lambda config: config.long_window,
        prepare=_moving_average_prepare,
        decide=_moving_average_decide,
    ),
)
register_strategy(
    "rsi",
    StrategyRule(
        min_bars=lambda config: config.rsi_period + 1,
        prepare=_rsi_prepare,
        decide=_rsi_decide,
    ),
)
register_strategy(
    "momentum",
    StrategyRule(
        min_bars=lambda config: config.momentum_window + 1,
        prepare=_momentum_prepare,
        decide=_momentum_decide,
    ),
)
