"""
Configuration models for the tradelab engine.

This module defines the Pydantic models for validating and managing a
backtest configuration, which is typically loaded from a YAML file. Strategy
configurations form a discriminated union keyed by ``kind`` so that every
strategy carries only the parameters it needs and is checked when it is built.
"""
from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Wire names used by older callers for the same strategy kinds.
STRATEGY_ALIASES = {
    "rsi_strategy": "rsi",
    "ma_crossover": "moving_average",
}


class BuyAndHoldConfig(BaseModel):
    """
    Buys on the first bar and holds until the end of the run.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["buy_and_hold"] = "buy_and_hold"


class MovingAverageConfig(BaseModel):
    """
    Long while the short simple moving average is above the long one.

    Args:
        short_window (int): Length of the fast SMA.
        long_window (int): Length of the slow SMA. Must be greater than
            `short_window`.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["moving_average"] = "moving_average"
    short_window: int = Field(10, gt=0, description="Length of the fast SMA.")
    long_window: int = Field(30, gt=1, description="Length of the slow SMA.")

    @model_validator(mode="after")
    def _check_windows(self) -> "MovingAverageConfig":
        if self.short_window >= self.long_window:
            raise ValueError(
                f"short_window ({self.short_window}) must be less than "
                f"long_window ({self.long_window})"
            )
        return self


class RsiConfig(BaseModel):
    """
    Buys when RSI drops below the oversold level and sells when it rises above
    the overbought level.

    Args:
        rsi_period (int): Number of price deltas averaged by the RSI.
        oversold_level (float): Entry threshold, in (0, 100).
        overbought_level (float): Exit threshold, in (0, 100), above
            `oversold_level`.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["rsi"] = "rsi"
    rsi_period: int = Field(14, gt=0)
    oversold_level: float = Field(30.0, gt=0, lt=100)
    overbought_level: float = Field(70.0, gt=0, lt=100)

    @model_validator(mode="after")
    def _check_levels(self) -> "RsiConfig":
        if self.oversold_level >= self.overbought_level:
            raise ValueError(
                f"oversold_level ({self.oversold_level}) must be below "
                f"overbought_level ({self.overbought_level})"
            )
        return self


class MomentumConfig(BaseModel):
    """
    Rate-of-change strategy over a fixed lookback.

    Args:
        momentum_window (int): Lookback in bars.
        entry_threshold (float): Momentum in percent above which to buy.
        exit_threshold (float): Momentum in percent below which to sell.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["momentum"] = "momentum"
    momentum_window: int = Field(20, gt=0)
    entry_threshold: float = 5.0
    exit_threshold: float = -3.0

    @model_validator(mode="after")
    def _check_thresholds(self) -> "MomentumConfig":
        if self.exit_threshold >= self.entry_threshold:
            raise ValueError(
                f"exit_threshold ({self.exit_threshold}) must be below "
                f"entry_threshold ({self.entry_threshold})"
            )
        return self


StrategyConfig = Annotated[
    Union[BuyAndHoldConfig, MovingAverageConfig, RsiConfig, MomentumConfig],
    Field(discriminator="kind"),
]


def normalize_strategy_kind(raw: Any) -> Any:
    """Rewrites aliased strategy kinds in a raw mapping to their canonical name."""
    if isinstance(raw, dict) and raw.get("kind") in STRATEGY_ALIASES:
        raw = {**raw, "kind": STRATEGY_ALIASES[raw["kind"]]}
    return raw


class BacktestConfig(BaseModel):
    """
    Configuration for a single backtest run.

    Args:
        symbol (str): The instrument being tested (informational).
        start_date (date): First date of the simulated window, inclusive.
        end_date (date): Last date of the simulated window, inclusive.
        initial_capital (float): Starting cash, strictly positive.
        strategy (StrategyConfig): The strategy variant and its parameters.
        risk_free_rate (float): Annual risk-free rate used by the Sharpe ratio.
    """
    model_config = ConfigDict(frozen=True)

    symbol: str = Field("SYNTH", description="Instrument identifier.")
    start_date: date
    end_date: date
    initial_capital: float = Field(..., gt=0, description="Starting cash.")
    strategy: StrategyConfig
    risk_free_rate: float = Field(0.02, ge=0, lt=1)

    @model_validator(mode="before")
    @classmethod
    def _resolve_aliases(cls, data: Any) -> Any:
        if isinstance(data, dict) and "strategy" in data:
            data = {**data, "strategy": normalize_strategy_kind(data["strategy"])}
        return data

    @model_validator(mode="after")
    def _check_dates(self) -> "BacktestConfig":
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date ({self.start_date}) is after end_date ({self.end_date})"
            )
        return self


class DataConfig(BaseModel):
    """
    Configuration for the price-history source.

    Args:
        source (str): One of 'csv', 'parquet' or 'synthetic'.
        path (Optional[str]): File path for the csv and parquet sources.
        seed (Optional[int]): Seed for the synthetic source.
        start_price (Optional[float]): First price of the synthetic walk. A
            seeded random price in [100, 300) is used when omitted.
    """
    source: Literal["csv", "parquet", "synthetic"] = "synthetic"
    path: Optional[str] = Field(None, description="Path to the dataset file.")
    seed: Optional[int] = None
    start_price: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _check_path(self) -> "DataConfig":
        if self.source != "synthetic" and not self.path:
            raise ValueError(f"A path is required for the '{self.source}' source.")
        return self


class LoggingConfig(BaseModel):
    """
    Configuration for log output.

    Args:
        level (str): Console log level name.
        file (Optional[str]): Optional log file path, written at DEBUG.
    """
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """
    Top-level configuration object for a tradelab run.

    Args:
        data (DataConfig): Price-history configuration.
        backtest (BacktestConfig): The backtest to run.
        logging (LoggingConfig): Log output configuration.
    """
    data: DataConfig = Field(default_factory=DataConfig)
    backtest: BacktestConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
