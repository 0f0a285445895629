"""
Price-history providers.

This module defines the abstract interface for data providers and concrete
implementations for loading daily OHLCV history from CSV and Parquet files or
generating it from a seeded random walk. Every provider returns a DataFrame
that satisfies the engine's input contract: lowercase OHLCV columns, a
strictly increasing DatetimeIndex and strictly positive prices and volumes.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from tradelab.config import DataConfig

logger = logging.getLogger(__name__)

PRICE_COLUMNS: List[str] = ["open", "high", "low", "close"]

DateLike = Union[date, str, pd.Timestamp]


class PriceBar(BaseModel):
    """
    One trading day of OHLCV data.

    Args:
        date (date): The trading day.
        open (float): Opening price.
        high (float): Highest traded price.
        low (float): Lowest traded price.
        close (float): Closing price.
        volume (float): Traded volume.
    """
    model_config = ConfigDict(frozen=True)

    date: date
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: float = Field(..., gt=0)


def bars_to_frame(bars: Sequence[PriceBar]) -> pd.DataFrame:
    """
    Converts a sequence of PriceBar objects into a validated OHLCV DataFrame.

    Raises:
        ValueError: If the bars are not in strictly increasing date order.
    """
    df = pd.DataFrame(
        [bar.model_dump(exclude={"date"}) for bar in bars],
        index=pd.DatetimeIndex([pd.Timestamp(bar.date) for bar in bars], name="date"),
        columns=DataProvider.REQUIRED_COLUMNS,
    )
    return validate_price_frame(df)


def frame_to_bars(df: pd.DataFrame) -> List[PriceBar]:
    """Converts an OHLCV DataFrame back into PriceBar objects."""
    return [
        PriceBar(
            date=ts.date(),
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
        )
        for ts, row in zip(df.index, df.itertuples(index=False))
    ]


def validate_price_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Performs validation on an OHLCV DataFrame.

    - Converts all column names to lowercase.
    - Checks for the presence of required columns (OHLCV).
    - Ensures the DataFrame has a strictly increasing DatetimeIndex.
    - Ensures prices and volumes are strictly positive.

    Args:
        df (pd.DataFrame): The DataFrame to validate.

    Returns:
        pd.DataFrame: The validated DataFrame.

    Raises:
        ValueError: If validation fails.
    """
    df.columns = [str(col).lower() for col in df.columns]

    if not all(col in df.columns for col in DataProvider.REQUIRED_COLUMNS):
        missing = set(DataProvider.REQUIRED_COLUMNS) - set(df.columns)
        raise ValueError(f"DataFrame is missing required columns: {missing}")

    if not isinstance(df.index, pd.DatetimeIndex):
        raise ValueError("DataFrame must have a DatetimeIndex.")

    if not df.index.is_monotonic_increasing or not df.index.is_unique:
        raise ValueError("DataFrame index must be strictly increasing.")

    values = df[DataProvider.REQUIRED_COLUMNS]
    if values.isna().any().any():
        raise ValueError("DataFrame contains missing OHLCV values.")
    if (values <= 0).any().any():
        raise ValueError("Prices and volumes must be strictly positive.")

    return df


def slice_dates(df: pd.DataFrame, start: DateLike, end: DateLike) -> pd.DataFrame:
    """
    Returns the rows of `df` whose date falls in [start, end], inclusive.

    The input frame is never modified.
    """
    return df.loc[pd.Timestamp(start) : pd.Timestamp(end)].copy()


class DataProvider(ABC):
    """
    Abstract base class for all data providers.

    It defines a common interface for loading data and enforces basic validation
    checks to ensure the data is in the expected format.
    """
    REQUIRED_COLUMNS: List[str] = ["open", "high", "low", "close", "volume"]

    @abstractmethod
    def load(self) -> pd.DataFrame:
        """
        Loads the data from the source, performs validation, and returns it.

        This method must be implemented by all concrete subclasses.

        Returns:
            pd.DataFrame: A validated DataFrame containing the time-series data.
        """
        raise NotImplementedError

    def _validate(self, df: pd.DataFrame) -> pd.DataFrame:
        return validate_price_frame(df)


class FileProvider(DataProvider):
    """
    Base class for providers that read from a file.

    Args:
        path (str): The path to the data source file.
    """

    def __init__(self, path: str):
        self._path = path


class ParquetProvider(FileProvider):
    """
    A data provider for loading time-series data from a Parquet file.
    """

    def load(self) -> pd.DataFrame:
        """
        Loads data from the specified Parquet file.

        Returns:
            pd.DataFrame: A validated DataFrame with the loaded data.

        Raises:
            FileNotFoundError: If the file at `self._path` does not exist.
        """
        logger.debug("Loading parquet price history from %s", self._path)
        df = pd.read_parquet(self._path)
        return self._validate(df)


class CSVProvider(FileProvider):
    """
    A data provider for loading time-series data from a CSV file.

    It assumes that the first column of the CSV is the date index.
    """

    def load(self) -> pd.DataFrame:
        """
        Loads data from the specified CSV file.

        Returns:
            pd.DataFrame: A validated DataFrame with the loaded data.

        Raises:
            FileNotFoundError: If the file at `self._path` does not exist.
        """
        logger.debug("Loading csv price history from %s", self._path)
        df = pd.read_csv(self._path, index_col=0, parse_dates=True, date_format="%Y-%m-%d")
        return self._validate(df)


class SyntheticProvider(DataProvider):
    """
    Generates a daily random-walk price history over business days.

    Each close moves by a uniform shock in [-volatility, +volatility) plus a
    small drift. Open, high and low are fixed offsets of the close and prices
    are rounded to cents. All randomness comes from the injected generator, so
    a fixed seed always yields the same history.

    Args:
        start (DateLike): First calendar day of the history.
        end (DateLike): Last calendar day of the history.
        seed (Optional[int]): Seed for a fresh numpy Generator.
        rng (Optional[np.random.Generator]): A generator to draw from instead
            of seeding a new one.
        start_price (Optional[float]): Price before the first shock. Drawn
            uniformly from [100, 300) when omitted.
        volatility (float): Half-width of the daily uniform shock.
        drift (float): Constant daily drift added to every shock.
    """

    def __init__(
        self,
        start: DateLike,
        end: DateLike,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        start_price: Optional[float] = None,
        volatility: float = 0.02,
        drift: float = 0.0003,
    ):
        self._start = pd.Timestamp(start)
        self._end = pd.Timestamp(end)
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._start_price = start_price
        self._volatility = volatility
        self._drift = drift

    def load(self) -> pd.DataFrame:
        dates = pd.bdate_range(self._start, self._end, name="date")
        start_price = self._start_price
        if start_price is None:
            start_price = 100.0 + self._rng.random() * 200.0

        shocks = (self._rng.random(len(dates)) - 0.5) * 2 * self._volatility + self._drift
        prices = start_price * np.cumprod(1.0 + shocks)

        df = pd.DataFrame(
            {
                "open": np.round(prices * 0.999, 2),
                "high": np.round(prices * 1.01, 2),
                "low": np.round(prices * 0.99, 2),
                "close": np.round(prices, 2),
                "volume": self._rng.integers(1_000_000, 6_000_000, len(dates)).astype(float),
            },
            index=dates,
        )
        logger.debug("Generated %d synthetic bars from %s to %s", len(df), self._start.date(), self._end.date())
        return self._validate(df)


def get_provider(config: DataConfig, start: DateLike, end: DateLike) -> DataProvider:
    """
    Builds the provider described by a DataConfig.

    Args:
        config (DataConfig): The data-source configuration.
        start (DateLike): First day needed, used by the synthetic source.
        end (DateLike): Last day needed, used by the synthetic source.

    Returns:
        DataProvider: A provider ready to `load()`.
    """
    if config.source == "csv":
        return CSVProvider(path=config.path)
    if config.source == "parquet":
        return ParquetProvider(path=config.path)
    return SyntheticProvider(start, end, seed=config.seed, start_price=config.start_price)
