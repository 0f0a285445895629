"""
Input/Output operations for the tradelab engine.

This module provides utility functions for loading configurations and saving
results. Validation failures are reported as ConfigurationError so callers
see a single error type for every kind of bad configuration.
"""
import os
from typing import Any, Dict

import yaml
from pydantic import TypeAdapter, ValidationError

from tradelab.backtester.results import BacktestResult
from tradelab.config import BacktestConfig, Config, StrategyConfig, normalize_strategy_kind
from tradelab.errors import ConfigurationError

_STRATEGY_ADAPTER = TypeAdapter(StrategyConfig)


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
        for error in exc.errors()
    )


def parse_strategy_config(raw: Dict[str, Any]) -> StrategyConfig:
    """
    Validates a raw mapping into one of the strategy configuration variants.

    Args:
        raw (Dict[str, Any]): Mapping with a 'kind' key and the strategy's
            parameters.

    Returns:
        StrategyConfig: The matching strategy configuration.

    Raises:
        ConfigurationError: If the kind is unknown or a parameter is invalid.
    """
    try:
        return _STRATEGY_ADAPTER.validate_python(normalize_strategy_kind(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid strategy configuration: {_describe(exc)}") from exc


def parse_backtest_config(raw: Dict[str, Any]) -> BacktestConfig:
    """
    Validates a raw mapping into a BacktestConfig.

    Raises:
        ConfigurationError: If any field is missing or invalid.
    """
    try:
        return BacktestConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid backtest configuration: {_describe(exc)}") from exc


def load_config(path: str) -> Config:
    """
    Loads a YAML configuration file and parses it into a strongly-typed
    Config object.

    Args:
        path (str): The path to the YAML configuration file.

    Returns:
        Config: A Pydantic Config object with the validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file does not describe a valid config.
    """
    with open(path, 'r') as f:
        raw_config = yaml.safe_load(f)
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping.")
    try:
        return Config(**raw_config)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in '{path}': {_describe(exc)}") from exc


def save_result(result: BacktestResult, path: str) -> None:
    """
    Writes a backtest result to a JSON file, creating parent directories.
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as f:
        f.write(result.model_dump_json(indent=2))


def load_result(path: str) -> BacktestResult:
    """Reads a backtest result written by `save_result`."""
    with open(path, 'r') as f:
        return BacktestResult.model_validate_json(f.read())
