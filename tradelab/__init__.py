"""
This __init__.py file exposes the public API of the tradelab engine.
"""

from .config import (
    BacktestConfig,
    BuyAndHoldConfig,
    Config,
    DataConfig,
    LoggingConfig,
    MomentumConfig,
    MovingAverageConfig,
    RsiConfig,
    StrategyConfig,
)
from .errors import ConfigurationError, InsufficientDataError
from .io import load_config, parse_backtest_config, parse_strategy_config, save_result
from .log import setup_logging
from .backtester.engine import Backtester, run_backtest, run_config
from .backtester.results import BacktestResult, EquityPoint, Trade
from .backtester.strategies import register_strategy
from .risk import calculate_position_size, calculate_risk_metrics
from .sweep import run_sweep
from .report import generate_report

__all__ = [
    "BacktestConfig",
    "BuyAndHoldConfig",
    "Config",
    "DataConfig",
    "LoggingConfig",
    "MomentumConfig",
    "MovingAverageConfig",
    "RsiConfig",
    "StrategyConfig",
    "ConfigurationError",
    "InsufficientDataError",
    "load_config",
    "parse_backtest_config",
    "parse_strategy_config",
    "save_result",
    "setup_logging",
    "Backtester",
    "run_backtest",
    "run_config",
    "BacktestResult",
    "EquityPoint",
    "Trade",
    "register_strategy",
    "calculate_position_size",
    "calculate_risk_metrics",
    "run_sweep",
    "generate_report",
]
