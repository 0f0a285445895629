"""
Tests for the stand-alone risk analytics.
"""
import numpy as np
import pytest

from tradelab import metrics
from tradelab.errors import ConfigurationError, InsufficientDataError
from tradelab.risk import (
    PortfolioPosition,
    RiskMetrics,
    assess_portfolio_risk,
    calculate_position_size,
    calculate_risk_metrics,
    generate_risk_report,
)


@pytest.fixture
def daily_returns() -> np.ndarray:
    rng = np.random.default_rng(11)
    return rng.normal(0.0005, 0.012, 250)


def test_risk_metrics_match_metric_functions(daily_returns):
    result = calculate_risk_metrics(daily_returns)

    assert isinstance(result, RiskMetrics)
    assert result.sharpe_ratio == pytest.approx(metrics.calculate_sharpe_ratio(daily_returns))
    assert result.sortino_ratio == pytest.approx(metrics.calculate_sortino_ratio(daily_returns))
    assert result.volatility == pytest.approx(daily_returns.std() * np.sqrt(252))
    assert result.max_drawdown == pytest.approx(metrics.max_drawdown_from_returns(daily_returns))
    assert result.beta == 1.0
    assert result.alpha == 0.0


def test_risk_metrics_invariants(daily_returns):
    result = calculate_risk_metrics(daily_returns)

    assert result.volatility >= 0
    assert result.value_at_risk >= 0
    assert result.expected_shortfall >= result.value_at_risk
    assert 0 <= result.max_drawdown <= 100


def test_risk_metrics_with_benchmark(daily_returns):
    benchmark = daily_returns / 2
    result = calculate_risk_metrics(daily_returns, benchmark)

    assert result.beta == pytest.approx(2.0)
    assert result.alpha == pytest.approx(0.0, abs=1e-12)


def test_risk_metrics_benchmark_length_mismatch(daily_returns, caplog):
    with caplog.at_level("WARNING", logger="tradelab.risk"):
        result = calculate_risk_metrics(daily_returns, daily_returns[:-5])

    assert (result.beta, result.alpha) == (1.0, 0.0)
    assert "Benchmark has" in caplog.text


def test_risk_metrics_constant_returns():
    result = calculate_risk_metrics([0.0] * 20)

    assert result.sharpe_ratio == 0.0
    assert result.sortino_ratio == 0.0
    assert result.calmar_ratio == 0.0
    assert result.max_drawdown == 0.0
    assert result.volatility == 0.0


@pytest.mark.parametrize("value", [0.001, -0.01, 0.1])
def test_risk_metrics_constant_nonzero_returns(value):
    result = calculate_risk_metrics([value] * 25)

    assert result.sharpe_ratio == 0.0
    assert result.sortino_ratio == 0.0
    assert result.volatility == 0.0


def test_risk_metrics_empty_returns():
    with pytest.raises(InsufficientDataError):
        calculate_risk_metrics([])


def test_position_size_long():
    sizing = calculate_position_size(100000, entry_price=50.0, stop_loss=48.0)

    assert sizing.recommended_size == 1000
    assert sizing.max_risk == pytest.approx(2000.0)
    assert sizing.stop_loss == 48.0
    assert sizing.take_profit == pytest.approx(54.0)
    assert sizing.risk_reward_ratio == pytest.approx(2.0)


def test_position_size_short_and_confidence():
    sizing = calculate_position_size(100000, entry_price=50.0, stop_loss=52.0, confidence=0.8)

    assert sizing.recommended_size == 800
    assert sizing.take_profit == pytest.approx(46.0)


def test_position_size_floors_shares():
    sizing = calculate_position_size(10000, entry_price=100.0, stop_loss=97.0, risk_fraction=0.01)
    # 100 / 3 = 33.33
    assert sizing.recommended_size == 33


@pytest.mark.parametrize("kwargs", [
    {"account_balance": 10000, "entry_price": 50.0, "stop_loss": 50.0},
    {"account_balance": 0, "entry_price": 50.0, "stop_loss": 48.0},
    {"account_balance": 10000, "entry_price": -1.0, "stop_loss": 48.0},
    {"account_balance": 10000, "entry_price": 50.0, "stop_loss": 48.0, "confidence": 0},
    {"account_balance": 10000, "entry_price": 50.0, "stop_loss": 48.0, "risk_fraction": 1.5},
])
def test_position_size_rejects_invalid_input(kwargs):
    with pytest.raises(ConfigurationError):
        calculate_position_size(**kwargs)


def test_assess_portfolio_risk_concentrated():
    positions = [
        PortfolioPosition(symbol="AAA", quantity=100, current_price=90.0, entry_price=100.0, weight=0.6),
        PortfolioPosition(symbol="BBB", quantity=50, current_price=110.0, entry_price=100.0, weight=0.4),
    ]
    result = assess_portfolio_risk(positions)

    assert result.concentration_risk == pytest.approx(0.6)
    assert result.diversification_score == pytest.approx(0.2)
    # unrealized = -1000 + 500, total value = 9000 + 5500
    assert result.total_risk == pytest.approx(500 / 14500)
    assert len(result.recommendations) == 2
    assert result.recommendations[0].startswith("High concentration risk: 60.0%")


def test_assess_portfolio_risk_diversified():
    positions = [
        PortfolioPosition(symbol=f"S{i}", quantity=10, current_price=100.0, entry_price=100.0, weight=0.1)
        for i in range(10)
    ]
    result = assess_portfolio_risk(positions)

    assert result.concentration_risk == 0.0
    assert result.diversification_score == 1.0
    assert result.total_risk == 0.0
    assert result.recommendations == []


def test_assess_portfolio_risk_requires_positions():
    with pytest.raises(ConfigurationError):
        assess_portfolio_risk([])


def test_generate_risk_report():
    risk = RiskMetrics(
        sharpe_ratio=1.5, max_drawdown=25.0, volatility=0.15, beta=1.1, alpha=0.0002,
        value_at_risk=0.02, expected_shortfall=0.03, calmar_ratio=0.8, sortino_ratio=2.0,
    )
    report = generate_risk_report(risk)

    assert report.startswith("Risk Management Report")
    assert "- Sharpe Ratio: 1.50" in report
    assert "- Volatility: 15.00%" in report
    assert "[OK] Good risk-adjusted returns" in report
    assert "[!!] High drawdown risk" in report
    assert "[OK] Low volatility" in report
