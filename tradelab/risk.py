"""
Stand-alone risk analytics.

These functions need only a return series or a pair of trade-level prices, so
they can be used for a risk report without running a full backtest.
"""
import logging
import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tradelab import metrics
from tradelab.errors import ConfigurationError, InsufficientDataError

logger = logging.getLogger(__name__)

REWARD_TO_RISK = 2.0
CONCENTRATION_LIMIT = 0.10
TARGET_POSITIONS = 10
ELEVATED_PORTFOLIO_RISK = 0.05


class RiskMetrics(BaseModel):
    """
    Risk and risk-adjusted performance statistics of a return series.

    Args:
        sharpe_ratio (float): Annualized Sharpe ratio.
        max_drawdown (float): Maximum drawdown of the compounded returns, in
            percent.
        volatility (float): Annualized standard deviation, as a fraction.
        beta (float): Sensitivity to the benchmark (1.0 without one).
        alpha (float): Mean excess return over beta times the benchmark mean
            (0.0 without a benchmark).
        value_at_risk (float): 95% historical VaR, as a positive fraction.
        expected_shortfall (float): Mean loss beyond the VaR cutoff, as a
            positive fraction.
        calmar_ratio (float): Annualized mean return over max drawdown.
        sortino_ratio (float): Annualized Sortino ratio.
    """
    model_config = ConfigDict(frozen=True)

    sharpe_ratio: float
    max_drawdown: float
    volatility: float
    beta: float
    alpha: float
    value_at_risk: float
    expected_shortfall: float
    calmar_ratio: float
    sortino_ratio: float


class PositionSizing(BaseModel):
    """
    Recommended position for a single trade.

    Args:
        recommended_size (int): Whole shares to trade.
        max_risk (float): Capital put at risk, ``balance * risk_fraction``.
        stop_loss (float): The stop-loss price supplied.
        take_profit (float): Target price at a 2:1 reward to risk.
        risk_reward_ratio (float): Reward over risk of the target.
    """
    model_config = ConfigDict(frozen=True)

    recommended_size: int
    max_risk: float
    stop_loss: float
    take_profit: float
    risk_reward_ratio: float


class PortfolioPosition(BaseModel):
    """
    One holding in a portfolio to assess.
    """
    symbol: str
    quantity: float = Field(..., ge=0)
    current_price: float = Field(..., gt=0)
    entry_price: float = Field(..., gt=0)
    weight: float = Field(..., ge=0, le=1)


class PortfolioRisk(BaseModel):
    """
    Outcome of a portfolio risk assessment.

    Args:
        total_risk (float): |unrealized PnL| over total market value.
        diversification_score (float): ``min(positions / 10, 1)``.
        concentration_risk (float): The largest weight when above 10%, else 0.
        recommendations (List[str]): Suggested actions.
    """
    model_config = ConfigDict(frozen=True)

    total_risk: float
    diversification_score: float
    concentration_risk: float
    recommendations: List[str]


def calculate_risk_metrics(
    returns: metrics.ArrayLike,
    benchmark_returns: Optional[metrics.ArrayLike] = None,
    risk_free_rate: float = metrics.DEFAULT_RISK_FREE_RATE,
) -> RiskMetrics:
    """
    Calculates the full set of risk metrics for a return series.

    Args:
        returns (ArrayLike): Periodic (daily) returns.
        benchmark_returns (Optional[ArrayLike]): Benchmark returns over the
            same periods. Beta and alpha fall back to 1 and 0 when omitted or
            of a different length.
        risk_free_rate (float): Annual risk-free rate for Sharpe and Sortino.

    Raises:
        InsufficientDataError: If `returns` is empty.
    """
    r = metrics.as_array(returns)
    if len(r) == 0:
        raise InsufficientDataError(1, 0, "risk metrics")

    if benchmark_returns is None:
        beta, alpha = 1.0, 0.0
    else:
        if len(benchmark_returns) != len(r):
            logger.warning(
                "Benchmark has %d returns but the series has %d; using beta=1, alpha=0.",
                len(benchmark_returns), len(r),
            )
        beta, alpha = metrics.calculate_beta_alpha(r, benchmark_returns)

    return RiskMetrics(
        sharpe_ratio=metrics.calculate_sharpe_ratio(r, risk_free_rate),
        max_drawdown=metrics.max_drawdown_from_returns(r),
        volatility=metrics.calculate_volatility(r),
        beta=beta,
        alpha=alpha,
        value_at_risk=metrics.calculate_value_at_risk(r),
        expected_shortfall=metrics.calculate_expected_shortfall(r),
        calmar_ratio=metrics.calculate_calmar_ratio(r),
        sortino_ratio=metrics.calculate_sortino_ratio(r, risk_free_rate),
    )


def calculate_position_size(
    account_balance: float,
    entry_price: float,
    stop_loss: float,
    risk_fraction: float = 0.02,
    confidence: float = 1.0,
) -> PositionSizing:
    """
    Sizes a trade so that hitting the stop loses `risk_fraction` of the
    account.

    ``size = floor(balance * risk_fraction / |entry - stop|)``, then scaled by
    `confidence` and floored again. The take profit sits twice the stop
    distance away on the other side of the entry.

    Raises:
        ConfigurationError: If prices are not positive, the entry equals the
            stop, or the fractions are out of range.
    """
    if account_balance <= 0:
        raise ConfigurationError(f"Account balance must be positive, got {account_balance}.")
    if entry_price <= 0 or stop_loss <= 0:
        raise ConfigurationError("Entry and stop-loss prices must be positive.")
    if not 0 < risk_fraction <= 1:
        raise ConfigurationError(f"Risk fraction must be in (0, 1], got {risk_fraction}.")
    if not 0 < confidence <= 1:
        raise ConfigurationError(f"Confidence must be in (0, 1], got {confidence}.")

    price_risk = abs(entry_price - stop_loss)
    if price_risk == 0:
        raise ConfigurationError("Entry price and stop loss must differ.")

    risk_amount = account_balance * risk_fraction
    base_size = math.floor(risk_amount / price_risk)
    direction = 1 if entry_price > stop_loss else -1
    take_profit = entry_price + direction * REWARD_TO_RISK * price_risk

    return PositionSizing(
        recommended_size=math.floor(base_size * confidence),
        max_risk=risk_amount,
        stop_loss=stop_loss,
        take_profit=take_profit,
        risk_reward_ratio=abs(take_profit - entry_price) / price_risk,
    )


def assess_portfolio_risk(positions: List[PortfolioPosition]) -> PortfolioRisk:
    """
    Scores concentration, diversification and open-PnL risk of a set of
    holdings and suggests actions.

    Raises:
        ConfigurationError: If `positions` is empty.
    """
    if not positions:
        raise ConfigurationError("At least one position is required.")

    recommendations: List[str] = []

    max_weight = max(p.weight for p in positions)
    concentration_risk = max_weight if max_weight > CONCENTRATION_LIMIT else 0.0
    if concentration_risk:
        recommendations.append(
            f"High concentration risk: {concentration_risk * 100:.1f}% in single position"
        )

    diversification_score = min(len(positions) / TARGET_POSITIONS, 1.0)
    if diversification_score < 0.5:
        recommendations.append("Consider adding more positions for better diversification")

    total_value = sum(p.quantity * p.current_price for p in positions)
    unrealized = sum(p.quantity * (p.current_price - p.entry_price) for p in positions)
    total_risk = abs(unrealized) / total_value if total_value > 0 else 0.0
    if total_risk > ELEVATED_PORTFOLIO_RISK:
        recommendations.append("Portfolio risk is elevated - consider reducing position sizes")

    return PortfolioRisk(
        total_risk=total_risk,
        diversification_score=diversification_score,
        concentration_risk=concentration_risk,
        recommendations=recommendations,
    )


def generate_risk_report(risk_metrics: RiskMetrics) -> str:
    """Formats risk metrics as a plain-text report."""
    def verdict(ok: bool, good: str, bad: str) -> str:
        return f"[OK] {good}" if ok else f"[!!] {bad}"

    lines = [
        "Risk Management Report",
        "======================",
        "",
        "Portfolio Performance:",
        f"- Sharpe Ratio: {risk_metrics.sharpe_ratio:.2f}",
        f"- Sortino Ratio: {risk_metrics.sortino_ratio:.2f}",
        f"- Calmar Ratio: {risk_metrics.calmar_ratio:.2f}",
        f"- Maximum Drawdown: {risk_metrics.max_drawdown:.2f}%",
        f"- Volatility: {risk_metrics.volatility * 100:.2f}%",
        f"- Value at Risk (95%): {risk_metrics.value_at_risk * 100:.2f}%",
        f"- Expected Shortfall (95%): {risk_metrics.expected_shortfall * 100:.2f}%",
        f"- Beta: {risk_metrics.beta:.2f}  Alpha: {risk_metrics.alpha:.5f}",
        "",
        "Risk Assessment:",
        verdict(risk_metrics.sharpe_ratio > 1, "Good risk-adjusted returns", "Poor risk-adjusted returns"),
        verdict(risk_metrics.max_drawdown < 10, "Acceptable drawdown", "High drawdown risk"),
        verdict(risk_metrics.volatility < 0.2, "Low volatility", "High volatility"),
    ]
    return "\n".join(lines)
