"""
Main entry point for running a tradelab backtest.
"""
import logging
import os
import sys

# Ensure the project root is in the python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

import tradelab
from tradelab import metrics

logger = logging.getLogger("tradelab.main")


def main(config_path: str = "config.yaml", report_dir: str = "runs/latest"):
    """
    Main execution function.
    """
    # 1. Load configuration from file
    config = tradelab.load_config(config_path)
    tradelab.setup_logging(config.logging)
    logger.info(
        "Configuration loaded. Strategy: %s, data source: %s",
        config.backtest.strategy.kind, config.data.source,
    )

    try:
        # 2. Run the backtest
        result = tradelab.run_config(config)

        # 3. Risk metrics on the strategy's daily returns
        returns = metrics.calculate_returns([p.portfolio_value for p in result.equity_curve])
        benchmark = metrics.calculate_returns([p.benchmark_value for p in result.equity_curve])
        risk_metrics = None
        if len(returns):
            risk_metrics = tradelab.calculate_risk_metrics(
                returns, benchmark, risk_free_rate=config.backtest.risk_free_rate
            )

        # 4. Generate the final report
        tradelab.generate_report(result, output_dir=report_dir, risk_metrics=risk_metrics)
    except (tradelab.ConfigurationError, tradelab.InsufficientDataError) as e:
        logger.error("Backtest failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:]))
