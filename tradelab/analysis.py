"""
Statistical analysis functions for sweep outcomes.
"""
from typing import Any, Dict, List, Tuple

import numpy as np
from scipy import stats


def compute_confidence_interval(
    values: List[float],
    confidence: float = 0.95
) -> Tuple[float, float, float]:
    """
    Computes the confidence interval for a list of values.

    Args:
        values: List of numeric values.
        confidence: Confidence level (default: 0.95 for 95% CI).

    Returns:
        Tuple of (mean, lower_bound, upper_bound).
    """
    if not values or len(values) < 2:
        mean = float(values[0]) if values else 0.0
        return (mean, mean, mean)

    n = len(values)
    mean = np.mean(values)
    std_err = stats.sem(values)  # Standard error of the mean

    if std_err == 0:
        return (float(mean), float(mean), float(mean))

    # Use t-distribution for small samples
    t_value = stats.t.ppf((1 + confidence) / 2, n - 1)
    margin = t_value * std_err

    return (float(mean), float(mean - margin), float(mean + margin))


def summarize(values: List[float], confidence: float = 0.95) -> Dict[str, Any]:
    """
    Descriptive statistics for one metric across runs.

    Returns:
        Dict with n, mean, std (sample), min, max, median and the bounds of
        the confidence interval. Only n is present when `values` is empty.
    """
    result: Dict[str, Any] = {"n": len(values)}
    if not values:
        return result

    result["mean"] = float(np.mean(values))
    result["std"] = float(np.std(values, ddof=1)) if len(values) > 1 else 0.0
    result["min"] = float(np.min(values))
    result["max"] = float(np.max(values))
    result["median"] = float(np.median(values))

    _, ci_lower, ci_upper = compute_confidence_interval(values, confidence)
    result["ci_lower"] = ci_lower
    result["ci_upper"] = ci_upper
    return result


def format_summary(metric_name: str, summary: Dict[str, Any]) -> str:
    """Formats the output of `summarize` as human-readable text."""
    lines = [f"=== {metric_name} ===", f"N = {summary['n']} runs", ""]

    if summary["n"] == 0:
        lines.append("No data available")
        return "\n".join(lines)

    lines.append(f"  Mean:   {summary['mean']:.4f}")
    lines.append(f"  Std:    {summary['std']:.4f}")
    lines.append(f"  95% CI: [{summary['ci_lower']:.4f}, {summary['ci_upper']:.4f}]")
    lines.append(f"  Range:  [{summary['min']:.4f}, {summary['max']:.4f}]")
    lines.append(f"  Median: {summary['median']:.4f}")
    return "\n".join(lines)
