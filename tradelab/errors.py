"""
Exception types raised by the tradelab engine.

Both errors subclass ValueError so callers that already guard against bad
input with ``except ValueError`` keep working.
"""


class ConfigurationError(ValueError):
    """
    Raised when a strategy or backtest configuration is invalid.

    Covers unknown strategy kinds, non-positive capital, empty date ranges and
    parameters that violate a strategy's own constraints (for example a short
    window that is not shorter than the long window). It is raised before any
    simulation starts and is never replaced by a default.
    """


class InsufficientDataError(ValueError):
    """
    Raised when a price history is shorter than the window an indicator or
    strategy needs.

    Args:
        required (int): The minimum number of samples needed.
        available (int): The number of samples supplied.
        what (str): A label for the indicator or strategy that needed them.
    """

    def __init__(self, required: int, available: int, what: str = "indicator"):
        self.required = required
        self.available = available
        self.what = what
        super().__init__(
            f"{what} needs at least {required} samples, got {available}."
        )
