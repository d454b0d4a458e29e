"""Typed errors raised by the decision engine."""


class TradeCoreError(Exception):
    """Base class for decision engine errors."""


class InvalidParameterError(TradeCoreError, ValueError):
    """Raised for bad indicator or strategy configuration (caller error)."""


class UnknownStrategyError(TradeCoreError, KeyError):
    """Raised when no strategy is registered under the requested name."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        listing = ", ".join(available) or "(none)"
        super().__init__(f"Unknown strategy '{name}'. Available: {listing}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class UpstreamUnavailableError(TradeCoreError):
    """Raised when a required market or account read fails."""


class IndicatorComputationError(TradeCoreError):
    """Raised by the composite calculator when a single indicator fails."""

    def __init__(self, indicator: str, cause: Exception):
        self.indicator = indicator
        self.cause = cause
        super().__init__(f"Indicator '{indicator}' failed: {cause}")
