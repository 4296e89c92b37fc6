"""Exception hierarchy for the flash arbitrage scanner."""


class FlashArbError(Exception):
    """Base exception for scanner errors."""


class ProviderError(FlashArbError):
    """Node provider is missing a key or does not serve the requested chain."""


class ProfitabilityCheckError(FlashArbError):
    """Profitability could not be calculated."""

    def __init__(self, message: str = "Calculation failed") -> None:
        super().__init__(message)


class ExecutionError(FlashArbError):
    """Execution was refused before anything was sent."""


class OpportunityNotFoundError(FlashArbError):
    """No opportunity with the requested id is currently listed."""
