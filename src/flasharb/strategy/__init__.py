"""Strategy module for gap detection and profitability calculation."""

from flasharb.strategy.calculator import ProfitabilityCalculator, estimate_profitability
from flasharb.strategy.opportunity import detect_opportunity, price_table


__all__ = [
    "ProfitabilityCalculator",
    "detect_opportunity",
    "estimate_profitability",
    "price_table",
]
