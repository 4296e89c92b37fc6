"""Configuration module for the flash arbitrage scanner."""

from flasharb.config.constants import (
    FALLBACK_ETH_PRICE_USD,
    FALLBACK_GAS_PRICE_GWEI,
    FLASH_LOAN_FEE_RATE,
    GAS_LIMIT_ESTIMATE,
)
from flasharb.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "FALLBACK_ETH_PRICE_USD",
    "FALLBACK_GAS_PRICE_GWEI",
    "FLASH_LOAN_FEE_RATE",
    "GAS_LIMIT_ESTIMATE",
]
