"""
Pydantic models for settings that change while the scanner runs.

Seeded from `Settings` at startup and edited through the dashboard.
"""

from pydantic import BaseModel, Field

from flasharb.config.constants import (
    DEFAULT_MAX_GAS_PRICE_GWEI,
    DEFAULT_MAX_SLIPPAGE_PCT,
    DEFAULT_MIN_PROFIT_THRESHOLD_USD,
    DEFAULT_PRIORITY_FEE_GWEI,
    GAS_LIMIT_ESTIMATE,
    GWEI_PER_NATIVE,
    MAX_GAS_LIMIT,
    MAX_GAS_PRICE_GWEI,
    MAX_PRIORITY_FEE_GWEI,
    MIN_GAS_LIMIT,
    MIN_GAS_PRICE_GWEI,
    MIN_PRIORITY_FEE_GWEI,
)


class ExecutionSettings(BaseModel):
    """When and how aggressively opportunities are executed."""

    auto_execute: bool = False
    min_profit_threshold: float = Field(default=DEFAULT_MIN_PROFIT_THRESHOLD_USD, ge=0.0)
    max_slippage: float = Field(default=DEFAULT_MAX_SLIPPAGE_PCT, gt=0.0, le=50.0)

    model_config = {"validate_assignment": True}


class GasSettings(BaseModel):
    """Gas price ceiling, priority fee, gas limit and strategy."""

    max_gas_price: float = Field(
        default=DEFAULT_MAX_GAS_PRICE_GWEI,
        ge=MIN_GAS_PRICE_GWEI,
        le=MAX_GAS_PRICE_GWEI,
    )
    priority_fee: float = Field(
        default=DEFAULT_PRIORITY_FEE_GWEI,
        ge=MIN_PRIORITY_FEE_GWEI,
        le=MAX_PRIORITY_FEE_GWEI,
    )
    gas_limit: int = Field(default=GAS_LIMIT_ESTIMATE, ge=MIN_GAS_LIMIT, le=MAX_GAS_LIMIT)
    auto_adjust: bool = True
    use_flashbots: bool = False

    model_config = {"validate_assignment": True}

    def effective_gas_price(self, reading: float | None, fallback: float) -> float:
        """
        Gas price to estimate with, in gwei.

        With auto-adjust the live reading (or fallback) is used, capped at
        the ceiling. Without it the ceiling itself is used.
        """
        if not self.auto_adjust:
            return self.max_gas_price
        current = reading if reading is not None else fallback
        return min(current, self.max_gas_price)

    def estimated_max_fee(self, gas_price_gwei: float) -> float:
        """Worst-case transaction fee in native units, priority fee included."""
        return (gas_price_gwei + self.priority_fee) * self.gas_limit / GWEI_PER_NATIVE


class ExecutionSettingsUpdate(BaseModel):
    """Partial update of ExecutionSettings."""

    auto_execute: bool | None = None
    min_profit_threshold: float | None = Field(default=None, ge=0.0)
    max_slippage: float | None = Field(default=None, gt=0.0, le=50.0)


class GasSettingsUpdate(BaseModel):
    """Partial update of GasSettings."""

    max_gas_price: float | None = Field(default=None, ge=MIN_GAS_PRICE_GWEI, le=MAX_GAS_PRICE_GWEI)
    priority_fee: float | None = Field(
        default=None,
        ge=MIN_PRIORITY_FEE_GWEI,
        le=MAX_PRIORITY_FEE_GWEI,
    )
    gas_limit: int | None = Field(default=None, ge=MIN_GAS_LIMIT, le=MAX_GAS_LIMIT)
    auto_adjust: bool | None = None
    use_flashbots: bool | None = None
