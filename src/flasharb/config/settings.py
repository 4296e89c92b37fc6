"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation. The scanner runs in
simulation mode out of the box, so no field is required.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flasharb.config.constants import (
    AAVE_V2_LENDING_POOL,
    DEFAULT_MAX_GAS_PRICE_GWEI,
    DEFAULT_MAX_SLIPPAGE_PCT,
    DEFAULT_MIN_PROFIT_THRESHOLD_USD,
    DEFAULT_SCAN_INTERVAL_SECONDS,
    DEFAULT_TRADE_SIZE_USD,
    FALLBACK_ETH_PRICE_USD,
    FALLBACK_GAS_PRICE_GWEI,
    FLASH_LOAN_FEE_RATE,
    GAS_LIMIT_ESTIMATE,
    MIN_PRICE_GAP_PCT,
    SIMULATED_EXECUTION_DELAY_SECONDS,
    SUPPORTED_CHAINS,
    ZERO_ADDRESS,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Provider API keys use SecretStr for safe handling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Node Provider
    # =========================================================================

    node_provider: Literal["infura", "alchemy"] = Field(
        default="infura",
        description="RPC provider used for live DEX quotes and gas prices",
    )
    infura_api_key: SecretStr | None = Field(default=None)
    alchemy_api_key: SecretStr | None = Field(default=None)

    provider_store_path: Path = Field(
        default=Path.home() / ".flasharb" / "providers.json",
        description="Where provider API keys entered at runtime are persisted",
    )

    chain: str = Field(
        default="ethereum",
        description="Chain key, one of SUPPORTED_CHAINS",
    )

    # =========================================================================
    # Profitability Model
    # =========================================================================

    flash_loan_fee_rate: float = Field(
        default=FLASH_LOAN_FEE_RATE,
        ge=0.0,
        le=0.01,
        description="Flash loan premium (e.g., 0.0009 = 0.09%)",
    )

    gas_limit_estimate: int = Field(
        default=GAS_LIMIT_ESTIMATE,
        ge=21_000,
        le=30_000_000,
        description="Gas units budgeted for one flash loan round trip",
    )

    fallback_eth_price_usd: float = Field(
        default=FALLBACK_ETH_PRICE_USD,
        gt=0.0,
        description="ETH price used when the oracle is unreachable",
    )

    fallback_gas_price_gwei: float = Field(
        default=FALLBACK_GAS_PRICE_GWEI,
        ge=0.0,
        description="Gas price used when no reading is available",
    )

    # =========================================================================
    # Scanning
    # =========================================================================

    simulation: bool = Field(
        default=True,
        description="Generate mock opportunities instead of quoting DEX routers",
    )

    scan_interval_seconds: float = Field(
        default=DEFAULT_SCAN_INTERVAL_SECONDS,
        ge=0.1,
        le=300.0,
    )

    min_price_gap_pct: float = Field(default=MIN_PRICE_GAP_PCT, ge=0.0)

    trade_size_usd: float = Field(default=DEFAULT_TRADE_SIZE_USD, gt=0.0)

    # =========================================================================
    # Execution
    # =========================================================================

    auto_execute: bool = Field(
        default=False,
        description="Execute the best opportunity of each scan automatically",
    )

    min_profit_threshold_usd: float = Field(
        default=DEFAULT_MIN_PROFIT_THRESHOLD_USD,
        ge=0.0,
    )

    max_slippage_pct: float = Field(
        default=DEFAULT_MAX_SLIPPAGE_PCT,
        gt=0.0,
        le=50.0,
    )

    max_gas_price_gwei: float = Field(
        default=DEFAULT_MAX_GAS_PRICE_GWEI,
        ge=10.0,
        le=100.0,
    )

    lending_pool_address: str = Field(default=AAVE_V2_LENDING_POOL)

    flash_loan_receiver_address: str = Field(
        default=ZERO_ADDRESS,
        description="Deployed flash loan receiver contract",
    )

    simulated_execution_delay_seconds: float = Field(
        default=SIMULATED_EXECUTION_DELAY_SECONDS,
        ge=0.0,
    )

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_file: Path | None = Field(default=None)

    dashboard_host: str = Field(default="0.0.0.0")
    dashboard_port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("chain", mode="after")
    @classmethod
    def validate_chain(cls, v: str) -> str:
        """Ensure the chain is one we know about."""
        key = v.lower()
        if key not in SUPPORTED_CHAINS:
            raise ValueError(f"Unsupported chain {v!r}")
        return key

    @field_validator("flash_loan_receiver_address", "lending_pool_address", mode="after")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Reject values that are not 20-byte hex addresses."""
        if not v.startswith("0x") or len(v) != 42:
            raise ValueError(f"Not an address: {v!r}")
        int(v, 16)
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def receiver_configured(self) -> bool:
        """Whether a flash loan receiver contract has been deployed."""
        return self.flash_loan_receiver_address.lower() != ZERO_ADDRESS

    def api_key_for(self, provider: str) -> str | None:
        """Get the environment-configured API key for a provider."""
        secret = self.infura_api_key if provider == "infura" else self.alchemy_api_key
        if secret is None or not secret.get_secret_value():
            return None
        return secret.get_secret_value()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
