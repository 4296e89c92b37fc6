"""
Scanner constants and default configuration values.

Every hardcoded value the scanner relies on lives here, grouped by
category. Anything an operator might want to tune is mirrored by a
field in `flasharb.config.settings.Settings`.
"""

from typing import Final


# =============================================================================
# Flash Loan Economics
# =============================================================================

# Aave V2 flash loan premium (0.09%)
FLASH_LOAN_FEE_RATE: Final[float] = 0.0009

# Gas units budgeted for borrow + two swaps + repay
GAS_LIMIT_ESTIMATE: Final[int] = 500_000

# 1 gwei = 1e-9 of the native unit
GWEI_PER_NATIVE: Final[float] = 1e9

# Used when the price oracle cannot be reached
FALLBACK_ETH_PRICE_USD: Final[float] = 1800.0

# Used when no gas price reading is available
FALLBACK_GAS_PRICE_GWEI: Final[float] = 30.0


# =============================================================================
# Price Oracle
# =============================================================================

COINGECKO_SIMPLE_PRICE_URL: Final[str] = "https://api.coingecko.com/api/v3/simple/price"
ORACLE_TIMEOUT_SECONDS: Final[float] = 5.0


# =============================================================================
# Scanning
# =============================================================================

DEFAULT_SCAN_INTERVAL_SECONDS: Final[float] = 5.0

# Chance that a simulated scan cycle turns up a fresh batch
SIMULATED_DISCOVERY_PROBABILITY: Final[float] = 0.3

# Gaps at or below this percentage are ignored
MIN_PRICE_GAP_PCT: Final[float] = 0.5

# Notional used to turn a gap percentage into a USD profit
DEFAULT_TRADE_SIZE_USD: Final[float] = 1000.0

GAS_PRICE_REFRESH_SECONDS: Final[float] = 30.0

# Quote token decimals (USDC / USDT)
QUOTE_TOKEN_DECIMALS: Final[int] = 6


# =============================================================================
# Execution
# =============================================================================

DEFAULT_MIN_PROFIT_THRESHOLD_USD: Final[float] = 100.0
MIN_PROFIT_THRESHOLD_CHOICES: Final[tuple[float, ...]] = (50.0, 100.0, 200.0)

DEFAULT_MAX_SLIPPAGE_PCT: Final[float] = 1.0
MAX_SLIPPAGE_CHOICES: Final[tuple[float, ...]] = (0.5, 1.0, 2.0, 5.0)

SIMULATED_EXECUTION_DELAY_SECONDS: Final[float] = 3.0

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

# Aave V2 LendingPool on Ethereum mainnet
AAVE_V2_LENDING_POOL: Final[str] = "0x7d2768dE32b0b80b7a3454c06BdAc94A69DDc7A9"

# Amount borrowed per flash loan, in whole tokens
DEFAULT_BORROW_AMOUNT: Final[float] = 1.0

ETHERSCAN_TX_URL: Final[str] = "https://etherscan.io/tx/"


# =============================================================================
# Gas Settings
# =============================================================================

MIN_GAS_PRICE_GWEI: Final[float] = 10.0
MAX_GAS_PRICE_GWEI: Final[float] = 100.0
DEFAULT_MAX_GAS_PRICE_GWEI: Final[float] = 50.0

MIN_PRIORITY_FEE_GWEI: Final[float] = 0.5
MAX_PRIORITY_FEE_GWEI: Final[float] = 10.0
DEFAULT_PRIORITY_FEE_GWEI: Final[float] = 1.5

MIN_GAS_LIMIT: Final[int] = 21_000
MAX_GAS_LIMIT: Final[int] = 30_000_000


# =============================================================================
# Chains & DEXes
# =============================================================================

SUPPORTED_CHAINS: Final[dict[str, str]] = {
    "ethereum": "Ethereum",
    "arbitrum": "Arbitrum",
    "optimism": "Optimism",
    "polygon": "Polygon",
    "bsc": "BNB Chain",
    "avalanche": "Avalanche",
}

CHAIN_IDS: Final[dict[str, int]] = {
    "ethereum": 1,
    "arbitrum": 42161,
    "optimism": 10,
    "polygon": 137,
    "bsc": 56,
    "avalanche": 43114,
}

# UniswapV2-compatible routers by chain id
DEX_ROUTERS: Final[dict[int, dict[str, str]]] = {
    1: {
        "Uniswap": "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        "SushiSwap": "0xd9e1cE17f2641f24aE83637ab66a2cca9C378B9F",
        "PancakeSwap": "0x10ED43C718714eb63d5aA57B78B54704E256024E",
    },
    137: {
        "QuickSwap": "0xa5E0829CaCEd8fFDD4De3c43696c57F7D7A678ff",
        "SushiSwap": "0x1b02dA8Cb0d097eB8D57A175b88c7D8b47997506",
    },
}

DEX_FACTORIES: Final[dict[str, str]] = {
    "Uniswap": "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
    "SushiSwap": "0xC0AEe478e3658e2610c5F7A4A2E1777cE9e4f2Ac",
}

COMMON_TOKENS: Final[dict[int, dict[str, str]]] = {
    1: {
        "ETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",  # WETH
        "WBTC": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
        "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "DAI": "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    },
    137: {
        "WMATIC": "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
        "WETH": "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619",
        "USDC": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
        "USDT": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
        "DAI": "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",
    },
}


# =============================================================================
# Node Providers
# =============================================================================

INFURA_NETWORKS: Final[dict[int, str]] = {
    1: "mainnet",
    5: "goerli",
    11155111: "sepolia",
    42161: "arbitrum",
    10: "optimism",
    137: "polygon",
    56: "binance",
    43114: "avalanche",
}

ALCHEMY_NETWORKS: Final[dict[int, str]] = {
    1: "eth-mainnet",
    5: "eth-goerli",
    11155111: "eth-sepolia",
    42161: "arb-mainnet",
    10: "opt-mainnet",
    137: "polygon-mainnet",
}

RPC_TIMEOUT_SECONDS: Final[float] = 10.0


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Number of recent scan intervals used for the scan frequency stat
SCAN_INTERVAL_WINDOW: Final[int] = 50
