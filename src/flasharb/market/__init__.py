"""Market data module: node providers, gas prices, price oracle and DEX quotes."""

from flasharb.market.dex import DexScanner
from flasharb.market.gas import GasPriceMonitor
from flasharb.market.oracle import EthPriceOracle
from flasharb.market.providers import NodeProvider, ProviderConfigStore, build_rpc_url


__all__ = [
    "DexScanner",
    "EthPriceOracle",
    "GasPriceMonitor",
    "NodeProvider",
    "ProviderConfigStore",
    "build_rpc_url",
]
