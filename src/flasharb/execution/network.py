"""Per-chain contract configuration for flash loan execution."""

from flasharb.config.constants import CHAIN_IDS, DEX_FACTORIES, DEX_ROUTERS, SUPPORTED_CHAINS
from flasharb.config.settings import Settings
from flasharb.core.types import DexConfig, NetworkConfig


def build_network_config(settings: Settings, chain: str | None = None) -> NetworkConfig:
    """
    Build the network configuration for a chain.

    Args:
        settings: Application settings (lending pool and receiver).
        chain: Chain key, defaults to `settings.chain`.

    Returns:
        NetworkConfig with the DEX routers known for that chain.
    """
    key = chain or settings.chain
    chain_id = CHAIN_IDS[key]

    dexes = {
        name: DexConfig(router_address=router, factory_address=DEX_FACTORIES.get(name, ""))
        for name, router in DEX_ROUTERS.get(chain_id, {}).items()
    }

    return NetworkConfig(
        chain_id=chain_id,
        name=SUPPORTED_CHAINS[key],
        lending_pool_address=settings.lending_pool_address,
        flash_loan_receiver_address=settings.flash_loan_receiver_address,
        supported_dexes=dexes,
    )
