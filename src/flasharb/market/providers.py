"""
Blockchain node provider configuration.

Builds JSON-RPC endpoints for Infura and Alchemy and persists the API
keys entered at runtime to a small JSON file.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import aiohttp
import orjson
from web3 import AsyncHTTPProvider, AsyncWeb3

from flasharb.config.constants import ALCHEMY_NETWORKS, INFURA_NETWORKS, RPC_TIMEOUT_SECONDS
from flasharb.core.errors import ProviderError


logger = logging.getLogger(__name__)


class NodeProvider(str, Enum):
    """Supported hosted node providers."""

    INFURA = "infura"
    ALCHEMY = "alchemy"


@dataclass(slots=True)
class ProviderConfig:
    """Provider display name, API key and served networks."""

    name: str
    type: NodeProvider
    api_key: str = ""
    networks: dict[int, str] = field(default_factory=dict)


def default_config(provider: NodeProvider) -> ProviderConfig:
    """Get the built-in configuration for a provider, without a key."""
    if provider == NodeProvider.INFURA:
        return ProviderConfig("Infura", provider, networks=dict(INFURA_NETWORKS))
    return ProviderConfig("Alchemy", provider, networks=dict(ALCHEMY_NETWORKS))


def build_rpc_url(provider: NodeProvider, api_key: str, chain_id: int = 1) -> str:
    """
    Build the HTTPS JSON-RPC endpoint for a provider and chain.

    Raises:
        ProviderError: If the key is empty or the chain is not served.
    """
    config = default_config(provider)

    if not api_key:
        raise ProviderError(f"{config.name} API key not found")

    network = config.networks.get(chain_id)
    if network is None:
        raise ProviderError(f"Network {chain_id} not supported by {config.name}")

    if provider == NodeProvider.INFURA:
        return f"https://{network}.infura.io/v3/{api_key}"
    return f"https://{network}.g.alchemy.com/v2/{api_key}"


def create_web3(provider: NodeProvider, api_key: str, chain_id: int = 1) -> AsyncWeb3:
    """Create an AsyncWeb3 client for a provider endpoint."""
    url = build_rpc_url(provider, api_key, chain_id)
    timeout = aiohttp.ClientTimeout(total=RPC_TIMEOUT_SECONDS)
    return AsyncWeb3(AsyncHTTPProvider(url, request_kwargs={"timeout": timeout}))


class ProviderConfigStore:
    """
    File-backed store for provider API keys.

    Keys are saved as a JSON object `{provider: api_key}`.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = orjson.loads(self._path.read_bytes())
        except orjson.JSONDecodeError as e:
            logger.error(f"Ignoring unreadable provider store {self._path}: {e}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def save(self, provider: NodeProvider, api_key: str) -> ProviderConfig:
        """
        Persist an API key for a provider.

        Returns:
            The resulting provider configuration.
        """
        keys = self._load()
        keys[provider.value] = api_key

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_bytes(orjson.dumps(keys, option=orjson.OPT_INDENT_2))

        config = default_config(provider)
        config.api_key = api_key
        logger.info(f"{config.name} API key saved")
        return config

    def get(self, provider: NodeProvider) -> ProviderConfig | None:
        """Get the stored configuration for a provider, if a key was saved."""
        api_key = self._load().get(provider.value)
        if not api_key:
            return None

        config = default_config(provider)
        config.api_key = api_key
        return config

    def resolve_key(self, provider: NodeProvider, fallback: str | None = None) -> str | None:
        """Stored key for a provider, else the fallback."""
        config = self.get(provider)
        return config.api_key if config else fallback
