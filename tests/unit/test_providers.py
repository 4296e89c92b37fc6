"""
Unit tests for node provider endpoints and the provider key store.
"""

from pathlib import Path

import pytest

from flasharb.core.errors import ProviderError
from flasharb.market.providers import (
    NodeProvider,
    ProviderConfigStore,
    build_rpc_url,
    create_web3,
    default_config,
)


class TestBuildRpcUrl:
    """Tests for endpoint construction."""

    def test_infura_mainnet(self) -> None:
        assert build_rpc_url(NodeProvider.INFURA, "abc", 1) == "https://mainnet.infura.io/v3/abc"

    def test_alchemy_polygon(self) -> None:
        url = build_rpc_url(NodeProvider.ALCHEMY, "xyz", 137)
        assert url == "https://polygon-mainnet.g.alchemy.com/v2/xyz"

    def test_missing_key(self) -> None:
        with pytest.raises(ProviderError, match="Infura API key not found"):
            build_rpc_url(NodeProvider.INFURA, "", 1)

    def test_unsupported_network(self) -> None:
        """Alchemy does not serve BNB Chain."""
        with pytest.raises(ProviderError, match="not supported"):
            build_rpc_url(NodeProvider.ALCHEMY, "xyz", 56)

    def test_create_web3(self) -> None:
        web3 = create_web3(NodeProvider.INFURA, "abc", 1)
        assert web3.provider.endpoint_uri == "https://mainnet.infura.io/v3/abc"

    def test_default_config(self) -> None:
        config = default_config(NodeProvider.ALCHEMY)

        assert config.name == "Alchemy"
        assert config.api_key == ""
        assert config.networks[1] == "eth-mainnet"


class TestProviderConfigStore:
    """Tests for the file-backed key store."""

    def test_save_and_get(self, tmp_path: Path) -> None:
        store = ProviderConfigStore(tmp_path / "nested" / "providers.json")

        saved = store.save(NodeProvider.INFURA, "key-1")
        loaded = store.get(NodeProvider.INFURA)

        assert saved.api_key == "key-1"
        assert loaded is not None
        assert loaded.api_key == "key-1"
        assert loaded.name == "Infura"
        assert store.get(NodeProvider.ALCHEMY) is None

    def test_save_keeps_other_providers(self, tmp_path: Path) -> None:
        store = ProviderConfigStore(tmp_path / "providers.json")

        store.save(NodeProvider.INFURA, "key-1")
        store.save(NodeProvider.ALCHEMY, "key-2")

        assert store.resolve_key(NodeProvider.INFURA) == "key-1"
        assert store.resolve_key(NodeProvider.ALCHEMY) == "key-2"

    def test_resolve_key_fallback(self, tmp_path: Path) -> None:
        store = ProviderConfigStore(tmp_path / "providers.json")

        assert store.resolve_key(NodeProvider.INFURA, "from-env") == "from-env"
        assert store.resolve_key(NodeProvider.INFURA) is None

    def test_unreadable_file_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "providers.json"
        path.write_text("{not json")

        store = ProviderConfigStore(path)

        assert store.get(NodeProvider.INFURA) is None
