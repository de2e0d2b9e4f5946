"""Tests for network configuration loading."""

import pytest

from wallet_balance_tracker.data import (
    get_all_supported_networks,
    get_multicall_address,
    get_network,
    get_network_config,
    get_rpc_url,
)
from wallet_balance_tracker.data.loader import RPC_URL_ENV_PREFIX


def test_get_all_supported_networks():
    """Test getting all supported network names."""
    networks = get_all_supported_networks()

    assert isinstance(networks, list)
    assert "ethereum" in networks
    assert "base" in networks


def test_get_network_config():
    config = get_network_config("ethereum")

    assert config["chain_id"] == 1
    assert config["rpc_url"].startswith("https://")


def test_get_network():
    network = get_network("base")

    assert network.id == "base"
    assert network.chain_id == 8453
    assert network.multicall_address == "0xcA11bde05977b3631167028862bE2a173976CA11"


def test_network_without_multicall():
    assert get_multicall_address("sepolia") is None
    assert get_network("sepolia").multicall_address is None


def test_rpc_url_environment_override(monkeypatch):
    monkeypatch.setenv(RPC_URL_ENV_PREFIX + "BASE", "https://private.base.test")

    assert get_rpc_url("base") == "https://private.base.test"
    assert get_network("base").rpc_url == "https://private.base.test"
    assert get_rpc_url("ethereum") != "https://private.base.test"


def test_unknown_network():
    with pytest.raises(KeyError):
        get_network("atlantis")


def test_network_config_structure():
    """Test that every network has the required keys."""
    for network_id in get_all_supported_networks():
        config = get_network_config(network_id)

        assert isinstance(config["chain_id"], int)
        assert config["rpc_url"].startswith("https://")
