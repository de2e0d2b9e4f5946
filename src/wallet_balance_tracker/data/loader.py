"""Network configuration loader."""

import os
from pathlib import Path
from typing import Any

import yaml

from wallet_balance_tracker.core.models import Network

RPC_URL_ENV_PREFIX = "WALLET_BALANCE_RPC_"


def load_networks() -> dict[str, Any]:
    """
    Load network configuration from networks.yaml.

    Returns
    -------
    dict[str, Any]
        Network configuration keyed by network name

    """
    path = Path(__file__).parent / "networks.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)["networks"]


def get_network_config(network_id: str) -> dict[str, Any]:
    """
    Get configuration for a specific network.

    Parameters
    ----------
    network_id : str
        Network name (e.g., 'ethereum', 'base')

    Returns
    -------
    dict[str, Any]
        Network configuration including RPC URL and multicall address

    Raises
    ------
    KeyError
        If network is not found in configuration

    """
    return load_networks()[network_id]


def get_rpc_url(network_id: str) -> str:
    """
    Get the JSON-RPC endpoint for a network.

    The WALLET_BALANCE_RPC_<NETWORK> environment variable takes precedence
    over the configured URL.

    Parameters
    ----------
    network_id : str
        Network name

    Returns
    -------
    str
        RPC endpoint URL

    """
    override = os.environ.get(RPC_URL_ENV_PREFIX + network_id.upper())
    if override:
        return override
    return get_network_config(network_id)["rpc_url"]


def get_multicall_address(network_id: str) -> str | None:
    """Get the multicall contract address of a network, if it has one."""
    return get_network_config(network_id).get("multicall_address")


def get_all_supported_networks() -> list[str]:
    """
    Get list of all configured network names.

    Returns
    -------
    list[str]
        List of network names

    """
    return list(load_networks().keys())


def get_network(network_id: str) -> Network:
    """
    Build a Network model from configuration.

    Parameters
    ----------
    network_id : str
        Network name

    Returns
    -------
    Network
        Network with chain ID, RPC URL, and multicall address

    """
    config = get_network_config(network_id)
    return Network(
        id=network_id,
        chain_id=config.get("chain_id"),
        rpc_url=get_rpc_url(network_id),
        multicall_address=config.get("multicall_address"),
    )
