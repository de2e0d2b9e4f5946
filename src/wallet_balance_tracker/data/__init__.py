"""Data loading and configuration management."""

from wallet_balance_tracker.data.loader import (
    get_all_supported_networks,
    get_multicall_address,
    get_network,
    get_network_config,
    get_rpc_url,
    load_networks,
)

__all__ = [
    "get_all_supported_networks",
    "get_multicall_address",
    "get_network",
    "get_network_config",
    "get_rpc_url",
    "load_networks",
]
