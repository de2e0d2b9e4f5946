"""RPC layer with balance caching, retry logic, multicall support, and the JSON-RPC provider."""

from wallet_balance_tracker.rpc.cache import BalanceCache, CacheEntry, CacheSubscription
from wallet_balance_tracker.rpc.multicall import MulticallBatcher
from wallet_balance_tracker.rpc.provider import BalanceQueryError, JsonRpcBalanceProvider
from wallet_balance_tracker.rpc.retry import RetryConfig, call_with_retry

__all__ = [
    "BalanceCache",
    "BalanceQueryError",
    "CacheEntry",
    "CacheSubscription",
    "JsonRpcBalanceProvider",
    "MulticallBatcher",
    "RetryConfig",
    "call_with_retry",
]
