"""Cached token balances for wallet accounts with pending-transaction invalidation."""

from wallet_balance_tracker.core import Account, AccountTransactions, ClassifiedError, FetchPolicy, Network, Token
from wallet_balance_tracker.rpc import BalanceCache, JsonRpcBalanceProvider
from wallet_balance_tracker.subscription import TokenBalanceSubscription, subscribe_token_balance

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountTransactions",
    "BalanceCache",
    "ClassifiedError",
    "FetchPolicy",
    "JsonRpcBalanceProvider",
    "Network",
    "Token",
    "TokenBalanceSubscription",
    "subscribe_token_balance",
]
