"""Core functionality including models, keys, classification, fetching, and invalidation."""

from wallet_balance_tracker.core.addresses import extract_first_address, is_equal_address
from wallet_balance_tracker.core.classifier import classify_error
from wallet_balance_tracker.core.fetcher import BalanceFetcher, BalanceProvider
from wallet_balance_tracker.core.keys import build_request_key
from wallet_balance_tracker.core.models import (
    Account,
    ClassifiedError,
    EntryStatus,
    ErrorCategory,
    FetchPolicy,
    Network,
    RequestKey,
    Token,
)
from wallet_balance_tracker.core.transactions import AccountTransactions, PendingTransactionSource
from wallet_balance_tracker.core.watcher import InvalidationWatcher

__all__ = [
    "Account",
    "AccountTransactions",
    "BalanceFetcher",
    "BalanceProvider",
    "ClassifiedError",
    "EntryStatus",
    "ErrorCategory",
    "FetchPolicy",
    "InvalidationWatcher",
    "Network",
    "PendingTransactionSource",
    "RequestKey",
    "Token",
    "build_request_key",
    "classify_error",
    "extract_first_address",
    "is_equal_address",
]
