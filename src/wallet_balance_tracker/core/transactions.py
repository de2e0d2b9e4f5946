"""Pending transaction tracking per account."""

from collections.abc import Callable
from typing import Protocol

from wallet_balance_tracker.core.addresses import normalize_address
from wallet_balance_tracker.core.models import Account

CountListener = Callable[[int], None]


class PendingTransactionSource(Protocol):
    """
    Interface of a source of pending transaction counts.

    Methods
    -------
    get_pending_count(account)
        Current number of pending transactions for the account
    subscribe(account, listener)
        Call listener with the new count whenever it changes. Returns a
        function that removes the listener.

    """

    def get_pending_count(self, account: Account) -> int: ...

    def subscribe(self, account: Account, listener: CountListener) -> Callable[[], None]: ...


def _account_key(account: Account) -> tuple[str, str]:
    return account.network.id, normalize_address(account.address)


class AccountTransactions:
    """
    In-memory pending transaction tracker.

    Accounts are identified by network and normalized address, so the same
    account built twice shares its pending set.

    """

    def __init__(self) -> None:
        self._pending: dict[tuple[str, str], set[str]] = {}
        self._listeners: dict[tuple[str, str], list[CountListener]] = {}

    def get_pending_transactions(self, account: Account) -> list[str]:
        """Hashes of the account's pending transactions."""
        return sorted(self._pending.get(_account_key(account), set()))

    def get_pending_count(self, account: Account) -> int:
        return len(self._pending.get(_account_key(account), set()))

    def add_pending(self, account: Account, tx_hash: str) -> None:
        """
        Record a submitted transaction.

        Parameters
        ----------
        account : Account
            Sending account
        tx_hash : str
            Transaction hash

        """
        pending = self._pending.setdefault(_account_key(account), set())
        if tx_hash in pending:
            return
        pending.add(tx_hash)
        self._notify(account)

    def resolve(self, account: Account, tx_hash: str) -> None:
        """
        Remove a transaction from the pending set once confirmed or dropped.

        Parameters
        ----------
        account : Account
            Sending account
        tx_hash : str
            Transaction hash

        """
        pending = self._pending.get(_account_key(account))
        if not pending or tx_hash not in pending:
            return
        pending.discard(tx_hash)
        self._notify(account)

    def subscribe(self, account: Account, listener: CountListener) -> Callable[[], None]:
        key = _account_key(account)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, account: Account) -> None:
        count = self.get_pending_count(account)
        for listener in list(self._listeners.get(_account_key(account), [])):
            listener(count)
