"""Balance invalidation driven by pending transaction counts."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from wallet_balance_tracker.core.models import Account, RequestKey
from wallet_balance_tracker.core.transactions import PendingTransactionSource

logger = logging.getLogger(__name__)


class Invalidator(Protocol):
    """Anything that can invalidate a cache key."""

    def invalidate(self, key: RequestKey) -> Any: ...


class InvalidationWatcher:
    """
    Invalidates balance keys when an account's pending transaction count drops.

    A drop means a transaction left the pending set, confirmed or dropped,
    so the account's balances may have changed. A rise carries no such
    information. Only the previous count is kept, and the first observation
    only sets the baseline.

    Each subscription owns its own watcher so consumers of the same account
    never share observation state.

    Parameters
    ----------
    cache : Invalidator
        Cache whose keys are invalidated
    keys : Iterable[RequestKey]
        Balance keys associated with the watched account

    """

    def __init__(self, cache: Invalidator, keys: Iterable[RequestKey] = ()) -> None:
        self.cache = cache
        self.keys: list[RequestKey] = list(keys)
        self.last_count: int | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def is_observing(self) -> bool:
        return self.last_count is not None

    def add_key(self, key: RequestKey) -> None:
        if key not in self.keys:
            self.keys.append(key)

    def observe(self, count: int) -> bool:
        """
        Record a pending transaction count.

        Parameters
        ----------
        count : int
            Current number of pending transactions

        Returns
        -------
        bool
            True if the keys were invalidated

        """
        previous = self.last_count
        self.last_count = count
        if previous is None or count >= previous:
            return False

        logger.debug(
            "Pending transactions dropped from %d to %d, invalidating %d key(s)",
            previous,
            count,
            len(self.keys),
        )
        for key in self.keys:
            self.cache.invalidate(key)
        return True

    def poll(self, source: PendingTransactionSource, account: Account) -> bool:
        """
        Read the count from the source and observe it.

        A failing source counts as no signal for this cycle.

        Returns
        -------
        bool
            True if the keys were invalidated

        """
        try:
            count = source.get_pending_count(account)
        except Exception:
            logger.warning("Could not read pending transactions for %s", account.address, exc_info=True)
            return False
        return self.observe(count)

    async def run(self, source: PendingTransactionSource, account: Account, interval: float) -> None:
        """Poll the source every `interval` seconds until cancelled."""
        while True:
            self.poll(source, account)
            await asyncio.sleep(interval)

    def attach(self, source: PendingTransactionSource, account: Account) -> None:
        """
        Follow the counts pushed by a source.

        The current count is read first to set the baseline.

        """
        self.detach()
        self.poll(source, account)
        self._unsubscribe = source.subscribe(account, self.observe)

    def detach(self) -> None:
        """Stop following the source."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
