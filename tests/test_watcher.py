"""Tests for pending-transaction driven invalidation."""

import asyncio
import contextlib
import logging

import pytest

from wallet_balance_tracker.core.transactions import AccountTransactions
from wallet_balance_tracker.core.watcher import InvalidationWatcher


class RecordingCache:
    """Invalidator that records the keys it was asked to invalidate."""

    def __init__(self) -> None:
        self.invalidated: list[str] = []

    def invalidate(self, key: str) -> None:
        self.invalidated.append(key)


class FailingSource:
    def get_pending_count(self, account):
        raise ConnectionError("history service unavailable")

    def subscribe(self, account, listener):
        return lambda: None


def test_invalidates_only_when_count_decreases():
    cache = RecordingCache()
    watcher = InvalidationWatcher(cache, ["key"])

    fired = [watcher.observe(count) for count in [3, 3, 5, 2, 2, 4]]

    assert fired == [False, False, False, True, False, False]
    assert cache.invalidated == ["key"]


def test_first_observation_sets_baseline():
    cache = RecordingCache()
    watcher = InvalidationWatcher(cache, ["key"])
    assert not watcher.is_observing

    assert watcher.observe(10) is False
    assert watcher.is_observing
    assert watcher.last_count == 10
    assert cache.invalidated == []


def test_only_previous_count_is_kept():
    cache = RecordingCache()
    watcher = InvalidationWatcher(cache, ["key"])

    for count in [5, 1, 3, 2]:
        watcher.observe(count)

    # 5->1 and 3->2 both fire; the drop below the earlier peak is not remembered
    assert cache.invalidated == ["key", "key"]
    assert watcher.last_count == 2


def test_invalidates_every_associated_key():
    cache = RecordingCache()
    watcher = InvalidationWatcher(cache, ["eth", "usdc"])
    watcher.add_key("dai")
    watcher.add_key("eth")

    watcher.observe(2)
    watcher.observe(1)

    assert cache.invalidated == ["eth", "usdc", "dai"]


def test_poll_failure_is_no_signal(account, caplog):
    cache = RecordingCache()
    watcher = InvalidationWatcher(cache, ["key"])
    watcher.observe(2)

    with caplog.at_level(logging.WARNING, logger="wallet_balance_tracker.core.watcher"):
        assert watcher.poll(FailingSource(), account) is False

    assert watcher.last_count == 2
    assert cache.invalidated == []
    assert "Could not read pending transactions" in caplog.text


def test_attach_follows_pushed_counts(account):
    cache = RecordingCache()
    transactions = AccountTransactions()
    transactions.add_pending(account, "0xtx1")
    watcher = InvalidationWatcher(cache, ["key"])

    watcher.attach(transactions, account)
    assert watcher.last_count == 1

    transactions.add_pending(account, "0xtx2")
    assert cache.invalidated == []

    transactions.resolve(account, "0xtx1")
    assert cache.invalidated == ["key"]

    watcher.detach()
    transactions.resolve(account, "0xtx2")
    assert cache.invalidated == ["key"]


def test_watchers_keep_separate_observations(account):
    """Two consumers of one account don't share observation state."""
    transactions = AccountTransactions()
    first_cache, second_cache = RecordingCache(), RecordingCache()
    first = InvalidationWatcher(first_cache, ["key"])
    first.attach(transactions, account)

    transactions.add_pending(account, "0xtx1")
    second = InvalidationWatcher(second_cache, ["key"])
    second.attach(transactions, account)

    assert first.last_count == 1
    assert second.last_count == 1

    transactions.resolve(account, "0xtx1")

    assert first_cache.invalidated == ["key"]
    assert second_cache.invalidated == ["key"]


@pytest.mark.asyncio
async def test_run_polls_source(account):
    cache = RecordingCache()
    transactions = AccountTransactions()
    transactions.add_pending(account, "0xtx1")
    watcher = InvalidationWatcher(cache, ["key"])

    task = asyncio.create_task(watcher.run(transactions, account, interval=0.01))
    await asyncio.sleep(0.03)
    transactions.resolve(account, "0xtx1")
    await asyncio.sleep(0.03)
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task

    assert cache.invalidated == ["key"]
