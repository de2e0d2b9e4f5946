"""Request-coalescing cache for balance queries."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from wallet_balance_tracker.core.models import ClassifiedError, EntryStatus, FetchPolicy, RequestKey
from wallet_balance_tracker.rpc.retry import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[Any]]


class CacheEntry:
    """
    State of one cached request.

    Parameters
    ----------
    key : RequestKey
        Key identifying the request
    policy : FetchPolicy
        Fetch policy the entry was created with

    Attributes
    ----------
    status : EntryStatus
        Current lifecycle state
    data : Any
        Last fetched value (balance string or ClassifiedError)
    error : Exception | None
        Exception raised by the last fetch, if it failed
    last_updated : float | None
        Timestamp of the last settled fetch
    subscribers : int
        Number of live subscriptions to this key
    generation : int
        Incremented every time a fetch starts. Only the fetch carrying the
        current generation may write its result.

    """

    def __init__(self, key: RequestKey, policy: FetchPolicy) -> None:
        self.key = key
        self.policy = policy
        self.status = EntryStatus.IDLE
        self.data: Any = None
        self.error: Exception | None = None
        self.last_updated: float | None = None
        self.subscribers = 0
        self.generation = 0
        self.fetch_fn: FetchFn | None = None
        self.task: asyncio.Task[None] | None = None
        self.poll_task: asyncio.Task[None] | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is EntryStatus.LOADING

    def is_fresh(self, interval: float) -> bool:
        """
        Check if the entry settled within the last `interval` seconds.

        Parameters
        ----------
        interval : float
            Freshness window in seconds

        Returns
        -------
        bool
            True if a settled value exists and is recent enough to reuse

        """
        if self.last_updated is None or self.status in (EntryStatus.IDLE, EntryStatus.LOADING):
            return False
        return (time.time() - self.last_updated) < interval

    def is_expired(self) -> bool:
        """
        Check if the entry is older than its policy's cache TTL.

        Returns
        -------
        bool
            True if expired or never fetched, False otherwise

        """
        if self.last_updated is None:
            return True
        return (time.time() - self.last_updated) > self.policy.cache_ttl


class CacheSubscription:
    """
    Handle for one subscriber's interest in a cache key.

    Parameters
    ----------
    cache : BalanceCache
        Owning cache
    entry : CacheEntry
        Entry being observed

    """

    def __init__(self, cache: "BalanceCache", entry: CacheEntry) -> None:
        self._cache = cache
        self.entry = entry
        self.closed = False

    @property
    def key(self) -> RequestKey:
        return self.entry.key

    @property
    def data(self) -> Any:
        return self.entry.data

    @property
    def error(self) -> Exception | None:
        return self.entry.error

    @property
    def is_loading(self) -> bool:
        return self.entry.is_loading

    async def result(self) -> Any:
        """
        Wait for the latest fetch of the key to settle.

        Returns
        -------
        Any
            Fetched value

        Raises
        ------
        Exception
            The exception raised by the fetch, if it failed

        """
        entry = await self._cache.wait(self.key)
        if entry.status is EntryStatus.ERROR and entry.error is not None:
            raise entry.error
        return entry.data

    def mutate(self) -> "asyncio.Task[CacheEntry]":
        """Invalidate the key and refetch it."""
        return self._cache.invalidate(self.key)

    def close(self) -> None:
        """Drop this subscriber's interest in the key."""
        if self.closed:
            return
        self.closed = True
        self._cache.release(self.entry)


class BalanceCache:
    """
    In-memory request cache with coalescing and invalidation.

    At most one fetch per key is in flight at any time: subscribers arriving
    while a fetch runs share it. An invalidation supersedes any running fetch
    of the key, and results from superseded fetches are discarded.

    All methods must be called from within a running event loop.

    Parameters
    ----------
    default_policy : FetchPolicy | None
        Policy for subscriptions that don't provide one

    """

    def __init__(self, default_policy: FetchPolicy | None = None) -> None:
        self.default_policy = default_policy or FetchPolicy()
        self._entries: dict[RequestKey, CacheEntry] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _get_or_create(self, key: RequestKey, policy: FetchPolicy | None = None) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key, policy or self.default_policy)
            self._entries[key] = entry
        return entry

    def peek(self, key: RequestKey) -> CacheEntry | None:
        """Read an entry without side effects."""
        return self._entries.get(key)

    def get(self, key: RequestKey) -> CacheEntry:
        """
        Read the current state of a key.

        Starts a fetch if the key has a registered fetch function and has
        never been fetched.

        Parameters
        ----------
        key : RequestKey
            Request key

        Returns
        -------
        CacheEntry
            Entry for the key

        """
        entry = self._get_or_create(key)
        if entry.status is EntryStatus.IDLE and entry.task is None and entry.fetch_fn is not None:
            self._start_fetch(entry)
        return entry

    def subscribe(
        self,
        key: RequestKey,
        fetch_fn: FetchFn,
        policy: FetchPolicy | None = None,
    ) -> CacheSubscription:
        """
        Register interest in a key.

        Parameters
        ----------
        key : RequestKey
            Request key
        fetch_fn : FetchFn
            Zero-argument coroutine factory producing the value
        policy : FetchPolicy | None
            Fetch policy. Uses the cache's default policy if None.

        Returns
        -------
        CacheSubscription
            Handle to read, wait on, mutate, and close the subscription

        """
        policy = policy or self.default_policy
        entry = self._get_or_create(key, policy)
        entry.fetch_fn = fetch_fn
        entry.policy = policy
        entry.subscribers += 1

        if entry.task is None and not entry.is_fresh(policy.dedupe_interval):
            self._start_fetch(entry)
        elif entry.task is not None:
            logger.debug("Coalescing subscriber onto in-flight fetch for %s", key)

        if policy.refresh_interval > 0 and entry.poll_task is None:
            entry.poll_task = asyncio.create_task(self._poll(entry))

        return CacheSubscription(self, entry)

    def release(self, entry: CacheEntry) -> None:
        """Drop one subscriber from an entry, stopping its polling when none remain."""
        entry.subscribers = max(entry.subscribers - 1, 0)
        if entry.subscribers == 0 and entry.poll_task is not None:
            entry.poll_task.cancel()
            entry.poll_task = None

    def invalidate(self, key: RequestKey) -> "asyncio.Task[CacheEntry]":
        """
        Force a refetch of a key, superseding any in-flight fetch.

        Parameters
        ----------
        key : RequestKey
            Request key

        Returns
        -------
        asyncio.Task[CacheEntry]
            Task resolving to the entry once the latest fetch settles

        Raises
        ------
        KeyError
            If no fetch function was ever registered for the key

        """
        entry = self._entries.get(key)
        if entry is None or entry.fetch_fn is None:
            raise KeyError(key)

        if entry.task is not None:
            logger.debug("Superseding in-flight fetch for %s", key)
        self._start_fetch(entry)

        return self._track(asyncio.create_task(self.wait(key)))

    async def wait(self, key: RequestKey) -> CacheEntry:
        """
        Wait until no fetch of the key is in flight.

        Follows supersessions, so the returned entry reflects the fetch
        started by the latest invalidation.

        Parameters
        ----------
        key : RequestKey
            Request key

        Returns
        -------
        CacheEntry
            Settled entry

        """
        entry = self.get(key)
        while entry.task is not None:
            await asyncio.shield(entry.task)
        return entry

    def prune(self) -> int:
        """
        Remove expired entries nobody observes.

        Returns
        -------
        int
            Number of entries removed

        """
        expired_keys = [
            key
            for key, entry in self._entries.items()
            if entry.subscribers == 0 and entry.task is None and entry.is_expired()
        ]
        for key in expired_keys:
            del self._entries[key]
        return len(expired_keys)

    async def aclose(self) -> None:
        """Cancel all fetches, including superseded ones, polling loops, and waiters."""
        tasks: list[asyncio.Task[Any]] = list(self._tasks)
        for entry in self._entries.values():
            if entry.poll_task is not None:
                tasks.append(entry.poll_task)
                entry.poll_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _start_fetch(self, entry: CacheEntry) -> "asyncio.Task[None]":
        entry.generation += 1
        entry.status = EntryStatus.LOADING
        task = self._track(asyncio.create_task(self._run_fetch(entry, entry.generation)))
        entry.task = task
        return task

    def _track(self, task: "asyncio.Task[Any]") -> "asyncio.Task[Any]":
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_fetch(self, entry: CacheEntry, generation: int) -> None:
        fetch_fn = entry.fetch_fn
        policy = entry.policy
        retry_config = RetryConfig(
            max_retries=policy.error_retry_count,
            base_delay=policy.error_retry_interval,
        )

        def is_current() -> bool:
            return entry.generation == generation

        logger.debug("Fetching %s (generation %d)", entry.key, generation)
        try:
            value = await call_with_retry(fetch_fn, retry_config, should_continue=is_current)
        except Exception as e:
            if not is_current():
                logger.debug("Discarding superseded failure for %s", entry.key)
                return
            entry.error = e
            entry.status = EntryStatus.ERROR
            entry.last_updated = time.time()
        else:
            if not is_current():
                logger.debug("Discarding superseded result for %s", entry.key)
                return
            entry.data = value
            entry.error = None
            entry.status = EntryStatus.ERROR if isinstance(value, ClassifiedError) else EntryStatus.SUCCESS
            entry.last_updated = time.time()
        finally:
            if is_current():
                entry.task = None
                if entry.status is EntryStatus.LOADING:
                    # cancelled before settling
                    entry.status = EntryStatus.IDLE

    async def _poll(self, entry: CacheEntry) -> None:
        while entry.subscribers > 0 and entry.policy.refresh_interval > 0:
            await asyncio.sleep(entry.policy.refresh_interval)
            if entry.task is None and entry.subscribers > 0:
                self._start_fetch(entry)
        if entry.poll_task is asyncio.current_task():
            entry.poll_task = None
