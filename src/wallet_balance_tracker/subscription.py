"""Token balance subscriptions for UI consumers."""

from typing import Any

from wallet_balance_tracker.core.fetcher import BalanceFetcher, BalanceProvider
from wallet_balance_tracker.core.keys import build_request_key
from wallet_balance_tracker.core.models import Account, ClassifiedError, FetchPolicy, RequestKey, Token
from wallet_balance_tracker.core.transactions import PendingTransactionSource
from wallet_balance_tracker.core.watcher import InvalidationWatcher
from wallet_balance_tracker.rpc.cache import BalanceCache, CacheSubscription


class TokenBalanceSubscription:
    """
    Live view of one token balance for one account.

    The cached fetch always raises on failure, so subscribers of the same
    key share one request regardless of how they report errors. Each
    subscription applies its own error policy when reading.

    Parameters
    ----------
    handle : CacheSubscription
        Underlying cache subscription
    token_address : str
        Queried token, used to classify failures
    account : Account
        Queried account, used to classify failures
    should_return_error : bool
        Return failures as ClassifiedError data instead of raising them
    watcher : InvalidationWatcher | None
        Watcher refetching the balance when pending transactions resolve

    """

    def __init__(
        self,
        handle: CacheSubscription,
        token_address: str,
        account: Account,
        *,
        should_return_error: bool = False,
        watcher: InvalidationWatcher | None = None,
    ) -> None:
        self._handle = handle
        self.token_address = token_address
        self.account = account
        self.should_return_error = should_return_error
        self.watcher = watcher
        self._classified: tuple[Exception, ClassifiedError] | None = None

    @property
    def key(self) -> RequestKey:
        return self._handle.key

    @property
    def data(self) -> str | ClassifiedError | None:
        error = self._handle.error
        if self.should_return_error and error is not None:
            return self._classify(error)
        return self._handle.data

    @property
    def error(self) -> Exception | None:
        if self.should_return_error:
            return None
        return self._handle.error

    @property
    def is_loading(self) -> bool:
        return self._handle.is_loading

    async def result(self) -> str | ClassifiedError:
        """
        Wait for the balance.

        Returns
        -------
        str | ClassifiedError
            Raw balance string, or the classified failure when the
            subscription returns errors as data

        Raises
        ------
        Exception
            The provider's failure when errors are not returned as data

        """
        try:
            return await self._handle.result()
        except Exception as e:
            if not self.should_return_error:
                raise
            return self._classify(e)

    async def mutate(self) -> None:
        """Refetch the balance and wait until it settles."""
        await self._handle.mutate()

    def close(self) -> None:
        """Stop watching pending transactions and release the cache key."""
        if self.watcher is not None:
            self.watcher.detach()
        self._handle.close()

    def _classify(self, error: Exception) -> ClassifiedError:
        # one classification per stored failure
        if self._classified is None or self._classified[0] is not error:
            self._classified = (error, BalanceFetcher.classify(error, self.token_address, self.account))
        return self._classified[1]

    async def __aenter__(self) -> "TokenBalanceSubscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


def subscribe_token_balance(
    cache: BalanceCache,
    provider: BalanceProvider,
    token: Token,
    account: Account,
    *,
    pending_source: PendingTransactionSource | None = None,
    should_return_error: bool = False,
    policy: FetchPolicy | None = None,
) -> TokenBalanceSubscription:
    """
    Subscribe to the balance of a token for an account.

    The balance is fetched through the cache, so concurrent subscribers of
    the same token, network, account, and multicall contract share one
    request. It is refetched whenever the account's pending transaction
    count goes down.

    Parameters
    ----------
    cache : BalanceCache
        Shared balance cache
    provider : BalanceProvider
        Balance query transport
    token : Token
        Token to query
    account : Account
        Wallet account
    pending_source : PendingTransactionSource | None
        Source of the account's pending transaction count. No automatic
        refetch happens without one.
    should_return_error : bool
        Return failures as ClassifiedError data instead of raising them, so
        the caller can choose if and how to display them
    policy : FetchPolicy | None
        Fetch tuning. Uses the cache's default policy if None.

    Returns
    -------
    TokenBalanceSubscription
        Subscription exposing data, error, is_loading, and mutate

    """
    key = build_request_key(
        token.address,
        token.network_id,
        account.address,
        account.network.multicall_address,
    )
    fetcher = BalanceFetcher(provider)

    async def fetch_balance() -> str:
        return await fetcher.fetch(token.address, account)

    handle = cache.subscribe(key, fetch_balance, policy)

    watcher = None
    if pending_source is not None:
        watcher = InvalidationWatcher(cache, [key])
        watcher.attach(pending_source, account)

    return TokenBalanceSubscription(
        handle,
        token.address,
        account,
        should_return_error=should_return_error,
        watcher=watcher,
    )
