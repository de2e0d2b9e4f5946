"""Balance fetching with optional error classification."""

import logging
from typing import Protocol

from wallet_balance_tracker.core.classifier import classify_error
from wallet_balance_tracker.core.models import Account, ClassifiedError

logger = logging.getLogger(__name__)


class BalanceProvider(Protocol):
    """
    Interface of the balance query transport.

    Implementations raise on failure with an error exposing ``error_code``
    and ``message`` where they can.

    """

    async def get_balance(self, token_address: str, account: Account) -> str:
        """Return the raw token balance of the account as a decimal string."""
        ...


class BalanceFetcher:
    """
    Translates balance provider failures for the caller.

    Parameters
    ----------
    provider : BalanceProvider
        Balance query transport

    """

    def __init__(self, provider: BalanceProvider) -> None:
        self.provider = provider

    async def fetch(
        self,
        token_address: str,
        account: Account,
        *,
        throw_on_error: bool = True,
    ) -> str | ClassifiedError:
        """
        Fetch a token balance for an account.

        Parameters
        ----------
        token_address : str
            Token contract address
        account : Account
            Wallet account
        throw_on_error : bool
            Re-raise provider failures unchanged if True, otherwise return
            them classified

        Returns
        -------
        str | ClassifiedError
            Raw balance string as returned by the provider, or the classified
            failure when throw_on_error is False

        """
        try:
            return await self.provider.get_balance(token_address, account)
        except Exception as e:
            if throw_on_error:
                raise
            logger.debug("Balance query for %s failed: %s", token_address, e)
            return self.classify(e, token_address, account)

    @staticmethod
    def classify(error: Exception, token_address: str, account: Account) -> ClassifiedError:
        """Classify a balance query failure in the context of the queried account."""
        return classify_error(
            error,
            token_address,
            account.network.multicall_address,
            network_id=account.network.id,
        )
