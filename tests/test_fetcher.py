"""Tests for BalanceFetcher."""

import pytest

from wallet_balance_tracker.core.classifier import UNINITIALIZED_CONTRACT
from wallet_balance_tracker.core.fetcher import BalanceFetcher
from wallet_balance_tracker.core.models import ClassifiedError, ErrorCategory
from wallet_balance_tracker.rpc.provider import BalanceQueryError


@pytest.mark.asyncio
async def test_returns_raw_balance_unmodified(account, token, scripted_provider):
    provider = scripted_provider("000123")
    fetcher = BalanceFetcher(provider)

    balance = await fetcher.fetch(token.address, account)

    assert balance == "000123"
    assert provider.calls == [(token.address, account.address)]


@pytest.mark.asyncio
async def test_reraises_original_error(account, token, scripted_provider):
    error = BalanceQueryError(429, "Too Many Requests")
    fetcher = BalanceFetcher(scripted_provider(error))

    with pytest.raises(BalanceQueryError) as excinfo:
        await fetcher.fetch(token.address, account, throw_on_error=True)

    assert excinfo.value is error


@pytest.mark.asyncio
async def test_classifies_error_when_not_throwing(account, token, scripted_provider):
    fetcher = BalanceFetcher(scripted_provider(BalanceQueryError(502, "Bad Gateway")))

    result = await fetcher.fetch(token.address, account, throw_on_error=False)

    assert isinstance(result, ClassifiedError)
    assert result.message == ErrorCategory.NETWORK_ERROR
    assert result.description == "Bad Gateway"


@pytest.mark.asyncio
async def test_classification_uses_account_multicall(account, token, scripted_provider):
    multicall = account.network.multicall_address
    error = BalanceQueryError(UNINITIALIZED_CONTRACT, f"Requested contract address {multicall} is not deployed")
    fetcher = BalanceFetcher(scripted_provider(error))

    result = await fetcher.fetch(token.address, account, throw_on_error=False)

    assert result.message == ErrorCategory.NO_MULTICALL
    assert "network ethereum" in result.description


def test_classify_without_fetching(account, token, scripted_provider):
    provider = scripted_provider("1")
    fetcher = BalanceFetcher(provider)

    result = fetcher.classify(BalanceQueryError(429, "Too Many Requests"), token.address, account)

    assert result.message == ErrorCategory.NETWORK_ERROR
    assert provider.calls == []
