"""Pytest configuration for wallet-balance-tracker tests."""

import asyncio
from collections.abc import Awaitable, Callable

import pytest
import pytest_asyncio

from wallet_balance_tracker.core.models import Account, Network, Token
from wallet_balance_tracker.rpc.cache import BalanceCache

ACCOUNT_ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth
TOKEN_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"  # USDC
MULTICALL_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"


class ControlledProvider:
    """Balance provider whose calls resolve only when the test says so."""

    def __init__(self) -> None:
        self.calls: list[asyncio.Future] = []

    async def get_balance(self, token_address: str, account: Account) -> str:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(future)
        return await future


class ScriptedProvider:
    """Balance provider returning (or raising) scripted outcomes in order."""

    def __init__(self, *outcomes: str | Exception) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, str]] = []

    async def get_balance(self, token_address: str, account: Account) -> str:
        self.calls.append((token_address, account.address))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def settle() -> Callable[[], Awaitable[None]]:
    """Coroutine function letting pending tasks run until they block."""
    return _settle


@pytest.fixture
def controlled_provider() -> ControlledProvider:
    return ControlledProvider()


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for providers with scripted outcomes."""
    return ScriptedProvider


@pytest.fixture
def network() -> Network:
    return Network(id="ethereum", chain_id=1, rpc_url="https://rpc.test", multicall_address=MULTICALL_ADDRESS)


@pytest.fixture
def account(network: Network) -> Account:
    return Account(address=ACCOUNT_ADDRESS, network=network)


@pytest.fixture
def token() -> Token:
    return Token(address=TOKEN_ADDRESS, network_id="ethereum", symbol="USDC", decimals=6)


@pytest_asyncio.fixture
async def cache():
    """Balance cache closed after each test."""
    balance_cache = BalanceCache()
    yield balance_cache
    await balance_cache.aclose()
