"""JSON-RPC balance provider using httpx."""

import itertools
import logging
from typing import Any

import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError

from wallet_balance_tracker.core.classifier import UNINITIALIZED_CONTRACT
from wallet_balance_tracker.core.models import Account, Network
from wallet_balance_tracker.data import get_rpc_url
from wallet_balance_tracker.rpc.multicall import MulticallBatcher

logger = logging.getLogger(__name__)

# balanceOf(address)
BALANCE_OF_SELECTOR = "70a08231"
CALL_EXCEPTION = "CALL_EXCEPTION"


class BalanceQueryError(Exception):
    """
    Balance query failure as reported by the transport.

    Parameters
    ----------
    error_code : str | int | None
        Error code (HTTP status, JSON-RPC code, or symbolic code)
    message : str
        Error message

    """

    def __init__(self, error_code: str | int | None, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message


def encode_balance_of(account_address: str) -> str:
    """
    Encode balanceOf(account) calldata.

    Parameters
    ----------
    account_address : str
        Account address

    Returns
    -------
    str
        Hex calldata

    Raises
    ------
    ValueError
        If the address is not a 20-byte hex address

    """
    try:
        arguments = encode(["address"], [account_address.lower()])
    except EncodingError as e:
        msg = f"Invalid address {account_address}"
        raise ValueError(msg) from e
    return "0x" + BALANCE_OF_SELECTOR + arguments.hex()


def _decode_balance(token_address: str, return_data: bytes) -> str:
    try:
        (balance,) = decode(["uint256"], return_data)
    except DecodingError as e:
        msg = f"Malformed balanceOf return data for token {token_address}"
        raise BalanceQueryError(CALL_EXCEPTION, msg) from e
    return str(balance)


def _not_deployed(address: str) -> BalanceQueryError:
    return BalanceQueryError(UNINITIALIZED_CONTRACT, f"Requested contract address {address} is not deployed")


class JsonRpcBalanceProvider:
    """
    Fetches ERC-20 balances over JSON-RPC.

    Reads go through the network's multicall contract when it has one,
    otherwise straight to the token contract. Failures are raised as
    BalanceQueryError with the HTTP status, JSON-RPC error code, or
    an uninitialized-contract code when the target has no code.

    Parameters
    ----------
    rpc_urls : dict[str, str] | None
        RPC endpoint per network ID, taking precedence over the network's own URL
    client : httpx.AsyncClient | None
        HTTP client. A client with the given timeout is created if None.
    timeout : float
        Request timeout in seconds for the created client

    """

    def __init__(
        self,
        rpc_urls: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.rpc_urls = dict(rpc_urls or {})
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    def _resolve_rpc_url(self, network: Network) -> str:
        if network.id in self.rpc_urls:
            return self.rpc_urls[network.id]
        if network.rpc_url:
            return network.rpc_url
        return get_rpc_url(network.id)

    async def request(self, url: str, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC request.

        Parameters
        ----------
        url : str
            RPC endpoint
        method : str
            RPC method name (e.g., 'eth_call')
        params : list[Any]
            Method parameters

        Returns
        -------
        Any
            The 'result' member of the response

        Raises
        ------
        BalanceQueryError
            On HTTP error status or a JSON-RPC error response

        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            msg = f"{status} {e.response.reason_phrase} from {url}"
            raise BalanceQueryError(status, msg) from e

        body = response.json()
        error = body.get("error")
        if error:
            raise BalanceQueryError(error.get("code"), error.get("message", ""))
        return body.get("result")

    async def eth_call(self, url: str, to: str, data: str) -> str:
        """
        Execute a read-only call, raising if the target has no code.

        Returns
        -------
        str
            Hex return data

        """
        result = await self.request(url, "eth_call", [{"to": to, "data": data}, "latest"])
        if not result or result == "0x":
            raise _not_deployed(to)
        return result

    async def get_balance(self, token_address: str, account: Account) -> str:
        """
        Fetch the token balance of an account.

        Parameters
        ----------
        token_address : str
            Token contract address
        account : Account
            Wallet account

        Returns
        -------
        str
            Raw balance in the token's smallest unit, as a decimal string

        """
        balances = await self.get_balances([token_address], account)
        return balances[0]

    async def get_balances(self, token_addresses: list[str], account: Account) -> list[str]:
        """
        Fetch several token balances of an account in one round trip when possible.

        Parameters
        ----------
        token_addresses : list[str]
            Token contract addresses
        account : Account
            Wallet account

        Returns
        -------
        list[str]
            Raw balances in the same order as token_addresses

        """
        address, _ = account.to_base_wallet_account()
        url = self._resolve_rpc_url(account.network)
        call_data = encode_balance_of(address)
        multicall_address = account.network.multicall_address

        if not multicall_address:
            balances = []
            for token_address in token_addresses:
                result = await self.eth_call(url, token_address, call_data)
                balances.append(_decode_balance(token_address, bytes.fromhex(result.removeprefix("0x"))))
            return balances

        batcher = MulticallBatcher(multicall_address)
        for token_address in token_addresses:
            batcher.add_call(token_address, call_data)
        logger.debug("Fetching %d balance(s) via multicall %s", batcher.call_count, multicall_address)

        results = await batcher.execute(lambda to, data: self.eth_call(url, to, data))

        balances = []
        for token_address, (success, return_data) in zip(token_addresses, results, strict=True):
            if not success:
                raise BalanceQueryError(CALL_EXCEPTION, f"balanceOf reverted for token {token_address}")
            if not return_data:
                raise _not_deployed(token_address)
            balances.append(_decode_balance(token_address, return_data))
        return balances

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "JsonRpcBalanceProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Async context manager exit."""
        await self.close()
