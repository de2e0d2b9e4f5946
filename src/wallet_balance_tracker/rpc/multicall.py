"""Multicall support for batching contract reads through the Multicall3 contract."""

from collections.abc import Awaitable, Callable

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

# aggregate3((address target, bool allowFailure, bytes callData)[])
AGGREGATE3_SELECTOR = "82ad56cb"
AGGREGATE3_CALLS = "(address,bool,bytes)[]"
AGGREGATE3_RESULTS = "(bool,bytes)[]"

EthCall = Callable[[str, str], Awaitable[str]]


def _hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(value.removeprefix("0x").removeprefix("0X"))


class MulticallBatcher:
    """
    Batches multiple contract reads into a single Multicall3 aggregate3 call.

    Parameters
    ----------
    multicall_address : str
        Address of the Multicall3 contract
    allow_failure : bool
        Whether one failing call may fail without reverting the batch

    """

    def __init__(self, multicall_address: str, *, allow_failure: bool = True) -> None:
        self.multicall_address = multicall_address
        self.allow_failure = allow_failure
        self._calls: list[tuple[str, bytes]] = []

    def add_call(self, contract_address: str, call_data: str) -> None:
        """
        Add a contract call to the batch.

        Parameters
        ----------
        contract_address : str
            Target contract address
        call_data : str
            Hex encoded calldata (selector and arguments)

        """
        self._calls.append((contract_address.lower(), _hex_to_bytes(call_data)))

    def encode(self) -> str:
        """
        ABI encode the batch as aggregate3 calldata.

        Returns
        -------
        str
            Hex calldata for an eth_call to the multicall contract

        """
        calls = [(target, self.allow_failure, call_data) for target, call_data in self._calls]
        return "0x" + AGGREGATE3_SELECTOR + encode([AGGREGATE3_CALLS], [calls]).hex()

    @staticmethod
    def decode(result: str) -> list[tuple[bool, bytes]]:
        """
        Decode an aggregate3 return value.

        Parameters
        ----------
        result : str
            Hex return data of the eth_call

        Returns
        -------
        list[tuple[bool, bytes]]
            (success, return data) for each call in order

        Raises
        ------
        ValueError
            If the return data is truncated or malformed

        """
        try:
            (results,) = decode([AGGREGATE3_RESULTS], _hex_to_bytes(result))
        except DecodingError as e:
            msg = f"Truncated or malformed multicall response: {e}"
            raise ValueError(msg) from e
        return [(success, return_data) for success, return_data in results]

    async def execute(self, eth_call: EthCall) -> list[tuple[bool, bytes]]:
        """
        Execute all batched calls in one round trip.

        Parameters
        ----------
        eth_call : EthCall
            Coroutine function performing eth_call(to, data) and returning hex data

        Returns
        -------
        list[tuple[bool, bytes]]
            (success, return data) for each call in order

        """
        if not self._calls:
            return []

        result = await eth_call(self.multicall_address, self.encode())
        self._calls = []
        return self.decode(result)

    @property
    def call_count(self) -> int:
        """
        Get number of calls in the batch.

        Returns
        -------
        int
            Number of pending calls

        """
        return len(self._calls)
