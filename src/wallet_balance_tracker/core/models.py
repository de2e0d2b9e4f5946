"""Data models for networks, accounts, tokens, and balance query results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

RequestKey = str


class ErrorCategory(StrEnum):
    """User-facing label of a classified balance query failure."""

    TOKEN_NOT_FOUND = "Token not found"
    NO_MULTICALL = "No Multicall"
    MISSING_CONTRACT = "Missing contract"
    NETWORK_ERROR = "Network error"
    GENERIC_ERROR = "Error"


class EntryStatus(StrEnum):
    """Lifecycle state of a cached balance request."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class Network(BaseModel):
    """
    Network an account lives on.

    Attributes
    ----------
    id : str
        Network identifier (e.g., 'ethereum', 'base')
    chain_id : int | None
        Numeric chain ID
    rpc_url : str | None
        JSON-RPC endpoint used for balance queries
    multicall_address : str | None
        Address of the network's multicall contract, if deployed

    """

    id: str
    chain_id: int | None = None
    rpc_url: str | None = None
    multicall_address: str | None = None


class Account(BaseModel):
    """
    Wallet account on a specific network.

    Attributes
    ----------
    address : str
        Account address
    network : Network
        Network the account belongs to

    """

    address: str
    network: Network

    @property
    def network_id(self) -> str:
        """Identifier of the account's network."""
        return self.network.id

    def to_base_wallet_account(self) -> tuple[str, str]:
        """
        Reduce the account to the identity the balance provider needs.

        Returns
        -------
        tuple[str, str]
            (address, network_id)

        """
        return self.address, self.network.id


class Token(BaseModel):
    """
    Fungible token information.

    Attributes
    ----------
    address : str
        Token contract address
    network_id : str
        Network the token contract is deployed on
    symbol : str | None
        Token symbol (e.g., 'ETH', 'USDC')
    decimals : int | None
        Number of decimal places
    name : str | None
        Full token name

    """

    address: str
    network_id: str
    symbol: str | None = None
    decimals: int | None = None
    name: str | None = None


class ClassifiedError(BaseModel):
    """
    Balance query failure reduced to a presentable message.

    Only :func:`wallet_balance_tracker.core.classifier.classify_error` builds these.

    Attributes
    ----------
    message : str
        Category label, one of :class:`ErrorCategory`
    description : str
        Human readable detail

    """

    model_config = ConfigDict(frozen=True)

    message: str
    description: str

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.message)


class FetchPolicy(BaseModel):
    """
    Fetch tuning applied to a balance cache subscription.

    Attributes
    ----------
    dedupe_interval : float
        Seconds during which a fresh value is reused instead of refetched
    error_retry_count : int
        Number of retries when the fetch function raises
    error_retry_interval : float
        Base delay in seconds between retries (exponential backoff)
    refresh_interval : float
        Polling period in seconds while subscribed. 0 disables polling.
    cache_ttl : float
        Seconds after which an entry nobody observes may be pruned

    """

    model_config = ConfigDict(frozen=True)

    dedupe_interval: float = Field(default=2.0, ge=0)
    error_retry_count: int = Field(default=0, ge=0)
    error_retry_interval: float = Field(default=1.0, ge=0)
    refresh_interval: float = Field(default=0.0, ge=0)
    cache_ttl: float = Field(default=300.0, ge=0)
