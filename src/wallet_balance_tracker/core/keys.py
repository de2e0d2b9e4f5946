"""Cache key construction for balance requests."""

from wallet_balance_tracker.core.models import RequestKey

KEY_PREFIX = "balanceOf"
KEY_SEPARATOR = ":"
ESCAPE = "\\"


def _escape(component: str) -> str:
    return component.replace(ESCAPE, ESCAPE * 2).replace(KEY_SEPARATOR, ESCAPE + KEY_SEPARATOR)


def build_request_key(
    token_address: str,
    network_id: str,
    account_address: str,
    multicall_address: str | None = None,
) -> RequestKey:
    """
    Build the cache key identifying one balance request.

    Components are joined in a fixed order. An absent multicall address is
    omitted rather than replaced, so its presence is part of the key.
    Separators inside a component are backslash-escaped, so network ids
    like 'eip155:1' keep keys unambiguous.

    Parameters
    ----------
    token_address : str
        Token contract address
    network_id : str
        Network identifier
    account_address : str
        Wallet account address
    multicall_address : str | None
        Multicall contract address of the network

    Returns
    -------
    RequestKey
        Key such as 'balanceOf:0xtoken:ethereum:0xaccount:0xmulticall'

    Raises
    ------
    ValueError
        If a required component is empty

    """
    required = {
        "token_address": token_address,
        "network_id": network_id,
        "account_address": account_address,
    }
    for name, value in required.items():
        if not value:
            msg = f"{name} must not be empty"
            raise ValueError(msg)

    parts = [token_address, network_id, account_address]
    if multicall_address:
        parts.append(multicall_address)

    return KEY_SEPARATOR.join([KEY_PREFIX, *(_escape(part) for part in parts)])
