"""Classification of balance query failures into user-facing messages."""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from wallet_balance_tracker.core.addresses import extract_first_address, is_equal_address
from wallet_balance_tracker.core.models import ClassifiedError, ErrorCategory

logger = logging.getLogger(__name__)

UNINITIALIZED_CONTRACT = "StarknetErrorCode.UNINITIALIZED_CONTRACT"

# Rate limiting and bad gateway responses from the RPC endpoint
NETWORK_ERROR_CODES = frozenset({429, 502})

_NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def is_numeric(value: Any) -> bool:
    """
    Check whether a value is a finite number or a numeric string.

    Parameters
    ----------
    value : Any
        Value to check

    Returns
    -------
    bool
        True for ints, finite floats, and strings such as '429' or ' 1.5 '.
        False for bools, None, and strings like '429x'.

    """
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        return bool(_NUMERIC_PATTERN.match(value.strip()))
    return False


def is_network_error(error_code: Any) -> bool:
    """Check whether an error code is a transient infrastructure failure."""
    if not is_numeric(error_code):
        return False
    if isinstance(error_code, int):
        return error_code in NETWORK_ERROR_CODES
    try:
        return float(error_code) in NETWORK_ERROR_CODES
    except (OverflowError, ValueError):
        return False


def _get_field(error: Any, *names: str) -> Any:
    for name in names:
        if isinstance(error, Mapping):
            if name in error:
                return error[name]
        elif hasattr(error, name):
            return getattr(error, name)
    return None


def get_error_code(error: Any) -> Any:
    """Read the error code from an exception or an error mapping."""
    return _get_field(error, "error_code", "errorCode", "code")


def get_error_message(error: Any) -> str:
    """Read the error message from an exception or an error mapping."""
    message = _get_field(error, "message")
    if message is None:
        if isinstance(error, BaseException):
            return str(error)
        return ""
    return str(message)


def classify_error(
    error: Any,
    token_address: str,
    multicall_address: str | None = None,
    *,
    network_id: str | None = None,
) -> ClassifiedError:
    """
    Map a raw balance query failure onto a fixed set of messages.

    Parameters
    ----------
    error : Any
        Exception or error mapping exposing an error code and a message
    token_address : str
        Address of the token whose balance was queried
    multicall_address : str | None
        Address of the network's multicall contract
    network_id : str | None
        Network the query ran against, used in descriptions

    Returns
    -------
    ClassifiedError
        Categorized message. Uninitialized contracts are attributed to the
        token, the multicall contract, or another contract in that order;
        codes 429 and 502 are network errors; anything else is generic.

    """
    error_code = get_error_code(error)
    message = get_error_message(error)
    where = f"network {network_id}" if network_id else "this network"

    if error_code == UNINITIALIZED_CONTRACT:
        # message like "Requested contract address 0x0575...87f4 is not deployed"
        contract_address = extract_first_address(message)
        if contract_address:
            if is_equal_address(contract_address, token_address):
                return ClassifiedError(
                    message=ErrorCategory.TOKEN_NOT_FOUND,
                    description=f"Token with address {token_address} not deployed on {where}",
                )
            if multicall_address and is_equal_address(contract_address, multicall_address):
                return ClassifiedError(
                    message=ErrorCategory.NO_MULTICALL,
                    description=f"Multicall contract with address {multicall_address} not deployed on {where}",
                )
            return ClassifiedError(
                message=ErrorCategory.MISSING_CONTRACT,
                description=f"Contract with address {contract_address} not deployed on {where}",
            )
        return ClassifiedError(message=ErrorCategory.MISSING_CONTRACT, description=message)

    if is_network_error(error_code):
        return ClassifiedError(message=ErrorCategory.NETWORK_ERROR, description=message)

    logger.warning("Unhandled balance error code %r: %r", error_code, error)
    return ClassifiedError(message=ErrorCategory.GENERIC_ERROR, description=message)
