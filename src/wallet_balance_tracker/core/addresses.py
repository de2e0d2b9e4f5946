"""Address extraction and comparison helpers."""

import re

ADDRESS_PATTERN = re.compile(r"0x[0-9a-f]+", re.IGNORECASE)


def extract_first_address(text: str | None) -> str | None:
    """
    Find the first hex address in free-form text.

    Parameters
    ----------
    text : str | None
        Text to search, typically an RPC error message

    Returns
    -------
    str | None
        First '0x'-prefixed hex substring, or None if there is none

    Examples
    --------
    >>> extract_first_address("Requested contract address 0x05a4 is not deployed")
    '0x05a4'

    """
    if not text:
        return None
    match = ADDRESS_PATTERN.search(text)
    return match.group(0) if match else None


def normalize_address(address: str) -> str:
    """
    Normalize an address for comparison.

    Lowercases the address and strips left zero padding, so
    '0x0001AB' and '0x1ab' normalize identically.

    """
    value = address.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    return "0x" + (value.lstrip("0") or "0")


def is_equal_address(a: str | None, b: str | None) -> bool:
    """
    Compare two addresses ignoring case and zero padding.

    Parameters
    ----------
    a : str | None
        First address
    b : str | None
        Second address

    Returns
    -------
    bool
        True if both are present and denote the same address

    """
    if not a or not b:
        return False
    return normalize_address(a) == normalize_address(b)
