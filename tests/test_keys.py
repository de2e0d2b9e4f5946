"""Tests for request key construction."""

import pytest

from wallet_balance_tracker.core.keys import build_request_key

TOKEN = "0xtoken"
ACCOUNT = "0xaccount"
MULTICALL = "0xmulticall"


def test_key_is_deterministic():
    assert build_request_key(TOKEN, "ethereum", ACCOUNT, MULTICALL) == build_request_key(
        TOKEN, "ethereum", ACCOUNT, MULTICALL
    )


def test_key_layout():
    assert build_request_key(TOKEN, "ethereum", ACCOUNT, MULTICALL) == "balanceOf:0xtoken:ethereum:0xaccount:0xmulticall"
    assert build_request_key(TOKEN, "ethereum", ACCOUNT) == "balanceOf:0xtoken:ethereum:0xaccount"


@pytest.mark.parametrize(
    "changed",
    [
        ("0xother", "ethereum", ACCOUNT, MULTICALL),
        (TOKEN, "base", ACCOUNT, MULTICALL),
        (TOKEN, "ethereum", "0xother", MULTICALL),
        (TOKEN, "ethereum", ACCOUNT, "0xother"),
        (TOKEN, "ethereum", ACCOUNT, None),
    ],
)
def test_any_differing_component_changes_key(changed):
    assert build_request_key(*changed) != build_request_key(TOKEN, "ethereum", ACCOUNT, MULTICALL)


def test_components_cannot_shift_between_positions():
    """Swapping values between positions yields a different key."""
    assert build_request_key("a", "b", "c") != build_request_key("b", "a", "c")


@pytest.mark.parametrize(
    "args",
    [
        ("", "ethereum", ACCOUNT),
        (TOKEN, "", ACCOUNT),
        (TOKEN, "ethereum", ""),
    ],
)
def test_empty_required_component_rejected(args):
    with pytest.raises(ValueError, match="must not be empty"):
        build_request_key(*args)


def test_separator_in_component_is_escaped():
    assert build_request_key(TOKEN, "eip155:1", ACCOUNT) == "balanceOf:0xtoken:eip155\\:1:0xaccount"


@pytest.mark.parametrize(
    ("first", "second"),
    [
        (("a:b", "c", "d"), ("a", "b:c", "d")),
        (("a", "b", "c", "d"), ("a", "b", "c:d")),
        (("a\\", "b", "c"), ("a", "\\b", "c")),
        (("a\\:b", "c", "d"), ("a", "\\:b:c", "d")),
    ],
)
def test_escaped_components_never_collide(first, second):
    assert build_request_key(*first) != build_request_key(*second)
