"""Tests for userAccountControl decoding."""

from core.account_control import decode_account_control, is_trust_account


def test_normal_enabled_account() -> None:
    assert decode_account_control(0x200) == ['NORMAL_ACCOUNT']


def test_multiple_flags_in_bit_order() -> None:
    assert decode_account_control(0x10222) == [
        'ACCOUNTDISABLE', 'PASSWD_NOTREQD', 'NORMAL_ACCOUNT', 'DONT_EXPIRE_PASSWORD'
    ]


def test_empty_value() -> None:
    assert decode_account_control(0) == []


def test_trust_account_detection() -> None:
    assert is_trust_account(0x820) is True
    assert is_trust_account(0x200) is False
    assert is_trust_account(0x1000) is False
