"""Tests for password expiry derivation."""

from datetime import datetime, timedelta, timezone

import pytest

from core.models import RawTimestamp
from processors.password_state import resolve_password_state
from utils.filetime import FGPP_SENTINEL
from conftest import NOW, make_account, to_filetime


def test_future_expiry_decodes_with_positive_days() -> None:
    account = make_account("alice", password_expiry_time=132900000000000000, password_never_expires=False)
    state = resolve_password_state(account, NOW)
    assert state.expiry_date == datetime(2022, 2, 22, 10, 40, tzinfo=timezone.utc)
    assert state.days_to_expire == 52
    assert state.never_expires is False
    assert state.at_next_logon is False


def test_fgpp_sentinel_forces_never_expires() -> None:
    account = make_account("bob", password_expiry_time=FGPP_SENTINEL, password_never_expires=False)
    state = resolve_password_state(account, NOW)
    assert state.never_expires is True
    assert state.expiry_date is None
    assert state.days_to_expire is None


def test_never_expires_flag_clears_expiry() -> None:
    account = make_account("carol", password_never_expires=True)
    state = resolve_password_state(account, NOW)
    assert state.never_expires is True
    assert state.expiry_date is None
    assert state.days_to_expire is None


def test_password_never_set_clears_expiry() -> None:
    account = make_account("dave", pwd_last_set=None)
    state = resolve_password_state(account, NOW)
    assert state.expiry_date is None
    assert state.days_to_expire is None
    assert state.last_set is None
    assert state.days_since_set is None


def test_must_change_at_next_logon() -> None:
    account = make_account("erin", pwd_last_set=0, password_expiry_time=0)
    state = resolve_password_state(account, NOW)
    assert state.at_next_logon is True
    assert state.expiry_date is None
    assert state.days_to_expire is None


def test_zero_last_set_with_real_expiry_is_not_next_logon() -> None:
    account = make_account("frank", pwd_last_set=0)
    state = resolve_password_state(account, NOW)
    assert state.at_next_logon is False


def test_epoch_expiry_with_password_set_is_not_next_logon() -> None:
    account = make_account("grace", password_expiry_time=0)
    state = resolve_password_state(account, NOW)
    assert state.at_next_logon is False
    assert state.expiry_date.year == 1601
    assert state.days_to_expire < 0


def test_malformed_expiry_keeps_raw_value_without_days() -> None:
    # Known divergence: the date keeps the undecodable value while the day count stays unset
    account = make_account("heidi", password_expiry_time="garbage")
    state = resolve_password_state(account, NOW)
    assert state.expiry_date == RawTimestamp("garbage")
    assert state.days_to_expire is None


def test_expired_password_has_negative_days() -> None:
    account = make_account("ivan", password_expiry_time=to_filetime(NOW - timedelta(days=5)))
    state = resolve_password_state(account, NOW)
    assert state.days_to_expire == -5


def test_days_since_set() -> None:
    account = make_account("judy", pwd_last_set=to_filetime(NOW - timedelta(days=42, hours=6)))
    state = resolve_password_state(account, NOW)
    assert state.days_since_set == 42
    assert state.last_set == NOW - timedelta(days=42, hours=6)


def test_naive_now_is_rejected() -> None:
    account = make_account("kate", password_expiry_time=132900000000000000)
    with pytest.raises(TypeError):
        resolve_password_state(account, datetime(2022, 1, 1))
