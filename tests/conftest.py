"""Shared fixtures for the password finder test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from core.identity_cache import IdentityCache
from core.models import RawAccount, RawContact, ResolverOptions
from utils.filetime import WINDOWS_EPOCH

NOW = datetime(2022, 1, 1, tzinfo=timezone.utc)


def to_filetime(moment: datetime) -> int:
    """Exact FILETIME tick count for an aware datetime"""
    return (moment - WINDOWS_EPOCH) // timedelta(microseconds=1) * 10


def make_account(sam: str, **overrides) -> RawAccount:
    values = dict(
        distinguished_name=f"CN={sam},OU=Users,DC=ad,DC=example,DC=com",
        sam_account_name=sam,
        user_principal_name=f"{sam}@ad.example.com",
        display_name=sam.title(),
        mail=f"{sam}@example.com",
        user_account_control=0x200,
        pwd_last_set=to_filetime(NOW - timedelta(days=10)),
        password_expiry_time=to_filetime(NOW + timedelta(days=80)),
        last_logon_timestamp=to_filetime(NOW - timedelta(days=3)),
        netbios_name="AD",
    )
    values.update(overrides)
    return RawAccount(**values)


def make_contact(name: str, **overrides) -> RawContact:
    values = dict(
        distinguished_name=f"CN={name},OU=Contacts,DC=ad,DC=example,DC=com",
        display_name=name.title(),
        name=name,
        mail=f"{name}@partner.example.org",
    )
    values.update(overrides)
    return RawContact(**values)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def options() -> ResolverOptions:
    return ResolverOptions()


@pytest.fixture
def manager_account() -> RawAccount:
    return make_account("dana", display_name="Dana Manager")


@pytest.fixture
def cache(manager_account: RawAccount) -> IdentityCache:
    return IdentityCache.build([manager_account], [make_contact("gina")])
