"""Tests for IdentityCache construction and lookup."""

from core.identity_cache import IdentityCache
from conftest import make_account, make_contact


def test_accounts_indexed_by_dn_and_sam() -> None:
    alice = make_account("alice")
    cache = IdentityCache.build([alice], [])
    assert cache.get(alice.distinguished_name) is alice
    assert cache.get("alice") is alice
    assert len(cache) == 2


def test_contacts_indexed_by_dn_only() -> None:
    contact = make_contact("gina")
    cache = IdentityCache.build([], [contact])
    assert cache.get(contact.distinguished_name) is contact
    assert cache.get("gina") is None
    assert len(cache) == 1


def test_sam_collision_last_writer_wins() -> None:
    first = make_account("bob")
    second = make_account("bob", distinguished_name="CN=bob,OU=Users,DC=emea,DC=example,DC=com")
    cache = IdentityCache.build([first, second], [])
    assert cache.get("bob") is second
    assert cache.get(first.distinguished_name) is first


def test_empty_keys_are_ignored() -> None:
    nameless = make_account("carol", sam_account_name="")
    cache = IdentityCache.build([nameless], [])
    assert len(cache) == 1
    assert cache.get("") is None
    assert cache.get(None) is None


def test_missing_key_returns_none() -> None:
    cache = IdentityCache()
    cache.put("CN=x,DC=ad", make_contact("x"))
    assert "CN=x,DC=ad" in cache
    assert cache.get("CN=y,DC=ad") is None
