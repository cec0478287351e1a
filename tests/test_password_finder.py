"""Tests for the forest-wide resolution workflow."""

from unittest.mock import MagicMock

import pytest

from core.ad_client import DirectoryFetchError
from core.models import DomainTarget, ManagerStatus, RecordType, ResolverOptions
from core.password_finder import PasswordFinder
from utils.filetime import FGPP_SENTINEL
from conftest import NOW, make_account, make_contact

AD = DomainTarget(dns_name="ad.example.com", netbios_name="AD")
EMEA = DomainTarget(dns_name="emea.example.com", netbios_name="EMEA")
BROKEN = DomainTarget(dns_name="broken.example.com", netbios_name="BROKEN")


def _emea_account(sam, **overrides):
    overrides.setdefault("distinguished_name", f"CN={sam},OU=Users,DC=emea,DC=example,DC=com")
    overrides.setdefault("netbios_name", "EMEA")
    return make_account(sam, **overrides)


@pytest.fixture
def directory():
    dana = _emea_account("dana")
    gina = make_contact("gina")
    data = {
        "ad.example.com": (
            [
                make_account("carl", manager=dana.distinguished_name),
                make_account("hank", manager=gina.distinguished_name),
                make_account("TRUST$", user_account_control=0x800),
                make_account("bob", password_expiry_time=FGPP_SENTINEL),
            ],
            [gina],
        ),
        "emea.example.com": ([dana], []),
    }

    def fetch_domain(target, extra_attributes):
        if target.dns_name not in data:
            raise DirectoryFetchError(f"Cannot bind to {target.dns_name}")
        return data[target.dns_name]

    client = MagicMock()
    client.fetch_domain.side_effect = fetch_domain
    return client


def test_output_keyed_by_dn_in_fetch_order(directory) -> None:
    finder = PasswordFinder(directory)
    output = finder.find_passwords([AD, EMEA], now=NOW)
    assert [record.sam_account_name for record in output.values()] == ["carl", "hank", "bob", "dana"]
    assert all(key == record.distinguished_name for key, record in output.items())


def test_cross_domain_manager_resolution(directory) -> None:
    output = PasswordFinder(directory).find_passwords([AD, EMEA], now=NOW)
    carl = output["CN=carl,OU=Users,DC=ad,DC=example,DC=com"]
    assert carl.manager_status is ManagerStatus.ENABLED
    assert carl.manager_sam_account_name == "dana"
    hank = output["CN=hank,OU=Users,DC=ad,DC=example,DC=com"]
    assert hank.manager_status is ManagerStatus.ENABLED
    assert hank.manager_type == "contact"


def test_trust_accounts_are_skipped(directory) -> None:
    finder = PasswordFinder(directory)
    output = finder.find_passwords([AD, EMEA], now=NOW)
    assert all(record.sam_account_name != "TRUST$" for record in output.values())
    assert finder.stats.trust_accounts_skipped == 1


def test_fgpp_account_never_expires(directory) -> None:
    output = PasswordFinder(directory).find_passwords([AD], now=NOW)
    bob = output["CN=bob,OU=Users,DC=ad,DC=example,DC=com"]
    assert bob.password_never_expires is True
    assert bob.password_expiry_date is None


def test_failed_domain_is_skipped(directory) -> None:
    finder = PasswordFinder(directory)
    output = finder.find_passwords([BROKEN, EMEA], now=NOW)
    assert list(output) == ["CN=dana,OU=Users,DC=emea,DC=example,DC=com"]
    assert finder.stats.domains_failed == ["broken.example.com"]
    assert finder.stats.domains_processed == 1


def test_manager_in_failed_domain_is_missing(directory) -> None:
    output = PasswordFinder(directory).find_passwords([AD], now=NOW)
    carl = output["CN=carl,OU=Users,DC=ad,DC=example,DC=com"]
    assert carl.manager_status is ManagerStatus.MISSING


def test_contacts_included_after_accounts(directory) -> None:
    finder = PasswordFinder(directory, ResolverOptions(include_contacts=True))
    output = finder.find_passwords([AD, EMEA], now=NOW)
    records = list(output.values())
    assert records[-1].type is RecordType.CONTACT
    assert records[-1].display_name == "Gina"


def test_netbios_key_skips_contacts(directory) -> None:
    options = ResolverOptions(include_contacts=True, key_field="netbios_sam_account_name")
    output = PasswordFinder(directory, options).find_passwords([AD, EMEA], now=NOW)
    assert list(output) == ["AD\\carl", "AD\\hank", "AD\\bob", "EMEA\\dana"]


def test_as_list_returns_records(directory) -> None:
    options = ResolverOptions(as_list=True)
    records = PasswordFinder(directory, options).find_passwords([AD, EMEA], now=NOW)
    assert isinstance(records, list)
    assert len(records) == 4


def test_records_without_key_are_left_out(directory) -> None:
    options = ResolverOptions(key_field="manager_email")
    finder = PasswordFinder(directory, options)
    output = finder.find_passwords([AD, EMEA], now=NOW)
    assert list(output) == ["dana@example.com", "gina@partner.example.org"]
    assert finder.stats.records_without_key == 2


def test_extra_attributes_requested_from_fetcher(directory) -> None:
    options = ResolverOptions(
        override_email_attribute="extensionAttribute1",
        override_manager_attribute="extensionAttribute2",
        extension_attributes=["employeeID", "extensionAttribute1"],
    )
    PasswordFinder(directory, options).find_passwords([EMEA], now=NOW)
    directory.fetch_domain.assert_called_once_with(
        EMEA, ["extensionAttribute1", "extensionAttribute2", "employeeID"]
    )


def test_unknown_key_field_rejected() -> None:
    with pytest.raises(ValueError):
        ResolverOptions(key_field="favourite_colour")
