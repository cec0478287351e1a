"""Tests for environment-driven configuration."""

import pytest

from core.models import DomainTarget
from utils import config as config_module
from utils.config import Config

ENV_VARS = [
    "AD_SERVER", "AD_USERNAME", "AD_PASSWORD", "AD_DOMAINS", "AD_USE_SSL", "AD_PAGE_SIZE",
    "OVERRIDE_EMAIL_ATTRIBUTE", "OVERRIDE_MANAGER_ATTRIBUTE", "OUTPUT_KEY_FIELD",
    "EXTENSION_ATTRIBUTES", "INCLUDE_CONTACTS",
]


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_missing_vars_reported(env) -> None:
    config = Config()
    assert config.validate_ad_config() is False
    assert config.get_missing_ad_vars() == ["AD_USERNAME", "AD_PASSWORD", "AD_SERVER or AD_DOMAINS"]


def test_domains_replace_server_requirement(env) -> None:
    env.setenv("AD_USERNAME", "svc")
    env.setenv("AD_PASSWORD", "secret")
    env.setenv("AD_DOMAINS", "ad.example.com, emea.example.com")
    config = Config()
    assert config.validate_ad_config() is True
    assert config.domain_targets() == [
        DomainTarget(dns_name="ad.example.com"), DomainTarget(dns_name="emea.example.com")
    ]


def test_resolver_options_from_environment(env) -> None:
    env.setenv("OVERRIDE_EMAIL_ATTRIBUTE", "extensionAttribute1")
    env.setenv("OUTPUT_KEY_FIELD", "netbios_sam_account_name")
    env.setenv("EXTENSION_ATTRIBUTES", "employeeID,department")
    env.setenv("INCLUDE_CONTACTS", "yes")
    options = Config().resolver_options()
    assert options.override_email_attribute == "extensionAttribute1"
    assert options.override_manager_attribute is None
    assert options.key_field == "netbios_sam_account_name"
    assert options.extension_attributes == ["employeeID", "department"]
    assert options.include_contacts is True


def test_defaults(env) -> None:
    config = Config()
    assert config.ad_use_ssl is False
    assert config.ad_page_size == 500
    assert config.resolver_options().key_field == "distinguished_name"
