# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv

from core.models import DomainTarget, ResolverOptions

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def ad_domains(self) -> List[str]:
        return _split(os.getenv("AD_DOMAINS"))

    @property
    def ad_use_ssl(self) -> bool:
        return _flag(os.getenv("AD_USE_SSL"))

    @property
    def ad_page_size(self) -> int:
        return int(os.getenv("AD_PAGE_SIZE", "500"))

    @property
    def override_email_attribute(self) -> Optional[str]:
        return os.getenv("OVERRIDE_EMAIL_ATTRIBUTE") or None

    @property
    def override_manager_attribute(self) -> Optional[str]:
        return os.getenv("OVERRIDE_MANAGER_ATTRIBUTE") or None

    @property
    def output_key_field(self) -> str:
        return os.getenv("OUTPUT_KEY_FIELD") or "distinguished_name"

    @property
    def extension_attributes(self) -> List[str]:
        return _split(os.getenv("EXTENSION_ATTRIBUTES"))

    @property
    def include_contacts(self) -> bool:
        return _flag(os.getenv("INCLUDE_CONTACTS"))

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        required = [self.ad_username, self.ad_password]
        # Without an explicit domain list the forest is discovered through AD_SERVER
        if not self.ad_domains:
            required.append(self.ad_server)
        return all(required)

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
        ]
        if not self.ad_domains:
            vars_and_names.append((self.ad_server, "AD_SERVER or AD_DOMAINS"))
        return [name for var, name in vars_and_names if not var]

    def domain_targets(self) -> List[DomainTarget]:
        """Configured domains, each reached through its own DNS name"""
        return [DomainTarget(dns_name=name) for name in self.ad_domains]

    def resolver_options(self) -> ResolverOptions:
        return ResolverOptions(
            override_email_attribute=self.override_email_attribute,
            override_manager_attribute=self.override_manager_attribute,
            key_field=self.output_key_field,
            extension_attributes=self.extension_attributes,
            include_contacts=self.include_contacts,
        )


def _split(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def _flag(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in _TRUE_VALUES
