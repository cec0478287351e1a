# =============================================================================
# processors/record_builder.py - Resolved record assembly
# =============================================================================

from datetime import datetime
from typing import Any, Dict, Optional

from core.identity_cache import IdentityCache
from core.models import (
    RawAccount, RawContact, ResolvedRecord, RecordType, ResolverOptions
)
from processors.manager import effective_email, resolve_manager
from processors.password_state import resolve_password_state
from utils.country_codes import resolve_country
from utils.dn_utils import dn_to_container, dn_to_domain
from utils.filetime import optional_filetime, whole_days


class RecordBuilder:
    """Builds ResolvedRecord objects for accounts and contacts"""

    def __init__(self, cache: IdentityCache, options: ResolverOptions, now: datetime):
        self.cache = cache
        self.options = options
        self.now = now

    def build_user(self, account: RawAccount) -> ResolvedRecord:
        """Combine password state, manager state and directory metadata"""
        password = resolve_password_state(account, self.now)
        manager = resolve_manager(
            account, self.cache, self.now,
            override_manager_attribute=self.options.override_manager_attribute,
            override_email_attribute=self.options.override_email_attribute,
        )
        country, country_code = resolve_country(account.country_code)

        last_logon = optional_filetime(account.last_logon_timestamp)
        last_logon_days = whole_days(last_logon, self.now) if last_logon else None

        return ResolvedRecord(
            distinguished_name=account.distinguished_name,
            type=RecordType.USER,
            user_principal_name=account.user_principal_name or None,
            sam_account_name=account.sam_account_name or None,
            domain=dn_to_domain(account.distinguished_name),
            netbios_name=account.netbios_name or None,
            organizational_unit=dn_to_container(account.distinguished_name),
            display_name=account.display_name,
            given_name=account.given_name or None,
            surname=account.surname or None,
            enabled=account.enabled,
            email_address=effective_email(account, self.options.override_email_attribute),
            system_email_address=account.mail or None,
            has_mailbox=account.has_mailbox,
            country=country,
            country_code=country_code,
            member_of=tuple(account.member_of),
            password_expiry_date=password.expiry_date,
            days_to_expire=password.days_to_expire,
            password_expired=account.password_expired,
            password_never_expires=password.never_expires,
            password_not_required=account.password_not_required,
            password_at_next_logon=password.at_next_logon,
            password_last_set=password.last_set,
            password_days_since_set=password.days_since_set,
            last_logon_date=last_logon,
            last_logon_days=last_logon_days,
            manager_display_name=manager.display_name,
            manager_sam_account_name=manager.sam_account_name,
            manager_email=manager.email,
            manager_status=manager.status,
            manager_last_logon_days=manager.last_logon_days,
            manager_type=manager.object_type,
            manager_distinguished_name=manager.distinguished_name,
            extensions=self._extensions(account),
        )

    def build_contact(self, contact: RawContact) -> ResolvedRecord:
        """Contacts only carry identity and mail; everything else stays unset"""
        return ResolvedRecord(
            distinguished_name=contact.distinguished_name,
            type=RecordType.CONTACT,
            domain=dn_to_domain(contact.distinguished_name),
            organizational_unit=dn_to_container(contact.distinguished_name),
            display_name=contact.display_name or contact.name,
            enabled=True,
            email_address=contact.mail or None,
            system_email_address=contact.mail or None,
            member_of=tuple(contact.member_of),
            extensions=self._extensions(contact),
        )

    def _extensions(self, record) -> Dict[str, Any]:
        return {name: record.get(name) for name in self.options.extension_attributes}


def record_key(record: ResolvedRecord, key_field: str) -> Optional[str]:
    """Value of the configured key field, or None when the record has none"""
    value = getattr(record, key_field, None)
    if value is None or value == '':
        return None
    return str(value)

