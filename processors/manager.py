# =============================================================================
# processors/manager.py - Manager resolution and reachability classification
# =============================================================================

import logging
import re
from datetime import datetime
from email.utils import parseaddr
from typing import Optional

from core.identity_cache import IdentityCache
from core.models import (
    DirectoryObject, ManagerState, ManagerStatus, RawAccount, RawContact
)
from utils.filetime import optional_filetime, whole_days

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s<>()\[\],;:\"]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")


def is_valid_email(address: Optional[str]) -> bool:
    """Check that a value is a single bare e-mail address"""
    if not address:
        return False
    display_name, parsed = parseaddr(address)
    if display_name or parsed != address.strip():
        return False
    return bool(_EMAIL_PATTERN.match(parsed))


def effective_email(record: DirectoryObject, override_attribute: Optional[str]) -> Optional[str]:
    """Primary mail, replaced by the override attribute when it holds an address"""
    if override_attribute:
        override = _as_text(record.get(override_attribute))
        if override and '@' in override:
            return override
    return record.mail or None


def find_manager(account: RawAccount, cache: IdentityCache,
                 override_attribute: Optional[str] = None) -> Optional[DirectoryObject]:
    """Follow the override attribute first, then the manager reference"""
    if override_attribute:
        reference = _as_text(account.get(override_attribute))
        if reference:
            manager = cache.get(reference)
            if manager is not None:
                return manager
            logger.debug(f"Override manager {reference} of {account.distinguished_name} not found")

    if account.manager:
        manager = cache.get(account.manager)
        if manager is None:
            logger.debug(f"Manager {account.manager} of {account.distinguished_name} not found")
        return manager
    return None


def classify_manager(manager: DirectoryObject, manager_email: Optional[str]) -> ManagerStatus:
    """Reachability of a resolved manager"""
    enabled = isinstance(manager, RawAccount) and manager.enabled
    if enabled and manager_email:
        if is_valid_email(manager_email):
            return ManagerStatus.ENABLED
        return ManagerStatus.ENABLED_BAD_EMAIL
    if enabled:
        return ManagerStatus.NO_EMAIL
    if isinstance(manager, RawContact):
        # Contacts carry no enabled flag
        return ManagerStatus.ENABLED
    return ManagerStatus.DISABLED


def resolve_manager(account: RawAccount, cache: IdentityCache, now: datetime,
                    override_manager_attribute: Optional[str] = None,
                    override_email_attribute: Optional[str] = None) -> ManagerState:
    """Resolve the manager of one account and classify its reachability"""
    manager = find_manager(account, cache, override_manager_attribute)

    if manager is None:
        if account.object_class == 'user':
            status = ManagerStatus.MISSING
        else:
            status = ManagerStatus.NOT_AVAILABLE
        return ManagerState(status=status)

    manager_email = effective_email(manager, override_email_attribute)

    sam_account_name = None
    last_logon_days = None
    if isinstance(manager, RawAccount):
        sam_account_name = manager.sam_account_name or None
        last_logon = optional_filetime(manager.last_logon_timestamp)
        if last_logon:
            last_logon_days = whole_days(last_logon, now)

    return ManagerState(
        status=classify_manager(manager, manager_email),
        display_name=manager.display_name or None,
        sam_account_name=sam_account_name,
        email=manager_email,
        last_logon_days=last_logon_days,
        object_type=manager.object_class,
        distinguished_name=manager.distinguished_name,
    )


def _as_text(value) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode('utf-8', errors='replace')
    text = str(value).strip()
    return text or None
