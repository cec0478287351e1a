# =============================================================================
# core/identity_cache.py - Cross-domain directory object cache
# =============================================================================

import logging
from typing import Dict, Iterable, Optional

from core.models import DirectoryObject, RawAccount, RawContact


class IdentityCache:
    """Lookup of accounts and contacts by distinguished name or sAMAccountName.

    Built once per resolution pass from everything fetched across the forest.
    Later insertions under an existing key replace the earlier record; this
    only matters for sAMAccountName collisions between domains, which are
    used as a manager-lookup fallback.
    """

    def __init__(self):
        self._records: Dict[str, DirectoryObject] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def build(cls, accounts: Iterable[RawAccount],
              contacts: Iterable[RawContact]) -> 'IdentityCache':
        """Insert accounts under DN and sAMAccountName, then contacts under DN"""
        cache = cls()
        for account in accounts:
            cache.put(account.distinguished_name, account)
            cache.put(account.sam_account_name, account)
        for contact in contacts:
            cache.put(contact.distinguished_name, contact)
        cache.logger.debug(f"Identity cache built with {len(cache)} keys")
        return cache

    def put(self, key: Optional[str], record: DirectoryObject) -> None:
        if not key:
            return
        self._records[key] = record

    def get(self, key: Optional[str]) -> Optional[DirectoryObject]:
        if not key:
            return None
        return self._records.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
