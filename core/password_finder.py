# =============================================================================
# core/password_finder.py - Forest-wide password state resolution
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

from core.account_control import is_trust_account
from core.ad_client import ActiveDirectoryClient, DirectoryFetchError
from core.identity_cache import IdentityCache
from core.models import (
    DomainTarget, RawAccount, RawContact, ResolvedRecord, ResolverOptions, ResolutionStats
)
from processors.record_builder import RecordBuilder, record_key

OutputMap = Dict[str, ResolvedRecord]


class PasswordFinder:
    """Resolves password expiry and manager state for every account in the forest.

    One call to find_passwords() is one pass: every domain is fetched in
    order, an IdentityCache is built from all fetched objects, and each
    account (then each contact) is folded into a fresh output mapping.
    """

    def __init__(self, ad_client: ActiveDirectoryClient, options: Optional[ResolverOptions] = None):
        self.ad_client = ad_client
        self.options = options or ResolverOptions()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.stats = ResolutionStats()

    def find_passwords(self, domains: List[DomainTarget],
                       now: Optional[datetime] = None) -> Union[OutputMap, List[ResolvedRecord]]:
        """Main resolution workflow"""
        self.logger.info(f"Starting password resolution for {len(domains)} domains")
        self.stats = ResolutionStats()

        accounts, contacts = self.fetch_all(domains)
        return self.resolve(accounts, contacts, now)

    def fetch_all(self, domains: List[DomainTarget]) -> Tuple[List[RawAccount], List[RawContact]]:
        """Fetch every domain in order; a failed domain contributes nothing"""
        accounts: List[RawAccount] = []
        contacts: List[RawContact] = []

        for target in domains:
            try:
                domain_accounts, domain_contacts = self.ad_client.fetch_domain(
                    target, self.options.extra_attributes
                )
            except DirectoryFetchError as e:
                self.logger.error(f"Skipping domain {target.dns_name}: {e}")
                self.stats.domains_failed.append(target.dns_name)
                continue

            accounts.extend(domain_accounts)
            contacts.extend(domain_contacts)
            self.stats.domains_processed += 1

        self.stats.accounts_fetched = len(accounts)
        self.stats.contacts_fetched = len(contacts)
        return accounts, contacts

    def resolve(self, accounts: List[RawAccount], contacts: List[RawContact],
                now: Optional[datetime] = None) -> Union[OutputMap, List[ResolvedRecord]]:
        """Resolve already fetched objects into the output mapping"""
        now = now or datetime.now(timezone.utc)
        cache = IdentityCache.build(accounts, contacts)
        builder = RecordBuilder(cache, self.options, now)
        output: OutputMap = {}

        for account in accounts:
            if is_trust_account(account.user_account_control):
                self.logger.debug(f"Skipping trust account {account.sam_account_name}")
                self.stats.trust_accounts_skipped += 1
                continue
            self._insert(output, builder.build_user(account))

        if self.options.include_contacts:
            if self.options.key_field == 'netbios_sam_account_name':
                self.logger.info("Contacts have no NetBIOS account name, leaving them out of the output")
            else:
                for contact in contacts:
                    self._insert(output, builder.build_contact(contact))

        self.log_statistics()
        if self.options.as_list:
            return list(output.values())
        return output

    def _insert(self, output: OutputMap, record: ResolvedRecord) -> None:
        key = record_key(record, self.options.key_field)
        if key is None:
            self.logger.warning(
                f"Record {record.distinguished_name} has no {self.options.key_field}, not added to output"
            )
            self.stats.records_without_key += 1
            return
        if key in output:
            self.logger.warning(f"Duplicate output key {key}, replacing {output[key].distinguished_name}")
        else:
            self.stats.records_emitted += 1
        output[key] = record

    def log_statistics(self) -> None:
        """Log resolution statistics"""
        stats = self.stats
        self.logger.info(
            f"Domains processed: {stats.domains_processed}, failed: {stats.domains_failed or 'none'}"
        )
        self.logger.info(
            f"Accounts: {stats.accounts_fetched}, contacts: {stats.contacts_fetched}, "
            f"trust accounts skipped: {stats.trust_accounts_skipped}, records: {stats.records_emitted}"
        )
