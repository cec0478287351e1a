# =============================================================================
# core/ad_client.py - Forest-wide Active Directory client
# =============================================================================

import logging
from typing import Dict, Any, List, Optional, Tuple

from ldap3 import Server, Connection, ALL, SUBTREE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from core.account_control import (
    ACCOUNTDISABLE, DONT_EXPIRE_PASSWORD, PASSWD_NOTREQD, PASSWORD_EXPIRED
)
from core.models import DomainTarget, RawAccount, RawContact


class DirectoryFetchError(ConnectionError):
    """A domain could not be reached or queried"""


ACCOUNT_FILTER = '(&(objectCategory=person)(objectClass=user))'
CONTACT_FILTER = '(objectClass=contact)'
DOMAIN_PARTITION_FILTER = '(&(objectClass=crossRef)(systemFlags:1.2.840.113556.1.4.803:=2)(nETBIOSName=*))'

ACCOUNT_ATTRIBUTES = [
    'distinguishedName', 'sAMAccountName', 'userPrincipalName', 'displayName',
    'givenName', 'sn', 'name', 'userAccountControl', 'msDS-User-Account-Control-Computed',
    'manager', 'mail', 'lastLogonTimestamp', 'pwdLastSet',
    'msDS-UserPasswordExpiryTimeComputed', 'msExchMailboxGuid', 'memberOf', 'c',
    'objectClass',
]

CONTACT_ATTRIBUTES = [
    'distinguishedName', 'displayName', 'name', 'mail', 'memberOf', 'objectClass',
]

# Large-integer timestamps read from raw values so ldap3 formatting never turns them into datetimes
TIMESTAMP_ATTRIBUTES = ['lastLogonTimestamp', 'pwdLastSet', 'msDS-UserPasswordExpiryTimeComputed']


class ActiveDirectoryClient:
    """Active Directory client that fetches accounts and contacts per forest domain"""

    def __init__(self, username: str, password: str, server_url: Optional[str] = None,
                 use_ssl: bool = False, page_size: int = 500):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.page_size = page_size
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    def connect(self) -> bool:
        """Establish the discovery connection to the configured server"""
        if not self.server_url:
            self.logger.debug("No default server configured, skipping discovery connection")
            return False
        try:
            self.connection = self._open(self.server_url)
            self.logger.info(f"Successfully connected to Active Directory at {self.server_url}")
            return True
        except DirectoryFetchError as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def disconnect(self) -> None:
        """Close the discovery connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def _open(self, server_url: str) -> Connection:
        try:
            server = Server(server_url, use_ssl=self.use_ssl, get_info=ALL)
            return Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True,
                read_only=True,
            )
        except LDAPException as e:
            raise DirectoryFetchError(f"Cannot bind to {server_url}: {e}") from e

    # -------------------------------------------------------------------------
    # Forest discovery
    # -------------------------------------------------------------------------

    def discover_domains(self) -> List[DomainTarget]:
        """List forest domains from the Partitions container"""
        if not self.connection:
            raise DirectoryFetchError("Not connected to Active Directory")

        entries = self._search_partitions(DOMAIN_PARTITION_FILTER)
        domains = []
        for entry in entries:
            dns_name = _first(_attribute(entry, 'dnsRoot'))
            if not dns_name:
                continue
            domains.append(DomainTarget(
                dns_name=str(dns_name),
                netbios_name=str(_first(_attribute(entry, 'nETBIOSName')) or ''),
            ))
        self.logger.info(f"Discovered {len(domains)} domains: {[d.dns_name for d in domains]}")
        return domains

    def get_netbios_name(self, dns_name: str) -> str:
        """NetBIOS name of a domain, or an empty string when it cannot be found"""
        if not self.connection:
            return ''
        search_filter = f"(&(objectClass=crossRef)(dnsRoot={escape_filter_chars(dns_name)})(nETBIOSName=*))"
        try:
            entries = self._search_partitions(search_filter)
        except DirectoryFetchError as e:
            self.logger.warning(f"NetBIOS lookup for {dns_name} failed: {e}")
            return ''
        for entry in entries:
            name = _first(_attribute(entry, 'nETBIOSName'))
            if name:
                return str(name)
        return ''

    def _search_partitions(self, search_filter: str) -> List[Dict[str, Any]]:
        try:
            config_nc = _first(self.connection.server.info.other.get('configurationNamingContext'))
        except AttributeError as e:
            raise DirectoryFetchError("Server did not publish its root DSE") from e
        if not config_nc:
            raise DirectoryFetchError("Server did not publish configurationNamingContext")
        return self._paged_search(
            self.connection, f"CN=Partitions,{config_nc}", search_filter,
            ['dnsRoot', 'nETBIOSName']
        )

    # -------------------------------------------------------------------------
    # Per-domain fetch
    # -------------------------------------------------------------------------

    def fetch_domain(self, target: DomainTarget,
                     extra_attributes: Optional[List[str]] = None) -> Tuple[List[RawAccount], List[RawContact]]:
        """Fetch every account and contact of one domain"""
        extra_attributes = extra_attributes or []
        connection = self._open(target.server or target.dns_name)
        try:
            account_entries = self._paged_search(
                connection, target.base_dn, ACCOUNT_FILTER,
                _merge(ACCOUNT_ATTRIBUTES, extra_attributes)
            )
            contact_entries = self._paged_search(
                connection, target.base_dn, CONTACT_FILTER,
                _merge(CONTACT_ATTRIBUTES, extra_attributes)
            )
        finally:
            connection.unbind()

        accounts = [to_raw_account(entry, target, extra_attributes) for entry in account_entries]
        contacts = [to_raw_contact(entry, extra_attributes) for entry in contact_entries]
        self.logger.info(f"Fetched {len(accounts)} accounts and {len(contacts)} contacts from {target.dns_name}")
        return accounts, contacts

    def _paged_search(self, connection: Connection, search_base: str, search_filter: str,
                      attributes: List[str]) -> List[Dict[str, Any]]:
        try:
            results = connection.extend.standard.paged_search(
                search_base=search_base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=attributes,
                paged_size=self.page_size,
                generator=False,
            )
        except LDAPException as e:
            raise DirectoryFetchError(f"Search under {search_base} failed: {e}") from e
        return [entry for entry in results if entry.get('type') == 'searchResEntry']


def to_raw_account(entry: Dict[str, Any], target: DomainTarget,
                   extra_attributes: Optional[List[str]] = None) -> RawAccount:
    """Convert a paged-search entry into a RawAccount"""
    uac = _as_int(_first(_attribute(entry, 'userAccountControl'))) or 0
    computed = _as_int(_first(_attribute(entry, 'msDS-User-Account-Control-Computed'))) or 0
    timestamps = {name: _raw_timestamp(entry, name) for name in TIMESTAMP_ATTRIBUTES}

    return RawAccount(
        distinguished_name=_dn(entry),
        sam_account_name=_text(entry, 'sAMAccountName'),
        user_principal_name=_text(entry, 'userPrincipalName'),
        display_name=_text(entry, 'displayName'),
        given_name=_text(entry, 'givenName'),
        surname=_text(entry, 'sn'),
        name=_text(entry, 'name'),
        enabled=not uac & ACCOUNTDISABLE,
        user_account_control=uac,
        manager=_text(entry, 'manager') or None,
        mail=_text(entry, 'mail'),
        last_logon_timestamp=timestamps['lastLogonTimestamp'],
        pwd_last_set=timestamps['pwdLastSet'],
        password_expiry_time=timestamps['msDS-UserPasswordExpiryTimeComputed'],
        password_never_expires=bool(uac & DONT_EXPIRE_PASSWORD),
        password_not_required=bool(uac & PASSWD_NOTREQD),
        password_expired=bool(computed & PASSWORD_EXPIRED),
        has_mailbox=bool(_first(_attribute(entry, 'msExchMailboxGuid', raw=True))),
        member_of=[str(value) for value in _as_list(_attribute(entry, 'memberOf'))],
        country_code=_text(entry, 'c'),
        object_class=_object_class(entry, default='user'),
        netbios_name=target.netbios_name,
        attributes=_extra(entry, extra_attributes),
    )


def to_raw_contact(entry: Dict[str, Any], extra_attributes: Optional[List[str]] = None) -> RawContact:
    """Convert a paged-search entry into a RawContact"""
    return RawContact(
        distinguished_name=_dn(entry),
        display_name=_text(entry, 'displayName'),
        name=_text(entry, 'name'),
        mail=_text(entry, 'mail'),
        member_of=[str(value) for value in _as_list(_attribute(entry, 'memberOf'))],
        object_class=_object_class(entry, default='contact'),
        attributes=_extra(entry, extra_attributes),
    )


def _attribute(entry: Dict[str, Any], name: str, raw: bool = False) -> Any:
    values = entry.get('raw_attributes' if raw else 'attributes') or {}
    for key, value in values.items():
        if key.lower() == name.lower():
            return value
    return None


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _first(value: Any) -> Any:
    values = _as_list(value)
    return values[0] if values else None


def _text(entry: Dict[str, Any], name: str) -> str:
    value = _first(_attribute(entry, name))
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return str(value)


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def _raw_timestamp(entry: Dict[str, Any], name: str) -> Any:
    """Integer tick count, or the undecoded text when the value is not an integer"""
    value = _first(_attribute(entry, name, raw=True))
    if value is None:
        value = _first(_attribute(entry, name))
    if value is None or value == b'' or value == '':
        return None
    number = _as_int(value)
    if number is not None:
        return number
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value


def _dn(entry: Dict[str, Any]) -> str:
    return entry.get('dn') or _text(entry, 'distinguishedName')


def _object_class(entry: Dict[str, Any], default: str) -> str:
    classes = _as_list(_attribute(entry, 'objectClass'))
    return str(classes[-1]) if classes else default


def _extra(entry: Dict[str, Any], names: Optional[List[str]]) -> Dict[str, Any]:
    extra = {}
    for name in names or []:
        value = _attribute(entry, name)
        # Single-valued attributes are unwrapped, multi-valued ones stay lists
        if isinstance(value, list) and len(value) <= 1:
            value = value[0] if value else None
        extra[name] = value
    return extra


def _merge(base: List[str], extra: List[str]) -> List[str]:
    merged = list(base)
    lowered = {name.lower() for name in base}
    for name in extra:
        if name.lower() not in lowered:
            merged.append(name)
            lowered.add(name.lower())
    return merged
