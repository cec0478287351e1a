# =============================================================================
# core/models.py - Directory and resolution data models
# =============================================================================

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, Any, List, Mapping, Optional, Tuple, Union, Callable


class RecordType(Enum):
    """Type tag of a resolved record"""
    USER = "User"
    CONTACT = "Contact"


class ManagerStatus(Enum):
    """Manager reachability taxonomy"""
    ENABLED = "Enabled"
    ENABLED_BAD_EMAIL = "Enabled, bad email"
    NO_EMAIL = "No email"
    DISABLED = "Disabled"
    MISSING = "Missing"
    NOT_AVAILABLE = "Not available"


@dataclass(frozen=True)
class RawTimestamp:
    """Directory timestamp that could not be decoded, kept as fetched"""
    value: Any

    def __str__(self) -> str:
        return str(self.value)


# Expiry date is either a decoded datetime or the undecodable raw value
ExpiryDate = Union[datetime, RawTimestamp]


@dataclass(frozen=True)
class DomainTarget:
    """A forest domain to fetch from"""
    dns_name: str
    netbios_name: str = ""
    server: str = ""

    @property
    def base_dn(self) -> str:
        return ','.join(f"DC={label}" for label in self.dns_name.split('.') if label)


@dataclass
class RawAccount:
    """User object as fetched from the directory"""
    distinguished_name: str
    sam_account_name: str = ""
    user_principal_name: str = ""
    display_name: str = ""
    given_name: str = ""
    surname: str = ""
    name: str = ""
    enabled: bool = True
    user_account_control: int = 0
    manager: Optional[str] = None
    mail: str = ""
    last_logon_timestamp: Optional[int] = None
    pwd_last_set: Optional[int] = None
    password_expiry_time: Optional[Any] = None
    password_never_expires: bool = False
    password_not_required: bool = False
    password_expired: bool = False
    has_mailbox: bool = False
    member_of: List[str] = field(default_factory=list)
    country_code: str = ""
    object_class: str = "user"
    netbios_name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    def get(self, attribute_name: str) -> Any:
        """Look up a directory attribute by its LDAP name"""
        return _lookup(self, _ACCOUNT_ACCESSORS, attribute_name)


@dataclass
class RawContact:
    """Contact object as fetched from the directory"""
    distinguished_name: str
    display_name: str = ""
    name: str = ""
    mail: str = ""
    member_of: List[str] = field(default_factory=list)
    object_class: str = "contact"
    attributes: Dict[str, Any] = field(default_factory=dict)

    def get(self, attribute_name: str) -> Any:
        """Look up a directory attribute by its LDAP name"""
        return _lookup(self, _CONTACT_ACCESSORS, attribute_name)


DirectoryObject = Union[RawAccount, RawContact]


_ACCOUNT_ACCESSORS: Dict[str, Callable[[RawAccount], Any]] = {
    'distinguishedname': lambda r: r.distinguished_name,
    'samaccountname': lambda r: r.sam_account_name,
    'userprincipalname': lambda r: r.user_principal_name,
    'displayname': lambda r: r.display_name,
    'givenname': lambda r: r.given_name,
    'sn': lambda r: r.surname,
    'name': lambda r: r.name,
    'useraccountcontrol': lambda r: r.user_account_control,
    'manager': lambda r: r.manager,
    'mail': lambda r: r.mail,
    'lastlogontimestamp': lambda r: r.last_logon_timestamp,
    'pwdlastset': lambda r: r.pwd_last_set,
    'msds-userpasswordexpirytimecomputed': lambda r: r.password_expiry_time,
    'memberof': lambda r: r.member_of,
    'c': lambda r: r.country_code,
    'objectclass': lambda r: r.object_class,
}

_CONTACT_ACCESSORS: Dict[str, Callable[[RawContact], Any]] = {
    'distinguishedname': lambda r: r.distinguished_name,
    'displayname': lambda r: r.display_name,
    'name': lambda r: r.name,
    'mail': lambda r: r.mail,
    'memberof': lambda r: r.member_of,
    'objectclass': lambda r: r.object_class,
}


def _lookup(record, accessors: Dict[str, Callable], attribute_name: str) -> Any:
    if not attribute_name:
        return None
    accessor = accessors.get(attribute_name.lower())
    if accessor is not None:
        return accessor(record)
    for key, value in record.attributes.items():
        if key.lower() == attribute_name.lower():
            return value
    return None


@dataclass(frozen=True)
class PasswordState:
    """Password expiry facts derived for one account"""
    expiry_date: Optional[ExpiryDate] = None
    days_to_expire: Optional[int] = None
    never_expires: bool = False
    at_next_logon: bool = False
    last_set: Optional[datetime] = None
    days_since_set: Optional[int] = None


@dataclass(frozen=True)
class ManagerState:
    """Resolved manager facts for one account"""
    status: ManagerStatus
    display_name: Optional[str] = None
    sam_account_name: Optional[str] = None
    email: Optional[str] = None
    last_logon_days: Optional[int] = None
    object_type: Optional[str] = None
    distinguished_name: Optional[str] = None


@dataclass(frozen=True)
class ResolvedRecord:
    """Enriched per-account record handed to the rule-matching stage"""
    distinguished_name: str
    type: RecordType
    user_principal_name: Optional[str] = None
    sam_account_name: Optional[str] = None
    domain: str = ""
    netbios_name: Optional[str] = None
    organizational_unit: str = ""
    display_name: str = ""
    given_name: Optional[str] = None
    surname: Optional[str] = None
    enabled: bool = True
    email_address: Optional[str] = None
    system_email_address: Optional[str] = None
    has_mailbox: Optional[bool] = None
    country: str = "Unknown"
    country_code: str = "Unknown"
    member_of: Tuple[str, ...] = ()
    password_expiry_date: Optional[ExpiryDate] = None
    days_to_expire: Optional[int] = None
    password_expired: Optional[bool] = None
    password_never_expires: Optional[bool] = None
    password_not_required: Optional[bool] = None
    password_at_next_logon: Optional[bool] = None
    password_last_set: Optional[datetime] = None
    password_days_since_set: Optional[int] = None
    last_logon_date: Optional[datetime] = None
    last_logon_days: Optional[int] = None
    manager_display_name: Optional[str] = None
    manager_sam_account_name: Optional[str] = None
    manager_email: Optional[str] = None
    manager_status: Optional[ManagerStatus] = None
    manager_last_logon_days: Optional[int] = None
    manager_type: Optional[str] = None
    manager_distinguished_name: Optional[str] = None
    extensions: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Collections are frozen along with the record
        object.__setattr__(self, 'member_of', tuple(self.member_of))
        object.__setattr__(self, 'extensions', MappingProxyType(dict(self.extensions)))

    @property
    def netbios_sam_account_name(self) -> Optional[str]:
        if not self.netbios_name or not self.sam_account_name:
            return None
        return f"{self.netbios_name}\\{self.sam_account_name}"

    def to_row(self) -> Dict[str, Any]:
        """Flatten the record into export-friendly values"""
        row = {}
        for f in fields(self):
            if f.name == 'extensions':
                continue
            row[f.name] = _flatten(getattr(self, f.name))
        for name, value in self.extensions.items():
            row[name] = _flatten(value)
        return row


# Record attributes usable as the output key, in addition to dataclass fields
KEY_FIELDS = {f.name for f in fields(ResolvedRecord)
              if f.name not in ('extensions', 'member_of', 'type')} | {'netbios_sam_account_name'}


def _flatten(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, RawTimestamp):
        return str(value.value)
    if isinstance(value, (list, tuple)):
        return '; '.join(str(item) for item in value)
    return value


@dataclass
class ResolverOptions:
    """Caller configuration for one resolution pass"""
    override_email_attribute: Optional[str] = None
    override_manager_attribute: Optional[str] = None
    key_field: str = "distinguished_name"
    extension_attributes: List[str] = field(default_factory=list)
    include_contacts: bool = False
    as_list: bool = False

    def __post_init__(self):
        if self.key_field not in KEY_FIELDS:
            raise ValueError(f"Unsupported key field: {self.key_field}")

    @property
    def extra_attributes(self) -> List[str]:
        """Additional directory attributes the fetch must request"""
        names = [self.override_email_attribute, self.override_manager_attribute]
        names.extend(self.extension_attributes)
        extra = []
        for name in names:
            if name and name not in extra:
                extra.append(name)
        return extra


@dataclass
class ResolutionStats:
    """Statistics for one resolution pass"""
    domains_processed: int = 0
    domains_failed: List[str] = field(default_factory=list)
    accounts_fetched: int = 0
    contacts_fetched: int = 0
    trust_accounts_skipped: int = 0
    records_emitted: int = 0
    records_without_key: int = 0
