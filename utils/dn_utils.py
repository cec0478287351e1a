# =============================================================================
# utils/dn_utils.py - Distinguished name helpers
# =============================================================================

import logging
from typing import List, Tuple

from ldap3.core.exceptions import LDAPInvalidDnError
from ldap3.utils.dn import parse_dn

logger = logging.getLogger(__name__)


def _components(distinguished_name: str) -> List[Tuple[str, str, str]]:
    if not distinguished_name:
        return []
    try:
        return parse_dn(distinguished_name)
    except LDAPInvalidDnError as e:
        logger.debug(f"Unparseable DN {distinguished_name!r}: {e}")
        return []


def dn_to_domain(distinguished_name: str) -> str:
    """DC=ad,DC=example,DC=com -> ad.example.com"""
    labels = [value for attr, value, _ in _components(distinguished_name) if attr.upper() == 'DC']
    return '.'.join(labels)


def dn_to_container(distinguished_name: str) -> str:
    """Drop the leaf RDN, leaving the OU or container path"""
    components = _components(distinguished_name)
    if len(components) < 2:
        return ''
    return ','.join(f"{attr}={value}" for attr, value, _ in components[1:])
