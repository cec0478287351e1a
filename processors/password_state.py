# =============================================================================
# processors/password_state.py - Password expiry derivation
# =============================================================================

import logging
from datetime import datetime
from typing import Optional

from core.models import RawAccount, PasswordState, RawTimestamp
from utils.filetime import FGPP_SENTINEL, decode_filetime, optional_filetime, whole_days

logger = logging.getLogger(__name__)


def password_ever_set(account: RawAccount) -> bool:
    """pwdLastSet of zero or absent means no password was ever set"""
    return bool(account.pwd_last_set)


def resolve_password_state(account: RawAccount, now: datetime) -> PasswordState:
    """Derive expiry date, days to expire and related flags for one account.

    The expiry date and the day count are computed independently: when the
    expiry timestamp cannot be decoded, the date keeps the raw value while the
    day count stays unset.
    """
    expiry_date = None
    days_to_expire: Optional[int] = None
    never_expires = account.password_never_expires

    raw_expiry = account.password_expiry_time
    if _is_fgpp_sentinel(raw_expiry):
        # Fine-grained policy applies, the DONT_EXPIRE_PASSWORD flag is not reliable here
        never_expires = True
    elif raw_expiry is not None:
        expiry_date = decode_filetime(raw_expiry)
        if isinstance(expiry_date, RawTimestamp):
            # Date keeps the raw value, the day count cannot be computed from it
            logger.debug(f"Could not decode password expiry for {account.distinguished_name}: {raw_expiry!r}")
        else:
            days_to_expire = whole_days(now, expiry_date)

    at_next_logon = (
        account.pwd_last_set == 0
        and isinstance(expiry_date, datetime)
        and expiry_date.year == 1601
    )

    if never_expires or not password_ever_set(account):
        expiry_date = None
        days_to_expire = None

    last_set = optional_filetime(account.pwd_last_set)
    days_since_set = whole_days(last_set, now) if last_set else None

    return PasswordState(
        expiry_date=expiry_date,
        days_to_expire=days_to_expire,
        never_expires=never_expires,
        at_next_logon=at_next_logon,
        last_set=last_set,
        days_since_set=days_since_set,
    )


def _is_fgpp_sentinel(value) -> bool:
    try:
        return value is not None and int(value) == FGPP_SENTINEL
    except (ValueError, TypeError):
        return False
