# =============================================================================
# utils/filetime.py - Windows FILETIME helpers
# =============================================================================

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from core.models import RawTimestamp

# 100-nanosecond ticks since 1601-01-01 UTC
WINDOWS_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

# msDS-UserPasswordExpiryTimeComputed value meaning "governed by a fine-grained policy"
FGPP_SENTINEL = 9223372036854775807

SECONDS_PER_DAY = 86400


def filetime_to_datetime(value: Any) -> datetime:
    """Convert a FILETIME value to an aware UTC datetime.

    Raises ValueError or OverflowError when the value is not a usable tick count.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a FILETIME value: {value!r}")
    ticks = int(value)
    if ticks < 0:
        raise ValueError(f"Negative FILETIME value: {ticks}")
    return WINDOWS_EPOCH + timedelta(microseconds=ticks // 10)


def decode_filetime(value: Any) -> Union[datetime, RawTimestamp]:
    """Decode a FILETIME, falling back to the raw value when it cannot be decoded"""
    try:
        return filetime_to_datetime(value)
    except (ValueError, TypeError, OverflowError):
        return RawTimestamp(value)


def optional_filetime(value: Any) -> Optional[datetime]:
    """Decode a FILETIME where zero or an unusable value means "never" """
    if not value:
        return None
    result = decode_filetime(value)
    if isinstance(result, RawTimestamp):
        return None
    return result


def whole_days(start: datetime, end: datetime) -> int:
    """Whole days from start to end, truncated toward zero"""
    seconds = (end - start).total_seconds()
    return int(seconds / SECONDS_PER_DAY)
