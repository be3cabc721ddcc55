"""Centralized datetime utilities for digest scheduling.

All functions return naive UTC datetimes for database compatibility
(SQLAlchemy models use naive UTC).

Digest delivery is keyed on a cached absolute UTC hour per user. The local
"HH:mm" preference is converted once, when settings are written, using a
static whole-hour offset table:

    from vortex.core.datetime_utils import resolve_timezone_offset, to_utc_schedule

    offset = resolve_timezone_offset("Asia/Jakarta")  # 7
    utc_hour, utc_minute = to_utc_schedule("08:00", offset)  # (1, 0)
"""

import re
from datetime import UTC, datetime

from vortex.core.exceptions import SettingsValidationError

SCHEDULE_TIME_PATTERN = re.compile(r"([01]?[0-9]|2[0-3]):[0-5][0-9]")

# Fixed UTC offsets in hours. No DST handling: London and New York use
# their standard-time offsets all year.
TIMEZONE_OFFSETS: dict[str, int] = {
    "Asia/Jakarta": 7,
    "Asia/Bangkok": 7,
    "Asia/Makassar": 8,
    "Asia/Singapore": 8,
    "Asia/Jayapura": 9,
    "Asia/Tokyo": 9,
    "Australia/Sydney": 11,
    "Europe/London": 0,
    "America/New_York": -5,
    "UTC": 0,
}

# WIB (Western Indonesia Time)
DEFAULT_TIMEZONE_OFFSET = 7


def utc_now() -> datetime:
    """Get current UTC time as naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def start_of_utc_day(dt: datetime | None = None) -> datetime:
    """Midnight (naive UTC) of the day containing dt, or of today."""
    dt = dt or utc_now()
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_timezone_offset(timezone: str) -> int:
    """Map a timezone identifier to a fixed UTC offset in hours.

    Unknown identifiers resolve to UTC+7 instead of failing.

    Args:
        timezone: Timezone identifier (e.g., "Asia/Tokyo")

    Returns:
        Offset in whole hours
    """
    return TIMEZONE_OFFSETS.get(timezone, DEFAULT_TIMEZONE_OFFSET)


def is_valid_schedule_time(value: str) -> bool:
    """Check if a string is a local delivery time in HH:mm format."""
    return SCHEDULE_TIME_PATTERN.fullmatch(value) is not None


def parse_schedule_time(value: str) -> tuple[int, int]:
    """Parse an HH:mm string into (hour, minute).

    Raises:
        SettingsValidationError: If the string is not a valid HH:mm time
    """
    if not is_valid_schedule_time(value):
        raise SettingsValidationError("Schedule time must be in HH:mm format")
    hour, minute = value.split(":")
    return int(hour), int(minute)


def to_utc_schedule(local_time: str, offset_hours: int) -> tuple[int, int]:
    """Convert a local delivery time into an absolute UTC hour and minute.

    The hour wraps across midnight in either direction. Offsets are whole
    hours, so the minute is carried through unchanged.

    Examples:
        08:00 at UTC+7 -> (1, 0)
        05:00 at UTC+7 -> (22, 0), previous UTC day
        23:30 at UTC-5 -> (4, 30), next UTC day

    Args:
        local_time: Local time in "HH:mm" format
        offset_hours: Timezone offset from UTC in hours

    Returns:
        Tuple of (utc_hour, utc_minute)
    """
    hour, minute = parse_schedule_time(local_time)

    utc_hour = hour - offset_hours
    if utc_hour < 0:
        utc_hour += 24
    if utc_hour >= 24:
        utc_hour -= 24

    return utc_hour, minute
