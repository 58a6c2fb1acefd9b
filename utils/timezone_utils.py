# utils/timezone_utils.py
import re
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional, Union
from fastapi import Header

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Legacy record ids fuse the hour and minute into the id with underscores
# because ':' is not allowed in document paths.
LEGACY_ID_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2})_(\d{2})_")


def parse_timezone_offset(offset_str: Optional[str]) -> int:
    """
    Parse timezone offset from various formats.
    Examples: "300" (minutes), "+05:00", "-08:00"
    """
    if not offset_str:
        return 0

    try:
        # If it's already in minutes
        if offset_str.lstrip('-').isdigit():
            return int(offset_str)

        # If it's in format "+05:00" or "-08:00"
        if ':' in offset_str:
            sign = -1 if offset_str.startswith('-') else 1
            parts = offset_str.lstrip('+-').split(':')
            hours = int(parts[0])
            minutes = int(parts[1]) if len(parts) > 1 else 0
            return sign * (hours * 60 + minutes)
    except ValueError:
        pass

    return 0


def get_user_now(timezone_offset: int = 0) -> datetime:
    """Get current wall-clock datetime in user's timezone (naive)."""
    utc_now = datetime.now(timezone.utc).replace(tzinfo=None)
    return utc_now + timedelta(minutes=timezone_offset)


def to_wall_clock(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored timestamp into a naive wall-clock datetime.

    An offset, when present, is dropped without converting: the hour and
    minute the user saw when the value was written are what we keep.
    Returns None when the value cannot be parsed.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.replace(tzinfo=None)

    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def parse_legacy_id(record_id: Optional[str]) -> Optional[datetime]:
    """Decode a legacy id like "2024-03-02T14_30_00-000" into 2024-03-02 14:30."""
    if not record_id:
        return None

    match = LEGACY_ID_PATTERN.match(record_id)
    if not match:
        return None

    year, month, day, hours, minutes = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, hours, minutes)
    except ValueError:
        return None


def make_legacy_id(moment: datetime) -> str:
    """Encode a wall-clock datetime the way legacy records were keyed."""
    return f"{moment:%Y-%m-%d}T{moment:%H}_{moment:%M}_00-000"


def to_storage_string(moment: datetime) -> str:
    """Wall-clock ISO string used for range filtering in the store."""
    return moment.replace(tzinfo=None).isoformat()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def format_chart_label(moment: datetime) -> str:
    """'Mar 02, 14:30' - month names are fixed so labels never depend on locale."""
    month = MONTH_ABBREVIATIONS[moment.month - 1]
    return f"{month} {moment.day:02d}, {moment.hour:02d}:{moment.minute:02d}"


# FastAPI dependency to extract timezone from headers
async def get_timezone_offset(
    x_timezone_offset: Optional[str] = Header(None),
    x_timezone_string: Optional[str] = Header(None)
) -> int:
    """
    Extract timezone offset from request headers.
    Returns offset in minutes from UTC.
    """
    # Try the direct offset first
    if x_timezone_offset:
        return parse_timezone_offset(x_timezone_offset)

    # Try parsing the string format
    if x_timezone_string:
        return parse_timezone_offset(x_timezone_string)

    # Default to UTC
    return 0
