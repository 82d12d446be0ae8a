"""
Timezone-safe date and time helpers.

Every conversion between civil date/time strings and absolute instants goes
through an explicit IANA zone (default from config, Australia/Brisbane), so
results never depend on the host's locale. Instants are returned as
timezone-aware datetimes in UTC.

Usage:
    start = create_datetime_in_timezone("2025-11-20", "10:00")
    format_time_in_timezone(start)   # "10:00"
    start.isoformat()                # "2025-11-20T00:00:00+00:00"
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lesson_scheduler.config import settings

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
TIME_PATTERN = re.compile(r"([01]\d|2[0-3]):[0-5]\d")

MINUTES_PER_DAY = 24 * 60

DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

Instant = Union[datetime, str]


class InputFormatError(ValueError):
    """Raised when a date, time or timezone string cannot be interpreted."""


class InvalidDateFormatError(InputFormatError):
    """Date string is not YYYY-MM-DD or names a day that does not exist."""


class InvalidTimeFormatError(InputFormatError):
    """Time string is not HH:mm within 00:00-23:59."""


class InvalidTimezoneError(InputFormatError):
    """Timezone name is not a known IANA zone."""


def get_zone(tz: Optional[str] = None) -> ZoneInfo:
    """Resolve a zone name, falling back to the configured scheduling timezone."""
    name = tz or settings.scheduling.timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidTimezoneError(f"Unknown timezone: {name!r}") from None


def to_instant(value: Instant) -> datetime:
    """Normalize an aware datetime or ISO-8601 string to a UTC datetime."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise InputFormatError(f"Invalid ISO datetime: {value!r}") from None
    if value.tzinfo is None or value.utcoffset() is None:
        raise InputFormatError(f"Datetime must be timezone-aware: {value.isoformat()}")
    return value.astimezone(timezone.utc)


def is_valid_date_string(date_string: str) -> bool:
    """Check that a string has the YYYY-MM-DD shape."""
    return bool(DATE_PATTERN.fullmatch(date_string))


def is_valid_time_string(time_string: str) -> bool:
    """Check that a string is HH:mm with a leading zero, 00:00-23:59."""
    return bool(TIME_PATTERN.fullmatch(time_string))


def parse_date(date_string: str) -> date:
    """Parse YYYY-MM-DD into a date, rejecting impossible days."""
    if not isinstance(date_string, str) or not is_valid_date_string(date_string):
        raise InvalidDateFormatError(f"Invalid date string: {date_string!r}")
    year, month, day = (int(part) for part in date_string.split("-"))
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateFormatError(f"Invalid date string: {date_string!r}") from None


def time_to_minutes(time_string: str) -> int:
    """Parse HH:mm into minutes since midnight."""
    if not isinstance(time_string, str) or not is_valid_time_string(time_string):
        raise InvalidTimeFormatError(f"Invalid time string: {time_string!r}")
    hours, minutes = (int(part) for part in time_string.split(":"))
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight (0-1439) to HH:mm."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeFormatError(f"Minutes out of range for a single day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _localize(civil: datetime, zone: ZoneInfo) -> datetime:
    # fold=0 picks the first occurrence of an ambiguous time; a time inside a
    # DST gap is read with the pre-transition offset, landing after the gap.
    return civil.replace(tzinfo=zone).astimezone(timezone.utc)


def create_date_in_timezone(date_string: str, tz: Optional[str] = None) -> datetime:
    """Return the instant of civil midnight on ``date_string`` in ``tz``."""
    day = parse_date(date_string)
    return _localize(datetime(day.year, day.month, day.day), get_zone(tz))


def create_datetime_in_timezone(
    date_string: str, time_string: str, tz: Optional[str] = None
) -> datetime:
    """Return the instant of ``date_string time_string`` as civil time in ``tz``."""
    day = parse_date(date_string)
    minutes = time_to_minutes(time_string)
    civil = datetime(day.year, day.month, day.day, minutes // 60, minutes % 60)
    return _localize(civil, get_zone(tz))


def to_local(instant: Instant, tz: Optional[str] = None) -> datetime:
    """Project an instant onto civil time in ``tz``."""
    return to_instant(instant).astimezone(get_zone(tz))


def format_date_in_timezone(instant: Instant, tz: Optional[str] = None) -> str:
    """Format an instant as YYYY-MM-DD in ``tz``."""
    return to_local(instant, tz).strftime("%Y-%m-%d")


def format_time_in_timezone(instant: Instant, tz: Optional[str] = None) -> str:
    """Format an instant as HH:mm in ``tz``."""
    return to_local(instant, tz).strftime("%H:%M")


def format_datetime_for_display(instant: Instant, tz: Optional[str] = None) -> str:
    """Human readable form, e.g. '20 November 2025 10:00 AM'."""
    local = to_local(instant, tz)
    return f"{local.day} {local.strftime('%B %Y %I:%M %p')}"


def civil_date(instant: Instant, tz: Optional[str] = None) -> date:
    return to_local(instant, tz).date()


def start_of_day(instant: Instant, tz: Optional[str] = None) -> datetime:
    """Instant of civil midnight starting the day that contains ``instant``."""
    return create_date_in_timezone(format_date_in_timezone(instant, tz), tz)


def start_of_week(instant: Instant, tz: Optional[str] = None) -> datetime:
    """Instant of civil midnight on the Monday of the week containing ``instant``."""
    day = civil_date(instant, tz)
    monday = day - timedelta(days=day.weekday())
    return create_date_in_timezone(monday.isoformat(), tz)


def add_civil_days(date_string: str, days: int) -> str:
    """Shift a YYYY-MM-DD string by whole calendar days."""
    return (parse_date(date_string) + timedelta(days=days)).isoformat()


def get_day_of_week(instant: Instant, tz: Optional[str] = None) -> int:
    """Civil weekday of ``instant`` in ``tz``; Monday is 0."""
    return civil_date(instant, tz).weekday()


def get_day_name(instant: Instant, tz: Optional[str] = None) -> str:
    return DAY_NAMES[get_day_of_week(instant, tz)]


def get_today_in_timezone(tz: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Today's civil date in ``tz``."""
    return civil_date(now or datetime.now(timezone.utc), tz)


def is_date_in_past(
    instant: Instant, tz: Optional[str] = None, now: Optional[datetime] = None
) -> bool:
    """True when the civil day of ``instant`` is before today. Today is never past."""
    return civil_date(instant, tz) < get_today_in_timezone(tz, now)


def is_vacation_day(
    instant: Instant, vacation_days: Iterable[str], tz: Optional[str] = None
) -> bool:
    return format_date_in_timezone(instant, tz) in set(vacation_days)


def do_time_slots_overlap(
    slot1_start: datetime,
    slot1_end: datetime,
    slot2_start: datetime,
    slot2_end: datetime,
    buffer_minutes: int = 0,
) -> bool:
    """
    Check whether [slot1_start, slot1_end) intersects the second slot widened
    by ``buffer_minutes`` on both sides.

    The widening is symmetric, so swapping the two slots gives the same answer.
    """
    buffer = timedelta(minutes=buffer_minutes)
    return slot1_start < slot2_end + buffer and slot2_start - buffer < slot1_end
