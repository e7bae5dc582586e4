# busdesk/utils/date_utils.py
from __future__ import annotations

"""
Date and time helpers for booking records.

Notes:
- Nothing here raises on bad input. Unparseable dates come back as None
  and the display helpers fall back to a lightly cleaned raw string.
- Timestamps carrying an offset (the store serializes sheet dates as UTC
  instants) are converted to the configured timezone before the calendar
  date is taken.
"""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

import pytz
from dateutil import parser

from busdesk.core.constants import DISPLAY_DATE_FORMAT, REMOTE_DATE_FORMAT

logger = logging.getLogger(__name__)

_ISO_INSTANT = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
_SINGLE_DIGIT_HOUR = re.compile(r"\b(\d)\.")
_MERIDIEM = re.compile(r"([AP]M)", re.IGNORECASE)


def get_timezone(tz_name: str):
    return pytz.timezone(tz_name)


def now_in(tz_name: str) -> datetime:
    """Current time as an aware datetime in the given timezone."""
    return datetime.now(get_timezone(tz_name))


def localize(dt: datetime, tz_name: str) -> datetime:
    """
    Attach or convert to the given timezone.

    - Naive datetimes are taken as wall-clock time in that timezone.
    - Aware datetimes are converted.
    """
    tz_obj = get_timezone(tz_name)
    if dt.tzinfo is None:
        return tz_obj.localize(dt)
    return dt.astimezone(tz_obj)


def parse_calendar_date(value: Any, tz_name: str = "UTC") -> Optional[date]:
    """Parse a loosely formatted date; None when it cannot be parsed."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip() if value is not None else ""
        if not text:
            return None
        try:
            parsed = parser.parse(text)
        except (ValueError, OverflowError) as e:
            logger.debug(f"Unparseable journey date '{text}': {e}")
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(get_timezone(tz_name))
    return parsed.date()


def format_display_date(parsed: Optional[date], raw: str = "") -> str:
    """YYYY/MM/DD for parsed dates, otherwise the raw text with '-' as '/'."""
    if parsed is not None:
        return parsed.strftime(DISPLAY_DATE_FORMAT)
    if not raw:
        return "-"
    return raw.replace("-", "/")


def format_remote_date(parsed: Optional[date], raw: str = "") -> str:
    """MM/DD/YYYY as the remote store expects; raw text when unparsed."""
    if parsed is not None:
        return parsed.strftime(REMOTE_DATE_FORMAT)
    return raw


def normalize_time(value: Any, tz_name: Optional[str] = None) -> str:
    """
    Normalize a departure time to 'HH.MM AM/PM'.

    - '21:00' (24-hour, no meridiem) -> '09.00 PM'
    - '9:00 PM' / '9:00pm' -> '09.00 PM'
    - ISO instants are converted to tz_name first

    Text that fits neither shape is returned with the same substitutions
    applied as far as they go.
    """
    if value is None:
        return ""
    if isinstance(value, time):
        return value.strftime("%I.%M %p")

    text = str(value).strip()
    if not text:
        return ""

    if _ISO_INSTANT.match(text):
        try:
            instant = parser.isoparse(text)
            if tz_name:
                instant = localize(instant, tz_name)
            return instant.strftime("%I.%M %p")
        except ValueError:
            logger.debug(f"Unparseable ISO time '{text}'")

    if ":" in text and "m" not in text.lower():
        parts = text.split(":")
        try:
            hour = int(parts[0].strip())
        except ValueError:
            hour = None
        if hour is not None:
            period = "PM" if hour >= 12 else "AM"
            if hour > 12:
                hour -= 12
            if hour == 0:
                hour = 12
            return f"{hour:02d}.{parts[1].strip()} {period}"

    text = text.replace(":", ".")
    text = _SINGLE_DIGIT_HOUR.sub(r"0\1.", text, count=1)
    text = _MERIDIEM.sub(lambda m: " " + m.group(1).upper(), text, count=1)
    return " ".join(text.split())


def expiry_moment(journey_date: date, cutoff: time, tz_name: str) -> datetime:
    """The morning after the journey at the cutoff time, timezone-aware."""
    return get_timezone(tz_name).localize(
        datetime.combine(journey_date + timedelta(days=1), cutoff)
    )
