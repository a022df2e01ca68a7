"""Run time and date conversion helpers"""
import math
import re
from typing import Optional

TIME_FORMAT = re.compile(r'[0-9]{1,2}:[0-9]{2}:[0-9]{2}')
DATE_FORMAT = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')

# PnDTnHnMnS; speedrun.com only ever sends the time part
_ISO_DURATION = re.compile(
    r'P(?:(?P<days>[0-9]+(?:\.[0-9]+)?)D)?'
    r'(?:T(?:(?P<hours>[0-9]+(?:\.[0-9]+)?)H)?'
    r'(?:(?P<minutes>[0-9]+(?:\.[0-9]+)?)M)?'
    r'(?:(?P<seconds>[0-9]+(?:\.[0-9]+)?)S)?)?'
)


def seconds_to_time(total_seconds) -> Optional[str]:
    """
    Format a seconds count as HH:MM:SS.

    Fractional seconds are truncated. Hours are not capped, so a run of 100
    hours or more yields a string that fails validate_time_format.
    """
    if total_seconds is None or isinstance(total_seconds, bool):
        return None
    try:
        value = float(total_seconds)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None

    whole = int(value)
    hours, remainder = divmod(whole, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def iso_duration_to_time(duration: Optional[str]) -> Optional[str]:
    """Convert an ISO-8601 duration such as PT1H2M3.5S to HH:MM:SS."""
    if not duration or not isinstance(duration, str):
        return None

    text = duration.strip().upper()
    if text in ('P', 'PT') or text.endswith('T'):
        return None

    match = _ISO_DURATION.fullmatch(text)
    if not match:
        return None

    parts = match.groupdict()
    if not any(parts.values()):
        return None

    total = 0.0
    total += float(parts['days'] or 0) * 86400
    total += float(parts['hours'] or 0) * 3600
    total += float(parts['minutes'] or 0) * 60
    total += float(parts['seconds'] or 0)
    return seconds_to_time(total)


def validate_time_format(value: Optional[str]) -> bool:
    return bool(value) and isinstance(value, str) and TIME_FORMAT.fullmatch(value) is not None


def validate_date_format(value: Optional[str]) -> bool:
    return bool(value) and isinstance(value, str) and DATE_FORMAT.fullmatch(value) is not None
