"""
Calendar Codec - Gregorian dates and the instrument day count

================================================================================
DAY COUNT EPOCH
================================================================================
Instrument timestamps count days since 1958-01-01, which is Julian day
number 2436205. Dates are converted through Julian day numbers with the
classic Fliegel / Van Flandern style algorithm (Numerical Recipes julday /
caldat), Gregorian calendar from 1582-10-15 on.

    julday(1958, 1, 1)  -> 2436205.000001
    julday(2000, 1, 1)  -> 2451545.000001   (day count 15340)

The fractional part of a Julian day here encodes hour and minute only;
seconds and milliseconds are carried separately as millisecond of day.
Leap seconds are not corrected anywhere.

================================================================================
TIME BOUNDS
================================================================================
Command line time bounds are written YYYY/MM/DD,hh:mm:ss, or "-" for an
open bound. They are converted to (day count, millisecond of day) pairs.
"""

import math
import re
from typing import NamedTuple, Tuple

from ..errors import UsageError
from ..interfaces.packet_records import Timestamp, TimeWindow, UNBOUNDED_END

# Julian day number of 1958-01-01 (day count 0)
REFERENCE_JULIAN_DAY = 2436205.0

# First Julian day of the Gregorian calendar (1582-10-15)
GREGORIAN_JULIAN_DAY = 2299161

MS_PER_DAY = 86400000

# Added to every julday result so floor() in caldat never falls a minute short
_EPSILON_DAYS = 0.000001

_BOUND_PATTERN = re.compile(r'^\s*(\d+)/(\d+)/(\d+),(\d+):(\d+):(\d+)\s*$')


class CalendarDate(NamedTuple):
    """Calendar date with minute resolution."""
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0


def julday(year: int, month: int, day: int, hour: int = 0, minute: int = 0,
           second: int = 0) -> float:
    """
    Convert a calendar date and time of day to a Julian day.

    Args:
        year: Year (negative for BC, there is no year 0)
        month: Month 1-12
        day: Day of month
        hour, minute, second: Time of day

    Returns:
        Julian day number plus the fractional day
    """
    jy = year
    if jy < 0:
        jy += 1
    if month > 2:
        jm = month + 1
    else:
        jy -= 1
        jm = month + 13

    jul = math.floor(365.25 * jy) + math.floor(30.6001 * jm) + day + 1720995

    # Gregorian calendar correction
    if day + 31 * (month + 12 * year) >= 15 + 31 * (10 + 12 * 1582):
        ja = int(0.01 * jy)
        jul += 2 - ja + int(0.25 * ja)

    return jul + hour / 24.0 + minute / 1440.0 + second / 86400.0 + _EPSILON_DAYS


def caldat(jul: float) -> CalendarDate:
    """Convert a Julian day back to a calendar date, down to the minute."""
    ljul = math.floor(jul)
    fraction = jul - ljul
    hour = math.floor(fraction * 24.0)
    fraction -= hour / 24.0
    minute = math.floor(fraction * 1440.0)

    if ljul >= GREGORIAN_JULIAN_DAY:
        jalpha = int(((ljul - 1867216) - 0.25) / 36524.25)
        ja = ljul + 1 + jalpha - int(0.25 * jalpha)
    else:
        ja = ljul
    jb = ja + 1524
    jc = int(6680.0 + ((jb - 2439870) - 122.1) / 365.25)
    jd = int(365 * jc + (0.25 * jc))
    je = int((jb - jd) / 30.6001)

    day = jb - jd - int(30.6001 * je)
    month = je - 1
    if month > 12:
        month -= 12
    year = jc - 4715
    if month > 2:
        year -= 1
    if year <= 0:
        year -= 1

    return CalendarDate(year, month, day, hour, minute)


def day_count(year: int, month: int, day: int) -> int:
    """Instrument day count of a calendar date."""
    return int(julday(year, month, day) - REFERENCE_JULIAN_DAY)


def date_of_day_count(days: int) -> CalendarDate:
    """Calendar date of an instrument day count."""
    return caldat(days + REFERENCE_JULIAN_DAY)


def format_timestamp(timestamp: Timestamp) -> str:
    """Render a timestamp as YYYY/MM/DD hh:mm:ss.mmmuuu."""
    date = date_of_day_count(timestamp.day)
    hour, rest = divmod(timestamp.millisecond, 3600000)
    minute, rest = divmod(rest, 60000)
    second, ms = divmod(rest, 1000)
    return (
        f"{date.year:04d}/{date.month:02d}/{date.day:02d} "
        f"{hour:02d}:{minute:02d}:{second:02d}.{ms:03d}{timestamp.microsecond:03d}"
    )


def parse_time_bound(text: str, is_end: bool = False) -> Tuple[int, int]:
    """
    Parse a window bound into (day count, millisecond of day).

    Args:
        text: "YYYY/MM/DD,hh:mm:ss" or "-"
        is_end: Open end bounds map past any representable day

    Raises:
        UsageError: malformed or out-of-range value
    """
    if text.strip() == '-':
        return UNBOUNDED_END if is_end else (0, 0)

    match = _BOUND_PATTERN.match(text)
    if not match:
        raise UsageError(f"invalid time '{text}', expected YYYY/MM/DD,hh:mm:ss or -")

    year, month, day, hour, minute, second = (int(g) for g in match.groups())
    if (year < 1958 or not 1 <= month <= 12 or not 1 <= day <= 31
            or not 0 <= hour <= 23 or not 0 <= minute <= 59 or not 0 <= second <= 59):
        raise UsageError(f"time out of range: '{text}'")

    millisecond = hour * 3600000 + minute * 60000 + second * 1000
    return day_count(year, month, day), millisecond


def parse_time_window(start_text: str, end_text: str) -> TimeWindow:
    """Parse start and end bounds into a TimeWindow; end must lie after start."""
    start = parse_time_bound(start_text, is_end=False)
    end = parse_time_bound(end_text, is_end=True)
    if end <= start:
        raise UsageError(f"end time '{end_text}' is not after start time '{start_text}'")
    return TimeWindow(start=start, end=end)
