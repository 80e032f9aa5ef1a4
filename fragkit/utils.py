"""
Shared utility functions for FragKit.

Provides the wall-clock timestamp parser used for PROGRAM-DATE-TIME values
and the ordered search used to scan fragment sequences.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")

_ISO_8601_PATTERN = re.compile(
    r'^(\d{4})-(\d{2})-(\d{2})'
    r'(?:[T ](\d{2}):(\d{2})(?::(\d{2})(?:[.,](\d+))?)?)?'
    r'\s*(Z|[+-]\d{2}(?::?\d{2})?)?$',
    re.IGNORECASE,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_utc_offset(value: Optional[str]) -> timezone:
    if not value or value.upper() == 'Z':
        return timezone.utc
    sign = -1 if value[0] == '-' else 1
    digits = value[1:].replace(':', '')
    hours = int(digits[:2])
    minutes = int(digits[2:4]) if len(digits) > 2 else 0
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid UTC offset: {value}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_program_date_time(value: Optional[str]) -> float:
    """
    Convert an ISO 8601 wall-clock timestamp to milliseconds since epoch.
    
    Accepts date-only values and date-times with a 'T' or space separator,
    optional seconds, fractional seconds of any precision, and a 'Z' or
    +HH:MM / +HHMM / +HH offset. Values without an offset are read as UTC.
    
    Args:
        value: Timestamp string, e.g. from #EXT-X-PROGRAM-DATE-TIME
        
    Returns:
        Milliseconds since the Unix epoch as float, or math.nan when the
        value cannot be parsed
        
    Example:
        >>> parse_program_date_time("2024-01-15T10:30:00.000Z")
        1705314600000.0
        >>> parse_program_date_time("not a date")
        nan
    """
    if not value or not isinstance(value, str):
        return math.nan
    
    match = _ISO_8601_PATTERN.match(value.strip())
    if not match:
        return math.nan
    
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    try:
        tz = _parse_utc_offset(offset)
        parsed = datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
            tzinfo=tz,
        )
    except ValueError:
        return math.nan
    
    millis = (parsed - _EPOCH) // timedelta(milliseconds=1)
    if fraction:
        # Sub-millisecond digits are truncated
        millis += int(fraction[:3].ljust(3, '0'))
    return float(millis)


def binary_search(items: Sequence[T], comparator: Callable[[T], int]) -> Optional[T]:
    """
    Search an ordered sequence with a three-way comparator.
    
    The comparator returns a positive value when the wanted item lies after
    the candidate, a negative value when it lies before, and 0 on a match.
    It must be monotone across the sequence for the result to be correct.
    
    Args:
        items: Ordered sequence to search
        comparator: Three-way comparison function applied to candidates
        
    Returns:
        The matching item, or None if no candidate compares equal
        
    Example:
        >>> binary_search([1, 3, 5, 7], lambda x: 5 - x)
        5
    """
    min_index = 0
    max_index = len(items) - 1
    
    while min_index <= max_index:
        current_index = (min_index + max_index) // 2
        current = items[current_index]
        result = comparator(current)
        if result > 0:
            min_index = current_index + 1
        elif result < 0:
            max_index = current_index - 1
        else:
            return current
    
    return None


def format_program_date_time(millis: float) -> str:
    """
    Convert milliseconds since epoch to an ISO 8601 UTC timestamp.
    
    Args:
        millis: Milliseconds since the Unix epoch
        
    Returns:
        Timestamp string with millisecond precision and a 'Z' suffix
        
    Example:
        >>> format_program_date_time(1705314600000.0)
        '2024-01-15T10:30:00.000Z'
    """
    moment = _EPOCH + timedelta(milliseconds=round(millis))
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"
