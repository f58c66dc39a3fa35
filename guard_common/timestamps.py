#!/usr/bin/env python3

"""
Timestamp Utilities - Centralized timestamp generation and parsing

Standard: blocker timestamps and middleware event timestamps are integer
milliseconds since the Unix epoch. Schedules may also be given as
datetimes or ISO 8601 strings.
"""

from datetime import datetime
import time
from typing import Union

TimestampLike = Union[int, float, str, datetime]


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch"""
    return int(time.time() * 1000)


def parse_timestamp_ms(value: TimestampLike) -> int:
    """
    Convert a timestamp-like value to epoch milliseconds.
    
    Accepts epoch milliseconds, datetime objects (naive values are taken
    as local time) and ISO 8601 strings with either a 'Z' suffix or an
    explicit offset.
    
    Raises:
        ValueError: if the value cannot be interpreted
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            raise ValueError("Timestamp is NaN")
        return int(value)
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid ISO timestamp: {value!r}") from e
        return int(dt.timestamp() * 1000)
    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")
