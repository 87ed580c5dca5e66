"""Shared validation utilities"""

import re
from datetime import time
from typing import Optional

from ..models import FLIGHT_STATUSES, TRANSPORT_GROUP_STATUSES

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time_string(value: Optional[str]) -> Optional[time]:
    """
    Parse a local clock time such as "13:05" or "13:05:00".

    Returns:
        datetime.time, or None if the value is empty or not a valid time
    """
    if not value:
        return None

    match = TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def parse_buffer_minutes(value: Optional[str], default: int = 30) -> int:
    """
    Convert an "HH:MM" buffer string to minutes.

    Missing or malformed values fall back to ``default`` without raising.
    """
    if not value:
        return default

    parts = value.strip().split(":")
    if len(parts) != 2:
        return default

    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return default

    if hours < 0 or minutes < 0:
        return default
    return hours * 60 + minutes


def validate_time_string(value: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a clock time to "HH:MM".

    Raises:
        ValueError: If the time cannot be parsed
    """
    if not value:
        return value

    parsed = parse_time_string(value)
    if parsed is None:
        raise ValueError("Time must be in HH:MM format")
    return parsed.strftime("%H:%M")


def validate_flight_status(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    normalized = value.strip().lower()
    if normalized not in FLIGHT_STATUSES:
        raise ValueError(f"Flight status must be one of: {', '.join(FLIGHT_STATUSES)}")
    return normalized


def validate_group_status(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    normalized = value.strip().lower()
    if normalized not in TRANSPORT_GROUP_STATUSES:
        raise ValueError(
            f"Transport group status must be one of: {', '.join(TRANSPORT_GROUP_STATUSES)}"
        )
    return normalized
