#!/usr/bin/env python3
"""
Data parsing utilities for ccusage-blocks
Handles timestamp conversion and hour flooring
"""

from datetime import datetime, timezone
from typing import List, Optional

from .constants import HOUR


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime (naive values are taken as UTC)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(datetime_str: Optional[str]) -> Optional[datetime]:
    """Parse an RFC3339 string to an aware UTC datetime, None when invalid"""
    if not datetime_str or not isinstance(datetime_str, str):
        return None
    # Handle ISO format: "2025-08-02T15:00:00.000Z"
    if datetime_str.endswith("Z"):
        datetime_str = datetime_str[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(datetime_str))
    except ValueError:
        return None


def format_datetime(value: datetime) -> str:
    """Format a datetime as RFC3339 UTC with a Z suffix"""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def floor_to_hour(value: datetime) -> datetime:
    """Round timestamp down to the hour boundary (14:32:15 -> 14:00:00)"""
    return value.replace(minute=0, second=0, microsecond=0)


def span_hours(start: datetime, end: datetime) -> List[datetime]:
    """Hour boundaries of every hour intersecting [start, end)"""
    hour = floor_to_hour(ensure_utc(start))
    end = ensure_utc(end)
    hours = []
    while hour < end:
        hours.append(hour)
        hour += HOUR
    return hours
