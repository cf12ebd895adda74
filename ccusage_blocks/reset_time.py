#!/usr/bin/env python3
"""
Reset time parsing for ccusage-blocks
Extracts "resets 10pm"-style text from limit messages and resolves it to
an absolute unlock timestamp
"""

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Pattern, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import UNKNOWN_RESET_TEXT
from .data_parser import ensure_utc
from .exceptions import ResetTimeParseError
from .logger import get_logger
from .models import BlockLine

log = get_logger(__name__)

_CLOCK = r"(\d{1,2}(?::\d{2})?\s*(?:am|pm))"
_CLOCK_PARTS = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)


@dataclass(frozen=True)
class ResetPattern:
    """One way of spotting a reset time inside a limit message"""

    name: str
    regex: Pattern[str]

    def match(self, message: str) -> Optional[str]:
        """Return the lower-cased clock text captured by this pattern"""
        found = self.regex.search(message)
        if found is None:
            return None
        return found.group(1).lower()


# Tried in order, first match wins
RESET_PATTERNS: Tuple[ResetPattern, ...] = (
    ResetPattern("reset_time_label", re.compile(r"reset\s*time:\s*" + _CLOCK, re.IGNORECASE)),
    ResetPattern("resets_at", re.compile(r"resets?\s+(?:at\s+)?" + _CLOCK, re.IGNORECASE)),
    ResetPattern("until_or_at", re.compile(r"(?:until|at)\s+" + _CLOCK, re.IGNORECASE)),
)


def extract_reset_text(
    message: Optional[str], patterns: Tuple[ResetPattern, ...] = RESET_PATTERNS
) -> Optional[str]:
    """
    Find the reset time mentioned in a limit message.

    Args:
        message: Limit message text
        patterns: Ordered matchers, the first one that matches is used

    Returns:
        Clock text such as "10pm" or "11:30pm", or None

    Example:
        >>> extract_reset_text("5-hour limit reached ∙ resets 5pm")
        '5pm'
    """
    if not message:
        return None
    for pattern in patterns:
        text = pattern.match(message)
        if text is not None:
            return text
    return None


def parse_clock_time(reset_text: str) -> Tuple[int, int]:
    """
    Convert "H(:MM)?(am|pm)" to a 24-hour (hour, minute) pair.

    Raises:
        ResetTimeParseError: If the text is not a valid 12-hour clock time
    """
    found = _CLOCK_PARTS.search(reset_text or "")
    if found is None:
        raise ResetTimeParseError(f"No clock time in '{reset_text}'")

    hour = int(found.group(1))
    minute = int(found.group(2)) if found.group(2) else 0
    is_pm = found.group(3).lower() == "pm"

    if not 1 <= hour <= 12:
        raise ResetTimeParseError(f"Hour out of range in '{reset_text}'")

    if hour == 12:
        hour_24 = 12 if is_pm else 0
    else:
        hour_24 = hour + 12 if is_pm else hour

    if hour_24 >= 24 or minute >= 60:
        raise ResetTimeParseError(f"Invalid clock time '{reset_text}'")
    return hour_24, minute


def _resolve_zone(tz: Union[tzinfo, str, None]) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def resolve_unlock(
    event_timestamp: datetime,
    reset_text: Optional[str],
    tz: Union[tzinfo, str, None] = None,
) -> Optional[datetime]:
    """
    Turn a reset time into the absolute moment the limit lifts.

    The candidate is built on the event's calendar date (in ``tz``). If it is
    not strictly after the event it moves to the next day.

    Args:
        event_timestamp: When the limit message was written
        reset_text: Clock text such as "10pm"
        tz: Zone the clock text is expressed in (UTC when omitted)

    Returns:
        Unlock timestamp in UTC, or None when the text or zone is invalid

    Example:
        >>> resolve_unlock(datetime(2024, 1, 1, 23, tzinfo=timezone.utc), "10pm")
        datetime.datetime(2024, 1, 2, 22, 0, tzinfo=datetime.timezone.utc)
    """
    if not reset_text:
        return None
    try:
        hour, minute = parse_clock_time(reset_text)
        zone = _resolve_zone(tz)
    except ResetTimeParseError as e:
        log.debug(f"Ignoring reset text: {e}")
        return None
    except (ZoneInfoNotFoundError, ValueError) as e:
        log.warning(f"Unknown timezone {tz!r}: {e}")
        return None

    event_timestamp = ensure_utc(event_timestamp)
    local_date = event_timestamp.astimezone(zone).date()
    candidate = datetime.combine(local_date, time(hour, minute), tzinfo=zone)
    if candidate <= event_timestamp:
        candidate = datetime.combine(
            local_date + timedelta(days=1), time(hour, minute), tzinfo=zone
        )
    return candidate.astimezone(timezone.utc)


def parse_limit_message(
    event_timestamp: datetime,
    message: Optional[str],
    tz: Union[tzinfo, str, None] = None,
) -> BlockLine:
    """Build the cached record of a limit message"""
    reset_text = extract_reset_text(message)
    if reset_text is None:
        return BlockLine(unlock_timestamp=None, reset_text=UNKNOWN_RESET_TEXT)
    return BlockLine(
        unlock_timestamp=resolve_unlock(event_timestamp, reset_text, tz),
        reset_text=reset_text,
    )
