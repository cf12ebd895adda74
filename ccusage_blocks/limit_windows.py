#!/usr/bin/env python3
"""
Limit window reconstruction for ccusage-blocks
Materializes the fixed 5-hour window that ends at each detected unlock time
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Set, Union

from .constants import WINDOW_DURATION
from .data_parser import ensure_utc, format_datetime, span_hours
from .logger import get_logger
from .models import Block, BlockKind, CacheInfo, HourBucket, Stats, UsageEvent
from .reset_time import parse_limit_message

log = get_logger(__name__)


def unlocks_from_events(
    events: Iterable[UsageEvent], tz: Union[tzinfo, str, None] = None
) -> Set[datetime]:
    """Resolve the unlock time of every limit message among the events"""
    unlocks: Set[datetime] = set()
    for event in events:
        if not event.is_limit_reached:
            continue
        line = parse_limit_message(event.timestamp, event.content_text, tz)
        if line.unlock_timestamp is not None:
            unlocks.add(line.unlock_timestamp)
    return unlocks


def unlocks_from_cache(cache: CacheInfo) -> Set[datetime]:
    """Collect the unlock times stored for every cached file"""
    return {
        line.unlock_timestamp
        for _, cached_file in cache.iter_files()
        for line in cached_file.blocks.values()
        if line.unlock_timestamp is not None
    }


@dataclass
class LimitWindows:
    """Result of a build: windows keyed by start, plus the hours they cover"""

    windows: Dict[datetime, Block] = field(default_factory=dict)
    occupied: Set[datetime] = field(default_factory=set)
    # Unlock times dropped because their window overlapped an earlier one
    rejected: List[datetime] = field(default_factory=list)

    def sorted_windows(self) -> List[Block]:
        """Windows ordered by unlock time, most recent first"""
        return sorted(
            self.windows.values(), key=lambda block: block.unlock_timestamp, reverse=True
        )


class LimitWindowBuilder:
    """
    Builds limit blocks spanning ``[unlock - window, unlock)``.

    Hours are every clock hour that intersects that half-open span, so an
    unlock such as 23:30 covers 18:00 through 23:00. Every such hour is
    marked occupied whether or not a bucket exists for it, so it never turns
    into a gap, and an hour already claimed by an earlier window is not
    folded again.

    Overlapping windows are resolved deterministically: unlock times are
    taken in ascending order and a window that starts before the previously
    accepted window ends is rejected.
    """

    def __init__(self, window: timedelta = WINDOW_DURATION):
        self.window = window

    def window_hours(self, unlock: datetime) -> List[datetime]:
        """Hours h with floor(unlock - window) <= h < unlock"""
        unlock = ensure_utc(unlock)
        return span_hours(unlock - self.window, unlock)

    def build_window(
        self,
        unlock: datetime,
        hour_buckets: Mapping[datetime, HourBucket],
        claimed: AbstractSet[datetime] = frozenset(),
    ) -> Block:
        """Fold every bucket of the window's hours, except claimed ones, into one limit block"""
        unlock = ensure_utc(unlock)
        stats = Stats()
        min_timestamp: Optional[datetime] = None
        max_timestamp: Optional[datetime] = None

        for hour in self.window_hours(unlock):
            if hour in claimed:
                continue
            bucket = hour_buckets.get(hour)
            if bucket is None:
                continue
            stats = stats + bucket.stats
            if min_timestamp is None or bucket.min_timestamp < min_timestamp:
                min_timestamp = bucket.min_timestamp
            if max_timestamp is None or bucket.max_timestamp > max_timestamp:
                max_timestamp = bucket.max_timestamp

        return Block(
            kind=BlockKind.LIMIT,
            start=unlock - self.window,
            end=unlock,
            min_timestamp=min_timestamp,
            max_timestamp=max_timestamp,
            unlock_timestamp=unlock,
            stats=stats,
        )

    def build(
        self,
        unlocks: Iterable[datetime],
        hour_buckets: Mapping[datetime, HourBucket],
    ) -> LimitWindows:
        """
        Build one window per distinct unlock time.

        Args:
            unlocks: Unlock timestamps from limit events or the cache
            hour_buckets: Global per-hour usage

        Returns:
            LimitWindows with the accepted windows and their occupied hours
        """
        result = LimitWindows()
        previous_end: Optional[datetime] = None

        for unlock in sorted({ensure_utc(u) for u in unlocks}):
            start = unlock - self.window
            if previous_end is not None and start < previous_end:
                log.debug(
                    f"Rejecting window ending {format_datetime(unlock)}: "
                    f"overlaps window ending {format_datetime(previous_end)}"
                )
                result.rejected.append(unlock)
                continue

            result.windows[start] = self.build_window(unlock, hour_buckets, result.occupied)
            result.occupied.update(self.window_hours(unlock))
            previous_end = unlock

        return result
