#!/usr/bin/env python3
"""
Analyzer facade for ccusage-blocks
Turns hour buckets and unlock times into the ordered block timeline
"""

from datetime import datetime, tzinfo
from enum import Enum
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Set, Union

from .aggregator import HourMap, aggregate, merge_hour_maps
from .constants import WINDOW_DURATION
from .data_parser import ensure_utc, floor_to_hour, span_hours
from .gaps import GapMerger
from .limit_windows import LimitWindowBuilder, LimitWindows, unlocks_from_cache, unlocks_from_events
from .models import Block, BlockKind, CacheInfo, HourBucket, Stats, UsageEvent


class BlockStatus(str, Enum):
    """Where ``now`` stands relative to the persisted current block"""

    NO_CURRENT_BLOCK = "no_current_block"
    BEFORE_CURRENT_BLOCK = "before_current_block"
    IN_CURRENT_BLOCK = "in_current_block"
    NEED_NEW_BLOCK = "need_new_block"


def block_status(current: Optional[Block], now: datetime) -> BlockStatus:
    """Classify ``now`` against the current block (bounds are inclusive)"""
    if current is None:
        return BlockStatus.NO_CURRENT_BLOCK
    now = ensure_utc(now)
    if now < current.start:
        return BlockStatus.BEFORE_CURRENT_BLOCK
    if now <= current.end:
        return BlockStatus.IN_CURRENT_BLOCK
    return BlockStatus.NEED_NEW_BLOCK


def open_block(now: datetime, unlock: Optional[datetime] = None) -> Block:
    """New current block, anchored to an unlock time or to ``now``"""
    now = ensure_utc(now)
    if unlock is not None:
        unlock = ensure_utc(unlock)
        return Block(
            kind=BlockKind.CURRENT,
            start=unlock - WINDOW_DURATION,
            end=unlock,
            unlock_timestamp=unlock,
        )
    return Block(kind=BlockKind.CURRENT, start=now, end=now + WINDOW_DURATION)


def archive_block(cache: CacheInfo, block: Block) -> bool:
    """
    Append a finished block to the cache history.

    A block whose (start, end) is already archived is skipped, so its usage is
    never counted twice.

    Returns:
        True if the block was added
    """
    if any(past.key == block.key for past in cache.history):
        return False
    cache.history.append(block)
    return True


class Analyzer:
    """
    Builds the block timeline from global hour buckets and unlock times.

    The analyzer holds no state besides its inputs; every method recomputes
    from them.
    """

    def __init__(
        self,
        hour_buckets: Mapping[datetime, HourBucket],
        unlocks: Iterable[datetime] = (),
        window_builder: Optional[LimitWindowBuilder] = None,
        gap_merger: Optional[GapMerger] = None,
    ):
        self._hour_buckets: HourMap = dict(hour_buckets)
        self._unlocks: Set[datetime] = {ensure_utc(u) for u in unlocks}
        self.window_builder = window_builder or LimitWindowBuilder()
        self.gap_merger = gap_merger or GapMerger()

    @classmethod
    def from_cache(cls, cache: CacheInfo, **kwargs) -> "Analyzer":
        """Analyzer over every file of the cache"""
        hour_buckets = merge_hour_maps(
            *(cached_file.per_hour for _, cached_file in cache.iter_files())
        )
        return cls(hour_buckets, unlocks_from_cache(cache), **kwargs)

    @classmethod
    def from_events(
        cls,
        events: Iterable[UsageEvent],
        tz: Union[tzinfo, str, None] = None,
        **kwargs,
    ) -> "Analyzer":
        """Analyzer over an in-memory batch of events"""
        events = list(events)
        return cls(aggregate(events), unlocks_from_events(events, tz), **kwargs)

    def hour_buckets(self) -> HourMap:
        return dict(self._hour_buckets)

    def unlock_timestamps(self) -> List[datetime]:
        """Distinct unlock times, most recent first"""
        return sorted(self._unlocks, reverse=True)

    def limit_windows(self) -> LimitWindows:
        return self.window_builder.build(self._unlocks, self._hour_buckets)

    def gap_blocks(self, windows: Optional[LimitWindows] = None) -> Dict[datetime, Block]:
        windows = windows or self.limit_windows()
        return self.gap_merger.fill_and_merge(windows.occupied, self._hour_buckets)

    def blocks(self) -> List[Block]:
        """Every limit and gap block, ordered by start time"""
        windows = self.limit_windows()
        gaps = self.gap_blocks(windows)
        return sorted(
            [*windows.windows.values(), *gaps.values()], key=lambda block: block.start
        )

    def span_stats(
        self,
        start: datetime,
        end: datetime,
        exclude: AbstractSet[datetime] = frozenset(),
    ) -> Stats:
        """Usage of the hours h with floor(start) <= h < end, minus excluded hours"""
        first = floor_to_hour(ensure_utc(start))
        end = ensure_utc(end)
        stats = Stats()
        for hour, bucket in self._hour_buckets.items():
            if first <= hour < end and hour not in exclude:
                stats = stats + bucket.stats
        return stats

    def current_block(self, now: datetime) -> Optional[Block]:
        """
        The live block for a status line, or None.

        The most recent block qualifies when it is a limit window containing
        ``now``, or a gap that started less than one window before ``now``.
        """
        now = ensure_utc(now)
        timeline = self.blocks()
        if not timeline:
            return None

        latest = timeline[-1]
        if latest.kind == BlockKind.LIMIT and latest.contains(now):
            return latest.model_copy(update={"kind": BlockKind.CURRENT})
        if latest.kind == BlockKind.GAP and latest.start <= now < latest.start + WINDOW_DURATION:
            return latest.model_copy(
                update={"kind": BlockKind.CURRENT, "end": latest.start + WINDOW_DURATION}
            )
        return None

    def next_block(self, now: datetime) -> Block:
        """
        Block to open when there is no usable current block.

        Prefers the live block, then a window anchored to a pending unlock
        time, then a fresh window starting now.
        """
        now = ensure_utc(now)
        live = self.current_block(now)
        if live is not None:
            return live
        pending = [unlock for unlock in self._unlocks if unlock > now]
        return open_block(now, min(pending) if pending else None)

    def refresh_block(self, block: Block, history: Iterable[Block] = ()) -> Block:
        """
        Recompute a block's usage from the current hour buckets.

        Hours already claimed by a different block of ``history`` are left
        out, so an hour shared by two consecutive blocks is counted once.
        """
        claimed: Set[datetime] = set()
        for past in history:
            if past.key != block.key:
                claimed.update(span_hours(past.start, past.end))
        stats = self.span_stats(block.start, block.end, exclude=claimed)
        return block.model_copy(update={"stats": stats})
