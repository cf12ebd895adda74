#!/usr/bin/env python3
"""
Gap block construction for ccusage-blocks
Turns active hours outside any limit window into gap blocks and merges
consecutive ones
"""

from datetime import datetime, timedelta
from typing import AbstractSet, Dict, Mapping

from .constants import HOUR, MAX_GAP_RUN
from .models import Block, BlockKind, HourBucket


def gap_from_bucket(bucket: HourBucket) -> Block:
    """One-hour gap block carrying a single bucket's usage"""
    return Block(
        kind=BlockKind.GAP,
        start=bucket.hour_start,
        end=bucket.hour_start + HOUR,
        min_timestamp=bucket.min_timestamp,
        max_timestamp=bucket.max_timestamp,
        stats=bucket.stats,
    )


class GapMerger:
    """
    Fills unoccupied hours with gap blocks and merges runs of them.

    A run grows while each next hour follows the previous one by at most an
    hour and holds at most ``max_run`` members, which keeps a merged gap no
    longer than a limit window.
    """

    def __init__(self, max_run: int = MAX_GAP_RUN):
        self.max_run = max_run

    def fill_gaps(
        self,
        occupied: AbstractSet[datetime],
        hour_buckets: Mapping[datetime, HourBucket],
    ) -> Dict[datetime, Block]:
        """Create a one-hour gap for every bucket whose hour is not occupied"""
        return {
            hour: gap_from_bucket(bucket)
            for hour, bucket in hour_buckets.items()
            if hour not in occupied
        }

    def merge_gaps(self, gaps: Mapping[datetime, Block]) -> Dict[datetime, Block]:
        """Fold consecutive one-hour gaps into runs of up to ``max_run`` hours"""
        merged: Dict[datetime, Block] = {}
        run_start = None
        previous = None
        members = 0

        for start in sorted(gaps):
            gap = gaps[start]
            joins_run = (
                run_start is not None
                and members < self.max_run
                and timedelta(0) <= start - previous <= HOUR
            )
            if joins_run:
                head = merged[run_start]
                merged[run_start] = head.model_copy(
                    update={
                        "end": gap.end,
                        "max_timestamp": gap.max_timestamp,
                        "stats": head.stats + gap.stats,
                    }
                )
                members += 1
            else:
                merged[start] = gap
                run_start = start
                members = 1
            previous = start

        return merged

    def fill_and_merge(
        self,
        occupied: AbstractSet[datetime],
        hour_buckets: Mapping[datetime, HourBucket],
    ) -> Dict[datetime, Block]:
        return self.merge_gaps(self.fill_gaps(occupied, hour_buckets))
