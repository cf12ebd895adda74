#!/usr/bin/env python3
"""
Hour aggregation for ccusage-blocks
Folds usage events into one HourBucket per clock hour
"""

from datetime import datetime
from typing import Dict, Iterable, Mapping

from .models import HourBucket, UsageEvent

HourMap = Dict[datetime, HourBucket]


def add_bucket(hour_map: HourMap, bucket: HourBucket) -> None:
    """Insert a bucket, merging it with the bucket already stored for its hour"""
    existing = hour_map.get(bucket.hour_start)
    hour_map[bucket.hour_start] = bucket if existing is None else existing.merge(bucket)


def aggregate(events: Iterable[UsageEvent]) -> HourMap:
    """
    Group events by the hour they occurred in.

    The result does not depend on the order of ``events``.

    Args:
        events: Usage events in any order

    Returns:
        Mapping of hour start to the aggregated bucket for that hour

    Example:
        >>> buckets = aggregate(events)
        >>> buckets[datetime(2024, 1, 1, 14, tzinfo=timezone.utc)].entry_count
        3
    """
    hour_map: HourMap = {}
    for event in events:
        add_bucket(hour_map, HourBucket.from_event(event))
    return hour_map


def merge_hour_maps(*maps: Mapping[datetime, HourBucket]) -> HourMap:
    """Fold several hour maps (files, cache partitions) into one"""
    merged: HourMap = {}
    for hour_map in maps:
        for bucket in hour_map.values():
            add_bucket(merged, bucket)
    return merged
