#!/usr/bin/env python3
"""
Tests for the Analyzer facade and the current-block state machine
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ccusage_blocks.analyzer import Analyzer, BlockStatus, archive_block, block_status, open_block
from ccusage_blocks.models import Block, BlockKind, CacheInfo, Stats, UsageEvent, UserRole

UTC = timezone.utc
LIMIT_TEXT = "5-hour limit reached ∙ resets 10pm"


def at(hour, minute=0, day=1):
    return datetime(2024, 1, day, hour, minute, tzinfo=UTC)


def make_event(hour, minute=0, day=1, text=None, tokens=100):
    return UsageEvent(
        timestamp=at(hour, minute, day),
        role=UserRole.ASSISTANT,
        input_tokens=tokens,
        is_limit_reached=text is not None,
        content_text=text,
    )


@pytest.fixture
def day_of_usage():
    """Morning session, a limit hit at 14:00, evening usage and next-day usage"""
    return [
        make_event(9),
        make_event(10),
        make_event(14, text=LIMIT_TEXT),
        make_event(20),
        make_event(21),
        make_event(6, day=2),
    ]


class TestEndToEnd:
    """Full timeline reconstruction"""

    def test_blocks(self, day_of_usage):
        blocks = Analyzer.from_events(day_of_usage).blocks()

        assert [(b.kind, b.start, b.end) for b in blocks] == [
            (BlockKind.GAP, at(9), at(11)),
            (BlockKind.GAP, at(14), at(15)),
            (BlockKind.LIMIT, at(17), at(22)),
            (BlockKind.GAP, at(6, day=2), at(7, day=2)),
        ]

    def test_limit_block_contents(self, day_of_usage):
        limit = Analyzer.from_events(day_of_usage).blocks()[2]
        assert limit.unlock_timestamp == at(22)
        assert limit.stats.entry_count == 2
        assert limit.min_timestamp == at(20)
        assert limit.max_timestamp == at(21)

    def test_limit_message_hour_is_counted(self, day_of_usage):
        gap = Analyzer.from_events(day_of_usage).blocks()[1]
        assert gap.stats.limit_hits == 1
        assert gap.stats.entry_count == 1

    def test_every_event_counted_once(self, day_of_usage):
        blocks = Analyzer.from_events(day_of_usage).blocks()
        assert sum(b.stats.entry_count for b in blocks) == len(day_of_usage)

    def test_blocks_do_not_overlap(self, day_of_usage):
        blocks = Analyzer.from_events(day_of_usage).blocks()
        for previous, current in zip(blocks, blocks[1:]):
            assert previous.end <= current.start

    def test_unlock_timestamps(self, day_of_usage):
        analyzer = Analyzer.from_events(
            day_of_usage + [make_event(23, day=2, text=LIMIT_TEXT)]
        )
        assert analyzer.unlock_timestamps() == [at(22, day=3), at(22)]

    def test_no_events(self):
        analyzer = Analyzer.from_events([])
        assert analyzer.blocks() == []
        assert analyzer.hour_buckets() == {}
        assert analyzer.current_block(at(12)) is None

    def test_span_stats(self, day_of_usage):
        analyzer = Analyzer.from_events(day_of_usage)
        assert analyzer.span_stats(at(9, 30), at(14)).entry_count == 2
        assert analyzer.span_stats(at(9), at(22)).entry_count == 5

    def test_span_stats_excluded_hours(self, day_of_usage):
        analyzer = Analyzer.from_events(day_of_usage)
        stats = analyzer.span_stats(at(9), at(22), exclude={at(9), at(20)})
        assert stats.entry_count == 3


class TestUnalignedUnlock:
    """Limit windows whose unlock time is not on the hour"""

    @pytest.fixture
    def events(self):
        return [
            make_event(16, text="5-hour limit reached ∙ resets 11:30pm"),
            make_event(18, 45),
            make_event(23, 50),
        ]

    def test_partial_first_hour_belongs_to_window(self, events):
        blocks = Analyzer.from_events(events).blocks()

        assert [(b.kind, b.start, b.end) for b in blocks] == [
            (BlockKind.GAP, at(16), at(17)),
            (BlockKind.LIMIT, at(18, 30), at(23, 30)),
        ]
        assert blocks[1].stats.entry_count == 2
        assert blocks[1].min_timestamp == at(18, 45)
        assert blocks[1].max_timestamp == at(23, 50)

    def test_blocks_do_not_overlap(self, events):
        blocks = Analyzer.from_events(events).blocks()
        for previous, current in zip(blocks, blocks[1:]):
            assert previous.end <= current.start

    def test_every_event_counted_once(self, events):
        blocks = Analyzer.from_events(events).blocks()
        assert sum(b.stats.entry_count for b in blocks) == len(events)


class TestBlockStatus:
    """Tests for classifying now against the current block"""

    @pytest.fixture
    def current(self):
        return Block(kind=BlockKind.CURRENT, start=at(10), end=at(15))

    def test_no_block(self):
        assert block_status(None, at(12)) == BlockStatus.NO_CURRENT_BLOCK

    def test_before(self, current):
        assert block_status(current, at(9, 59)) == BlockStatus.BEFORE_CURRENT_BLOCK

    @pytest.mark.parametrize("now", [at(10), at(12), at(15)])
    def test_inside_inclusive(self, current, now):
        assert block_status(current, now) == BlockStatus.IN_CURRENT_BLOCK

    def test_after(self, current):
        now = at(15) + timedelta(seconds=1)
        assert block_status(current, now) == BlockStatus.NEED_NEW_BLOCK


class TestOpenAndArchive:
    """Tests for opening and archiving blocks"""

    def test_open_from_now(self):
        block = open_block(at(12, 30))
        assert block.kind == BlockKind.CURRENT
        assert block.start == at(12, 30)
        assert block.end == at(17, 30)
        assert block.unlock_timestamp is None

    def test_open_from_unlock(self):
        block = open_block(at(18), at(22))
        assert block.start == at(17)
        assert block.end == at(22)
        assert block.unlock_timestamp == at(22)

    def test_archive_dedupes(self):
        cache = CacheInfo()
        block = Block(kind=BlockKind.CURRENT, start=at(10), end=at(15))
        assert archive_block(cache, block) is True
        assert archive_block(cache, block.model_copy(update={"stats": Stats(entry_count=3)})) is False
        assert len(cache.history) == 1


class TestCurrentBlock:
    """Tests for live block selection"""

    def test_recent_gap_extends_to_full_window(self):
        analyzer = Analyzer.from_events([make_event(9), make_event(10)])
        current = analyzer.current_block(at(12))
        assert current.kind == BlockKind.CURRENT
        assert current.start == at(9)
        assert current.end == at(14)
        assert current.stats.entry_count == 2

    def test_stale_gap(self):
        analyzer = Analyzer.from_events([make_event(9), make_event(10)])
        assert analyzer.current_block(at(14)) is None

    def test_gap_not_started(self):
        analyzer = Analyzer.from_events([make_event(9)])
        assert analyzer.current_block(at(8)) is None

    def test_inside_limit_window(self):
        analyzer = Analyzer.from_events([make_event(14, text=LIMIT_TEXT), make_event(20)])
        current = analyzer.current_block(at(21, 30))
        assert current.kind == BlockKind.CURRENT
        assert current.start == at(17)
        assert current.end == at(22)
        assert current.unlock_timestamp == at(22)

    def test_limit_window_end_is_exclusive(self):
        analyzer = Analyzer.from_events([make_event(14, text=LIMIT_TEXT), make_event(20)])
        assert analyzer.current_block(at(22)) is None


class TestNextBlock:
    """Tests for choosing the block to open"""

    def test_prefers_live_block(self):
        analyzer = Analyzer.from_events([make_event(9)])
        assert analyzer.next_block(at(11)).start == at(9)

    def test_pending_unlock(self):
        analyzer = Analyzer.from_events([make_event(14, text=LIMIT_TEXT)])
        block = analyzer.next_block(at(15, 30))
        assert block.start == at(17)
        assert block.end == at(22)

    def test_fresh_window(self):
        analyzer = Analyzer.from_events([make_event(9)])
        block = analyzer.next_block(at(20))
        assert block.start == at(20)
        assert block.end == at(1, day=2)

    def test_refresh_block(self, day_of_usage):
        analyzer = Analyzer.from_events(day_of_usage)
        block = open_block(at(9))
        refreshed = analyzer.refresh_block(block)
        assert refreshed.key == block.key
        assert refreshed.stats.entry_count == 2

    def test_refresh_block_skips_hours_of_archived_blocks(self):
        analyzer = Analyzer.from_events([make_event(10, 30), make_event(15, 10)])
        archived = Block(kind=BlockKind.CURRENT, start=at(10, 20), end=at(15, 20))
        following = Block(kind=BlockKind.CURRENT, start=at(15), end=at(20))

        assert analyzer.refresh_block(following).stats.entry_count == 1
        refreshed = analyzer.refresh_block(following, history=[archived])
        assert refreshed.stats.is_empty

    def test_refresh_block_ignores_itself_in_history(self, day_of_usage):
        analyzer = Analyzer.from_events(day_of_usage)
        block = open_block(at(9))
        refreshed = analyzer.refresh_block(block, history=[block])
        assert refreshed.stats.entry_count == 2
