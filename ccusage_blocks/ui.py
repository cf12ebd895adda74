#!/usr/bin/env python3
"""
UI and formatting utilities for ccusage-blocks
Provides plain-text block rows and the one-line status
"""

from datetime import datetime, timedelta
from typing import Optional

from .constants import BILLION, DISPLAY_DATETIME_FORMAT, MILLION, THOUSAND


class UIFormatter:
    """Text formatting for block listings and the status line"""

    KIND_LABELS = {"limit": "Limit", "gap": "Session", "current": "Current"}
    STATUS_ICONS = {
        "in_current_block": "🟢",
        "need_new_block": "🔴",
        "before_current_block": "🔴",
        "no_current_block": "🟡",
    }

    @staticmethod
    def print_header(title: str):
        """Print a compact header"""
        print(f"\n📊 {title}")

    @staticmethod
    def format_number(num: int) -> str:
        """Format large numbers with appropriate suffixes"""
        if num >= BILLION:
            return f"{num / BILLION:.1f}B"
        elif num >= MILLION:
            return f"{num / MILLION:.1f}M"
        elif num >= THOUSAND:
            return f"{num / THOUSAND:.1f}K"
        else:
            return f"{num:,}"

    @staticmethod
    def format_duration(delta: timedelta) -> str:
        """Format a duration such as 2h 5m or 42m"""
        total_minutes = max(int(delta.total_seconds() // 60), 0)
        hours, minutes = divmod(total_minutes, 60)
        if hours:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    @staticmethod
    def format_time(value: Optional[datetime]) -> str:
        return value.strftime(DISPLAY_DATETIME_FORMAT) if value else "-"

    @classmethod
    def format_block(cls, block) -> str:
        """One row of the blocks listing"""
        kind = cls.KIND_LABELS.get(block.kind.value, block.kind.value)
        return (
            f"{kind:>8} | {cls.format_time(block.start)} → {cls.format_time(block.end)}"
            f" | {cls.format_duration(block.duration):>7}"
            f" | {cls.format_number(block.stats.total_tokens):>7} tokens"
            f" | {block.stats.assistant_messages:>4} msgs"
        )

    @classmethod
    def format_status(cls, status, block, now: datetime) -> str:
        """Single status line for the current block"""
        icon = cls.STATUS_ICONS.get(status.value, "🟡")
        if block is None:
            return f"{icon} NO BLOCK"

        remaining = block.end - now
        parts = [
            f"{icon} {cls.format_duration(remaining)} left"
            if remaining > timedelta(0)
            else f"{icon} ENDED",
            f"{cls.format_number(block.stats.total_tokens)} tokens",
            f"{block.stats.assistant_messages} msgs",
        ]
        if block.unlock_timestamp is not None:
            parts.append(f"resets {cls.format_time(block.unlock_timestamp)}")
        return " | ".join(parts)
