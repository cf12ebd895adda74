#!/usr/bin/env python3
"""
ccusage-blocks: Reconstruct Claude Code 5-hour usage blocks

Reads Claude Code JSONL transcripts, detects "5-hour limit reached" messages,
and rebuilds the timeline of limit windows and gap sessions with an
incremental on-disk cache.
"""

__version__ = "0.1.0"

from .aggregator import HourMap, add_bucket, aggregate, merge_hour_maps
from .analyzer import Analyzer, BlockStatus, archive_block, block_status, open_block
from .cache import IncrementalCache, file_cache_status, load_cache, read_cache, save_cache
from .cli import main
from .config import BlocksConfig
from .data_parser import ensure_utc, floor_to_hour, format_datetime, parse_datetime, span_hours
from .exceptions import (
    BucketMergeError,
    CacheError,
    CacheReadError,
    CacheWriteError,
    CCUsageBlocksError,
    ConfigurationError,
    DataParseError,
    ResetTimeParseError,
    RetryExhaustedError,
)
from .gaps import GapMerger
from .limit_windows import LimitWindowBuilder, LimitWindows
from .logger import get_logger, log, setup_logger
from .models import (
    Block,
    BlockKind,
    BlockLine,
    CachedFile,
    CachedFolder,
    CacheInfo,
    CacheStatus,
    FileMetadata,
    HourBucket,
    Stats,
    UsageEvent,
    UserRole,
)
from .reader import load_new_events, parse_line, scan_projects
from .reset_time import RESET_PATTERNS, extract_reset_text, parse_limit_message, resolve_unlock
from .ui import UIFormatter

__all__ = [
    # Version
    "__version__",
    # Main entry point
    "main",
    # Core classes
    "Analyzer",
    "IncrementalCache",
    "LimitWindowBuilder",
    "LimitWindows",
    "GapMerger",
    "UIFormatter",
    # Configuration
    "BlocksConfig",
    # Aggregation
    "HourMap",
    "add_bucket",
    "aggregate",
    "merge_hour_maps",
    # Block state
    "BlockStatus",
    "block_status",
    "open_block",
    "archive_block",
    # Cache
    "load_cache",
    "read_cache",
    "save_cache",
    "file_cache_status",
    # Transcripts
    "parse_line",
    "load_new_events",
    "scan_projects",
    # Reset times
    "RESET_PATTERNS",
    "extract_reset_text",
    "resolve_unlock",
    "parse_limit_message",
    # Data parsing
    "ensure_utc",
    "floor_to_hour",
    "span_hours",
    "format_datetime",
    "parse_datetime",
    # Exceptions
    "CCUsageBlocksError",
    "ConfigurationError",
    "DataParseError",
    "ResetTimeParseError",
    "BucketMergeError",
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    "RetryExhaustedError",
    # Logging
    "setup_logger",
    "get_logger",
    "log",
    # Models
    "UsageEvent",
    "UserRole",
    "Stats",
    "HourBucket",
    "Block",
    "BlockKind",
    "BlockLine",
    "CacheStatus",
    "FileMetadata",
    "CachedFile",
    "CachedFolder",
    "CacheInfo",
]
