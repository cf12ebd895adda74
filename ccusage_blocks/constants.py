#!/usr/bin/env python3
"""
Constants and configuration values for ccusage-blocks
Centralized location for all magic strings and configuration
"""

from datetime import timedelta
from typing import Final

# Block geometry
WINDOW_HOURS: Final[int] = 5
WINDOW_DURATION: Final[timedelta] = timedelta(hours=WINDOW_HOURS)
HOUR: Final[timedelta] = timedelta(hours=1)
MAX_GAP_RUN: Final[int] = 5

# Limit detection
LIMIT_PHRASE: Final[str] = "5-hour limit reached"
UNKNOWN_RESET_TEXT: Final[str] = "unknown"

# Transcript layout
PROJECTS_DIR: Final[str] = "projects"
TRANSCRIPT_SUFFIX: Final[str] = ".jsonl"

# Environment Variable Names
ENV_CLAUDE_DATA_PATH: Final[str] = "CLAUDE_DATA_PATH"
ENV_CACHE_PATH: Final[str] = "CCUSAGE_BLOCKS_CACHE"
ENV_LOG_LEVEL: Final[str] = "CCUSAGE_BLOCKS_LOG_LEVEL"
ENV_LOG_FILE: Final[str] = "CCUSAGE_BLOCKS_LOG_FILE"
ENV_TIMEZONE: Final[str] = "CCUSAGE_BLOCKS_TIMEZONE"

# Default Values
DEFAULT_CLAUDE_DATA_PATH: Final[str] = "~/.claude"
DEFAULT_CACHE_PATH: Final[str] = "~/.claude-bar/cache.json"
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"
LOG_LEVELS: Final[tuple[str, ...]] = (
    "TRACE",
    "DEBUG",
    "INFO",
    "SUCCESS",
    "WARNING",
    "ERROR",
    "CRITICAL",
)

# Retry Configuration
MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_FACTOR: Final[float] = 2.0
RETRY_INITIAL_DELAY: Final[float] = 0.1
RETRY_MAX_DELAY: Final[float] = 2.0

# Number Formatting Thresholds
BILLION: Final[int] = 1_000_000_000
MILLION: Final[int] = 1_000_000
THOUSAND: Final[int] = 1_000

# Date/Time Formats
DISPLAY_DATETIME_FORMAT: Final[str] = "%m-%d %H:%M"

# Logging
LOG_FORMAT: Final[str] = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
LOG_ROTATION: Final[str] = "10 MB"
LOG_RETENTION: Final[str] = "14 days"
