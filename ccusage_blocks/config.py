#!/usr/bin/env python3
"""
Configuration module for ccusage-blocks
Handles environment variables and application settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CACHE_PATH,
    DEFAULT_CLAUDE_DATA_PATH,
    DEFAULT_LOG_LEVEL,
    ENV_CACHE_PATH,
    ENV_CLAUDE_DATA_PATH,
    ENV_LOG_FILE,
    ENV_LOG_LEVEL,
    ENV_TIMEZONE,
    LOG_LEVELS,
    PROJECTS_DIR,
)
from .exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _normalize_level(level: str) -> str:
    normalized = level.strip().upper()
    if normalized not in LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level '{level}', expected one of {', '.join(LOG_LEVELS)}"
        )
    return normalized


@dataclass
class BlocksConfig:
    """
    Runtime configuration for the block analyzer.

    Values come from the environment (and a local .env file) and can be
    overridden by command-line arguments.
    """

    claude_data_path: Path = field(
        default_factory=lambda: Path(
            os.getenv(ENV_CLAUDE_DATA_PATH, DEFAULT_CLAUDE_DATA_PATH)
        ).expanduser()
    )
    cache_path: Path = field(
        default_factory=lambda: Path(
            os.getenv(ENV_CACHE_PATH, DEFAULT_CACHE_PATH)
        ).expanduser()
    )
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None

    # IANA zone that reset times in limit messages are expressed in
    timezone: Optional[str] = None

    # Ignore the persisted cache and rebuild from the transcripts
    no_cache: bool = False

    def __post_init__(self):
        self.log_level = _normalize_level(self.log_level)

    @property
    def projects_path(self) -> Path:
        """Directory holding one folder of transcripts per project"""
        return self.claude_data_path / PROJECTS_DIR

    @classmethod
    def from_env(cls) -> "BlocksConfig":
        """
        Create configuration from environment variables.

        Returns:
            BlocksConfig with values from environment or defaults
        """
        return cls(
            log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL),
            log_file=os.getenv(ENV_LOG_FILE) or None,
            timezone=os.getenv(ENV_TIMEZONE) or None,
        )

    @classmethod
    def from_args(cls, args) -> "BlocksConfig":
        """
        Create configuration from argparse arguments.

        Args:
            args: Parsed command-line arguments

        Returns:
            BlocksConfig with environment defaults overridden by arguments
        """
        config = cls.from_env()

        if getattr(args, "data_path", None):
            config.claude_data_path = Path(args.data_path).expanduser()

        if getattr(args, "cache_path", None):
            config.cache_path = Path(args.cache_path).expanduser()

        if getattr(args, "log_level", None):
            config.log_level = _normalize_level(args.log_level)

        if getattr(args, "no_cache", False):
            config.no_cache = True

        return config
