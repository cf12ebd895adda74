#!/usr/bin/env python3
"""
Logging setup for ccusage-blocks
Diagnostics go to stderr through loguru so stdout carries only the status output
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .constants import DEFAULT_LOG_LEVEL, LOG_FORMAT, LOG_RETENTION, LOG_ROTATION


def setup_logger(
    log_file: Optional[str] = None,
    level: str = DEFAULT_LOG_LEVEL,
    colorize: Optional[bool] = None,
) -> None:
    """
    Replace every loguru sink with the ccusage-blocks ones.

    A status bar polls the CLI and reads its stdout, so the console sink is
    stderr. The optional file sink keeps a rotated trace of cache refreshes
    across runs.

    Args:
        log_file: Path of the rotated log file, ``~`` allowed (optional)
        level: Minimum level for both sinks
        colorize: Force console colors on or off (default: only on a terminal)

    Example:
        >>> setup_logger("~/.claude-bar/blocks.log", level="DEBUG")
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level,
        colorize=sys.stderr.isatty() if colorize is None else colorize,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_path),
            format=LOG_FORMAT,
            level=level,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            compression="zip",
            colorize=False,
            backtrace=True,
            diagnose=False,
        )


def get_logger(name: str):
    """Logger bound to a module name (usually ``__name__``)"""
    return logger.bind(name=name)


log = logger
