#!/usr/bin/env python3
"""
CLI module for ccusage-blocks
Handles command-line argument parsing and main entry point
"""

import argparse
import sys
from datetime import datetime, timezone
from typing import List, Optional

from .analyzer import Analyzer, BlockStatus, archive_block, block_status
from .cache import IncrementalCache
from .config import BlocksConfig
from .exceptions import CacheWriteError, ConfigurationError
from .logger import get_logger, setup_logger
from .models import CacheInfo
from .reader import scan_projects
from .ui import UIFormatter

log = get_logger(__name__)


def show_blocks(analyzer: Analyzer) -> None:
    """Print every block, most recent first"""
    UIFormatter.print_header("5-Hour Usage Blocks")
    for block in reversed(analyzer.blocks()):
        print(UIFormatter.format_block(block))


def show_resets(analyzer: Analyzer) -> None:
    """Print detected limit windows, most recent first"""
    windows = analyzer.limit_windows()
    if not windows.windows:
        print("No limit messages found.")
        return
    UIFormatter.print_header("Detected Limit Windows")
    for block in windows.sorted_windows():
        print(
            f"  {UIFormatter.format_time(block.end)} | "
            f"{UIFormatter.format_time(block.start)} | "
            f"{UIFormatter.format_number(block.stats.total_tokens)} tokens"
        )
    if windows.rejected:
        print(f"  ({len(windows.rejected)} overlapping windows ignored)")


def show_history(cache: CacheInfo) -> None:
    """Print archived blocks, most recent first"""
    if not cache.history:
        print("No archived blocks.")
        return
    UIFormatter.print_header("Archived Blocks")
    for block in sorted(cache.history, key=lambda block: block.start, reverse=True):
        print(UIFormatter.format_block(block))


def update_current_block(cache: CacheInfo, analyzer: Analyzer, now: datetime) -> BlockStatus:
    """
    Advance the persisted current block and return the status it was found in.

    A finished block is archived before the next one is opened. Usage is
    always recomputed against the archive, so an hour already counted by an
    archived block is not counted again by the current one.
    """
    status = block_status(cache.current_block, now)

    if status in (BlockStatus.NO_CURRENT_BLOCK, BlockStatus.NEED_NEW_BLOCK):
        if cache.current_block is not None:
            archive_block(cache, analyzer.refresh_block(cache.current_block, cache.history))
        cache.current_block = analyzer.refresh_block(analyzer.next_block(now), cache.history)
    else:
        cache.current_block = analyzer.refresh_block(cache.current_block, cache.history)

    return status


def show_status(cache: CacheInfo, analyzer: Analyzer, now: datetime) -> None:
    """Print the one-line status of the current block"""
    status = update_current_block(cache, analyzer, now)
    log.debug(f"Block status: {status.value}")
    print(UIFormatter.format_status(block_status(cache.current_block, now), cache.current_block, now))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccusage-blocks",
        description="Reconstruct 5-hour usage blocks from Claude Code transcripts",
        epilog="Examples:\n  %(prog)s                 # One-line status of the current block\n  %(prog)s blocks          # All limit and session blocks\n  %(prog)s --no-cache resets  # Rebuild the cache, list limit windows\n  %(prog)s history         # Blocks archived by earlier status runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="status",
        choices=["status", "blocks", "resets", "history"],
        help="What to show (default: status)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore the persisted cache and parse every transcript again",
    )
    parser.add_argument("--data-path", help="Claude data directory (default: ~/.claude)")
    parser.add_argument("--cache-path", help="Cache file location")
    parser.add_argument("--log-level", help="Logging level (default: WARNING)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with argument parsing"""
    args = build_parser().parse_args(argv)

    try:
        config = BlocksConfig.from_args(args)
    except ConfigurationError as e:
        print(f"💥 {e}", file=sys.stderr)
        return 2

    setup_logger(config.log_file, level=config.log_level)
    now = datetime.now(timezone.utc)
    exit_code = 0

    try:
        with IncrementalCache(
            config.cache_path, no_cache=config.no_cache, tz=config.timezone
        ) as cache:
            counts = cache.sync(scan_projects(config.projects_path))
            log.debug(f"Cache sync: { {k.value: v for k, v in counts.items()} }")

            analyzer = Analyzer.from_cache(cache.info)
            if not analyzer.hour_buckets():
                print("❌ No usage data found")
                exit_code = 1
            elif args.command == "blocks":
                show_blocks(analyzer)
            elif args.command == "resets":
                show_resets(analyzer)
            elif args.command == "history":
                show_history(cache.info)
            else:
                show_status(cache.info, analyzer, now)
    except CacheWriteError as e:
        log.warning(f"Cache not saved: {e}")
    except KeyboardInterrupt:
        print("\n⏹️  Operation cancelled by user")
        return 130

    return exit_code


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
