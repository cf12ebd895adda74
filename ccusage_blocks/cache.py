#!/usr/bin/env python3
"""
Incremental cache for ccusage-blocks
Keeps per-file hour buckets and limit events so reruns only parse new lines
"""

import os
import tempfile
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .aggregator import add_bucket, aggregate
from .exceptions import CacheReadError, CacheWriteError
from .logger import get_logger
from .models import CachedFile, CachedFolder, CacheInfo, CacheStatus, FileMetadata, UsageEvent
from .reader import load_new_events
from .reset_time import parse_limit_message
from .retry import retry_cache_write

log = get_logger(__name__)


def read_cache(path: Union[str, Path]) -> CacheInfo:
    """
    Decode the cache file strictly.

    A missing or empty file is an empty cache.

    Raises:
        CacheReadError: If the file cannot be read or does not decode
    """
    path = Path(path)
    if not path.exists():
        return CacheInfo()

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CacheReadError(f"Cannot read cache {path}: {e}") from e

    if not content.strip():
        return CacheInfo()

    try:
        return CacheInfo.model_validate_json(content)
    except ValidationError as e:
        raise CacheReadError(
            f"Malformed cache {path} ({e.error_count()} errors)"
        ) from e


def load_cache(path: Union[str, Path]) -> CacheInfo:
    """
    Load the cache file, falling back to an empty cache.

    An unreadable or malformed file never fails the run.
    """
    try:
        return read_cache(path)
    except CacheReadError as e:
        log.warning(f"Discarding cache: {e}")
        return CacheInfo()


@retry_cache_write
def save_cache(cache: CacheInfo, path: Union[str, Path]) -> None:
    """
    Write the cache atomically (temporary file, then rename).

    Raises:
        CacheWriteError: If every write attempt failed
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(cache.model_dump_json(indent=2))
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)


def file_cache_status(cache: CacheInfo, file: FileMetadata) -> CacheStatus:
    """Compare a file's modification time with its cached watermark"""
    cached_file = cache.get_file(file.folder_name, file.file_name)
    if cached_file is None:
        return CacheStatus.NOT_IN_CACHE
    if file.modified_time > cached_file.cache_time:
        return CacheStatus.NEEDS_REFRESH
    return CacheStatus.FRESH


def merge_events(
    cached_file: CachedFile,
    events: Iterable[UsageEvent],
    tz: Union[tzinfo, str, None] = None,
) -> CachedFile:
    """Copy of a cached file with new events folded into its hour buckets and limit events"""
    events = list(events)
    per_hour = dict(cached_file.per_hour)
    for bucket in aggregate(events).values():
        add_bucket(per_hour, bucket)

    blocks = dict(cached_file.blocks)
    for event in events:
        if event.is_limit_reached:
            blocks[event.timestamp] = parse_limit_message(event.timestamp, event.content_text, tz)

    return cached_file.model_copy(update={"per_hour": per_hour, "blocks": blocks})


class IncrementalCache:
    """
    Owner of the CacheInfo for one invocation.

    Use it as a context manager: the cache is loaded on entry and written back
    on a clean exit or a Ctrl-C. Files are committed one at a time, so an
    interrupted sync saves every file finished before it. ``flush()`` saves
    explicitly at any time.

    Example:
        >>> with IncrementalCache(config.cache_path) as cache:
        ...     cache.sync(scan_projects(config.projects_path))
        ...     blocks = Analyzer.from_cache(cache.info).blocks()
    """

    def __init__(
        self,
        cache_path: Union[str, Path],
        no_cache: bool = False,
        tz: Union[tzinfo, str, None] = None,
    ):
        self.cache_path = Path(cache_path)
        self.no_cache = no_cache
        self.tz = tz
        self.info = CacheInfo()

    def __enter__(self) -> "IncrementalCache":
        self.info = CacheInfo() if self.no_cache else load_cache(self.cache_path)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.flush()
        elif issubclass(exc_type, KeyboardInterrupt):
            try:
                self.flush()
            except CacheWriteError as e:
                log.warning(f"Cache not saved after interrupt: {e}")
        return False

    def flush(self) -> None:
        """Write the cache to disk"""
        save_cache(self.info, self.cache_path)
        log.debug(f"Cache saved to {self.cache_path}")

    def refresh(self, file: FileMetadata) -> CacheStatus:
        """Recompute and record the cache status of a file"""
        status = file_cache_status(self.info, file)
        cached_file = self.info.get_file(file.folder_name, file.file_name)
        if cached_file is not None:
            cached_file.cache_status = status
        return status

    def load_new_events(
        self, file: FileMetadata, since: Optional[datetime]
    ) -> List[UsageEvent]:
        return load_new_events(file, since)

    def update(self, file: FileMetadata) -> int:
        """
        Parse what was appended to a file since its watermark and merge it.

        Returns:
            Number of new events folded into the cache
        """
        folder = self.info.folders.setdefault(file.folder_name, CachedFolder())
        cached_file = folder.files.get(file.file_name)
        if cached_file is None:
            cached_file = CachedFile(file_name=file.file_name, cache_time=file.modified_time)

        events = self.load_new_events(file, cached_file.watermark)
        cached_file = merge_events(cached_file, events, self.tz).model_copy(
            update={"cache_time": file.modified_time, "cache_status": CacheStatus.FRESH}
        )
        folder.files[file.file_name] = cached_file
        log.debug(
            f"Refreshed {file.folder_name}/{file.file_name}: "
            f"{len(events)} new events, {len(cached_file.per_hour)} hours"
        )
        return len(events)

    def sync(self, files: Iterable[FileMetadata]) -> Dict[CacheStatus, int]:
        """
        Bring every given file up to date.

        Returns:
            How many files were in each status before the sync
        """
        counts = {status: 0 for status in CacheStatus}
        for file in files:
            status = self.refresh(file)
            counts[status] += 1
            if status != CacheStatus.FRESH:
                self.update(file)
        return counts
