#!/usr/bin/env python3
"""
Transcript reading for ccusage-blocks
Discovers JSONL transcripts and reduces each line to a UsageEvent
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import LIMIT_PHRASE, TRANSCRIPT_SUFFIX
from .data_parser import parse_datetime
from .logger import get_logger
from .models import FileMetadata, UsageEvent, UserRole

log = get_logger(__name__)


def extract_text(content: Any) -> str:
    """Flatten string or block-list message content to plain text"""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict):
            text = item.get("text") or item.get("thinking") or item.get("content")
            if isinstance(text, str):
                parts.append(text)
            elif isinstance(text, list):
                parts.append(extract_text(text))
    return " ".join(part for part in parts if part)


def _token(usage: Dict[str, Any], key: str) -> int:
    value = usage.get(key) or 0
    return value if isinstance(value, int) and value > 0 else 0


def parse_line(line: str, folder: str = "", file: str = "") -> Optional[UsageEvent]:
    """
    Parse one transcript line.

    Args:
        line: Raw JSONL line
        folder: Project folder the transcript lives in
        file: Transcript file name

    Returns:
        UsageEvent, or None for blank, malformed or timestamp-less lines
    """
    line = line.strip()
    if not line:
        return None

    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(record, dict):
        return None

    timestamp = parse_datetime(record.get("timestamp"))
    if timestamp is None:
        return None

    message = record.get("message")
    if not isinstance(message, dict):
        message = {}
    usage = message.get("usage")
    if not isinstance(usage, dict):
        usage = {}

    text = extract_text(message.get("content"))
    is_limit_reached = bool(record.get("isApiErrorMessage")) and LIMIT_PHRASE in text

    return UsageEvent(
        timestamp=timestamp,
        session_id=str(record.get("sessionId") or ""),
        role=UserRole.from_raw(message.get("role")),
        input_tokens=_token(usage, "input_tokens"),
        output_tokens=_token(usage, "output_tokens"),
        cache_creation_tokens=_token(usage, "cache_creation_input_tokens"),
        cache_read_tokens=_token(usage, "cache_read_input_tokens"),
        content_length=len(text),
        is_limit_reached=is_limit_reached,
        content_text=text if is_limit_reached else None,
        folder=folder,
        file=file,
    )


def _read_lines(path: Path) -> Optional[List[str]]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        log.debug(f"Cannot read {path}: {e}")
        return None


def load_new_events(
    file: FileMetadata, since: Optional[datetime] = None
) -> List[UsageEvent]:
    """
    Load the events of a transcript that are newer than ``since``.

    With a watermark the file is scanned from its last line backwards and
    the scan stops at the first event at or before the watermark; the file
    is assumed to be append-only.

    Args:
        file: Transcript to read
        since: Timestamp of the latest event already processed

    Returns:
        Events in file order; empty when the file cannot be read
    """
    lines = _read_lines(file.path)
    if lines is None:
        return []

    if since is None:
        events = (parse_line(line, file.folder_name, file.file_name) for line in lines)
        return [event for event in events if event is not None]

    collected = []
    for line in reversed(lines):
        event = parse_line(line, file.folder_name, file.file_name)
        if event is None:
            continue
        if event.timestamp <= since:
            break
        collected.append(event)
    collected.reverse()
    return collected


def scan_projects(projects_path: Path) -> List[FileMetadata]:
    """
    List every transcript under ``<projects>/<folder>/*.jsonl``.

    A missing directory yields an empty list.
    """
    projects_path = Path(projects_path)
    if not projects_path.is_dir():
        log.debug(f"No projects directory at {projects_path}")
        return []

    files = []
    for folder in sorted(p for p in projects_path.iterdir() if p.is_dir()):
        for path in sorted(folder.glob(f"*{TRANSCRIPT_SUFFIX}")):
            try:
                stat = path.stat()
            except OSError as e:
                log.debug(f"Skipping {path}: {e}")
                continue
            if not path.is_file():
                continue
            files.append(
                FileMetadata(
                    folder_name=folder.name,
                    file_name=path.name,
                    path=path,
                    modified_time=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    size_bytes=stat.st_size,
                )
            )
    return files
