#!/usr/bin/env python3
"""
Pydantic models for usage events, hour buckets, blocks and the cache
Provides type-safe data structures with automatic validation
"""

from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .constants import HOUR
from .data_parser import ensure_utc, floor_to_hour, format_datetime
from .exceptions import BucketMergeError


class UserRole(str, Enum):
    """Author of a transcript turn"""

    USER = "user"
    ASSISTANT = "assistant"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "UserRole":
        """Map a raw transcript role to a UserRole (anything else is UNKNOWN)"""
        if value == "user":
            return cls.USER
        if value == "assistant":
            return cls.ASSISTANT
        return cls.UNKNOWN


class UsageEvent(BaseModel):
    """One assistant/user turn reduced to the fields the analyzer needs"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    session_id: str = ""
    role: UserRole = UserRole.UNKNOWN
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    cache_creation_tokens: int = Field(0, ge=0)
    cache_read_tokens: int = Field(0, ge=0)
    content_length: int = Field(0, ge=0)
    is_limit_reached: bool = False
    # Only kept for limit messages
    content_text: Optional[str] = None
    folder: str = ""
    file: str = ""

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def total_tokens(self) -> int:
        """Calculate total tokens"""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_tokens
            + self.cache_read_tokens
        )


class Stats(BaseModel):
    """
    Aggregate numeric payload of a bucket or block.

    Stats form a monoid: ``Stats()`` is the identity and ``+`` adds field-wise.
    """

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    cache_creation_tokens: int = Field(0, ge=0)
    cache_read_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)
    assistant_messages: int = Field(0, ge=0)
    user_messages: int = Field(0, ge=0)
    total_content_length: int = Field(0, ge=0)
    entry_count: int = Field(0, ge=0)
    limit_hits: int = Field(0, ge=0)

    def __add__(self, other: "Stats") -> "Stats":
        if not isinstance(other, Stats):
            return NotImplemented
        return Stats(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in Stats.model_fields
            }
        )

    @property
    def is_empty(self) -> bool:
        return self.entry_count == 0


class HourBucket(BaseModel):
    """Usage of every event that happened within one clock hour"""

    model_config = ConfigDict(frozen=True)

    hour_start: datetime
    hour_end: datetime
    min_timestamp: datetime
    max_timestamp: datetime
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    cache_creation_tokens: int = Field(0, ge=0)
    cache_read_tokens: int = Field(0, ge=0)
    assistant_messages: int = Field(0, ge=0)
    user_messages: int = Field(0, ge=0)
    total_content_length: int = Field(0, ge=0)
    entry_count: int = Field(0, ge=0)
    # Older cache files do not carry this counter
    limit_hits: int = Field(0, ge=0)

    @field_validator("hour_start", "hour_end", "min_timestamp", "max_timestamp")
    @classmethod
    def validate_timestamps(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_event(cls, event: UsageEvent) -> "HourBucket":
        """Build the single-event bucket for the hour the event falls into"""
        hour_start = floor_to_hour(event.timestamp)
        return cls(
            hour_start=hour_start,
            hour_end=hour_start + HOUR,
            min_timestamp=event.timestamp,
            max_timestamp=event.timestamp,
            input_tokens=event.input_tokens,
            output_tokens=event.output_tokens,
            cache_creation_tokens=event.cache_creation_tokens,
            cache_read_tokens=event.cache_read_tokens,
            assistant_messages=int(event.role == UserRole.ASSISTANT),
            user_messages=int(event.role == UserRole.USER),
            total_content_length=event.content_length,
            entry_count=1,
            limit_hits=int(event.is_limit_reached),
        )

    def merge(self, other: "HourBucket") -> "HourBucket":
        """
        Combine two buckets of the same hour.

        Sums add and min/max widen, so the operation is commutative and
        associative.

        Raises:
            BucketMergeError: If the buckets cover different hours
        """
        if self.hour_start != other.hour_start:
            raise BucketMergeError(
                f"Cannot merge bucket {format_datetime(other.hour_start)} "
                f"into {format_datetime(self.hour_start)}"
            )
        return self.model_copy(
            update={
                "min_timestamp": min(self.min_timestamp, other.min_timestamp),
                "max_timestamp": max(self.max_timestamp, other.max_timestamp),
                "input_tokens": self.input_tokens + other.input_tokens,
                "output_tokens": self.output_tokens + other.output_tokens,
                "cache_creation_tokens": self.cache_creation_tokens
                + other.cache_creation_tokens,
                "cache_read_tokens": self.cache_read_tokens + other.cache_read_tokens,
                "assistant_messages": self.assistant_messages
                + other.assistant_messages,
                "user_messages": self.user_messages + other.user_messages,
                "total_content_length": self.total_content_length
                + other.total_content_length,
                "entry_count": self.entry_count + other.entry_count,
                "limit_hits": self.limit_hits + other.limit_hits,
            }
        )

    @property
    def total_tokens(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_creation_tokens
            + self.cache_read_tokens
        )

    @property
    def stats(self) -> Stats:
        return Stats(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cache_creation_tokens=self.cache_creation_tokens,
            cache_read_tokens=self.cache_read_tokens,
            total_tokens=self.total_tokens,
            assistant_messages=self.assistant_messages,
            user_messages=self.user_messages,
            total_content_length=self.total_content_length,
            entry_count=self.entry_count,
            limit_hits=self.limit_hits,
        )


class BlockKind(str, Enum):
    """Kind of span a block represents on the timeline"""

    LIMIT = "limit"
    GAP = "gap"
    CURRENT = "current"


class Block(BaseModel):
    """A limit window, a merged run of gap hours, or the current window"""

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    start: datetime
    end: datetime
    min_timestamp: Optional[datetime] = None
    max_timestamp: Optional[datetime] = None
    unlock_timestamp: Optional[datetime] = None
    stats: Stats = Field(default_factory=Stats)

    @field_validator("start", "end", "min_timestamp", "max_timestamp", "unlock_timestamp")
    @classmethod
    def validate_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def key(self) -> Tuple[datetime, datetime]:
        """Identity of the span, used to avoid counting a block twice"""
        return (self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def hours(self) -> int:
        return int(self.duration / HOUR)

    def contains(self, moment: datetime) -> bool:
        """Whether the moment falls inside the half-open span [start, end)"""
        return self.start <= moment < self.end


class BlockLine(BaseModel):
    """A limit message seen in a transcript, resolved to its unlock time"""

    unlock_timestamp: Optional[datetime] = None
    reset_text: str

    @field_validator("unlock_timestamp")
    @classmethod
    def validate_unlock(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None


class CacheStatus(str, Enum):
    """Freshness of a cached file compared to the file on disk"""

    FRESH = "fresh"
    NEEDS_REFRESH = "needs_refresh"
    NOT_IN_CACHE = "not_in_cache"


class FileMetadata(BaseModel):
    """A transcript file found on disk"""

    folder_name: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    path: Path
    modified_time: datetime
    size_bytes: int = Field(0, ge=0)

    @field_validator("modified_time")
    @classmethod
    def validate_modified_time(cls, v: datetime) -> datetime:
        return ensure_utc(v)


def _utc_keys(value: Dict[datetime, object]) -> Dict[datetime, object]:
    return {ensure_utc(key): item for key, item in value.items()}


class CachedFile(BaseModel):
    """Per-file cache state: limit events, hour buckets and the mtime watermark"""

    file_name: str
    cache_time: datetime
    blocks: Dict[datetime, BlockLine] = Field(default_factory=dict)
    per_hour: Dict[datetime, HourBucket] = Field(default_factory=dict)
    cache_status: CacheStatus = Field(CacheStatus.NOT_IN_CACHE, exclude=True)

    @field_validator("cache_time")
    @classmethod
    def validate_cache_time(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("blocks", "per_hour")
    @classmethod
    def validate_keys(cls, v: Dict[datetime, object]) -> Dict[datetime, object]:
        return _utc_keys(v)

    @field_serializer("blocks", "per_hour")
    def serialize_keyed(self, value: Dict[datetime, BaseModel]) -> Dict[str, dict]:
        return {
            format_datetime(key): item.model_dump(mode="json")
            for key, item in sorted(value.items())
        }

    @property
    def watermark(self) -> Optional[datetime]:
        """Timestamp of the latest event already folded into the cache"""
        if not self.per_hour:
            return None
        return max(bucket.max_timestamp for bucket in self.per_hour.values())


class CachedFolder(BaseModel):
    """Cached files of one project folder"""

    files: Dict[str, CachedFile] = Field(default_factory=dict)


class CacheInfo(BaseModel):
    """The full persisted state, owned by one invocation"""

    folders: Dict[str, CachedFolder] = Field(default_factory=dict)
    current_block: Optional[Block] = None
    history: List[Block] = Field(default_factory=list)

    def get_file(self, folder_name: str, file_name: str) -> Optional[CachedFile]:
        folder = self.folders.get(folder_name)
        if folder is None:
            return None
        return folder.files.get(file_name)

    def iter_files(self):
        """Yield (folder_name, CachedFile) for every cached file"""
        for folder_name, folder in self.folders.items():
            for cached_file in folder.files.values():
                yield folder_name, cached_file
