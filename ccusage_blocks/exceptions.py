#!/usr/bin/env python3
"""
Custom exception hierarchy for ccusage-blocks
Provides specific exception types for better error handling
"""


class CCUsageBlocksError(Exception):
    """Base exception for all ccusage-blocks errors"""

    pass


class ConfigurationError(CCUsageBlocksError):
    """Raised when configuration is invalid or missing"""

    pass


class DataParseError(CCUsageBlocksError):
    """Raised when a transcript line or timestamp cannot be parsed"""

    pass


class ResetTimeParseError(DataParseError):
    """Raised when a reset time string is not a valid clock time"""

    pass


class BucketMergeError(CCUsageBlocksError):
    """Raised when merging hour buckets that belong to different hours"""

    pass


class CacheError(CCUsageBlocksError):
    """Base exception for cache-related errors"""

    pass


class CacheReadError(CacheError):
    """Raised when the cache file exists but cannot be decoded"""

    pass


class CacheWriteError(CacheError):
    """Raised when the cache file cannot be written"""

    pass


class RetryExhaustedError(CCUsageBlocksError):
    """Raised when all retries have been exhausted"""

    pass
