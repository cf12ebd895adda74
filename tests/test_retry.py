#!/usr/bin/env python3
"""
Tests for retry decorators
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ccusage_blocks.exceptions import CacheWriteError, RetryExhaustedError
from ccusage_blocks.retry import retry_cache_write, retry_on_error


class TestRetryOnError:
    """Tests for retry_on_error"""

    def test_succeeds_after_failures(self):
        calls = []

        @retry_on_error(max_attempts=3, initial_delay=0, backoff=0, exceptions=(OSError,))
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OSError("busy")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_exhausted(self):
        @retry_on_error(max_attempts=2, initial_delay=0, backoff=0, exceptions=(OSError,))
        def broken():
            raise OSError("read-only file system")

        with pytest.raises(RetryExhaustedError) as excinfo:
            broken()
        assert isinstance(excinfo.value.__cause__, OSError)
        assert "broken failed after 2 attempts" in str(excinfo.value)

    def test_other_exceptions_not_retried(self):
        calls = []

        @retry_on_error(max_attempts=3, initial_delay=0, backoff=0, exceptions=(OSError,))
        def wrong():
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            wrong()
        assert len(calls) == 1

    def test_preserves_name(self):
        @retry_on_error(initial_delay=0, backoff=0)
        def named():
            return 1

        assert named.__name__ == "named"


class TestRetryCacheWrite:
    """Tests for retry_cache_write"""

    def test_final_failure_is_cache_write_error(self):
        @retry_cache_write
        def write():
            raise PermissionError("denied")

        with patch("time.sleep"):
            with pytest.raises(CacheWriteError):
                write()

    def test_success(self):
        @retry_cache_write
        def write(value):
            return value * 2

        assert write(21) == 42
