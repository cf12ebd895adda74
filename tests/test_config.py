#!/usr/bin/env python3
"""
Tests for configuration loading
"""

import argparse
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ccusage_blocks.config import BlocksConfig
from ccusage_blocks.exceptions import ConfigurationError

ENV_VARS = (
    "CLAUDE_DATA_PATH",
    "CCUSAGE_BLOCKS_CACHE",
    "CCUSAGE_BLOCKS_LOG_LEVEL",
    "CCUSAGE_BLOCKS_LOG_FILE",
    "CCUSAGE_BLOCKS_TIMEZONE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_args(**overrides):
    values = {"data_path": None, "cache_path": None, "log_level": None, "no_cache": False}
    values.update(overrides)
    return argparse.Namespace(**values)


class TestFromEnv:
    """Tests for environment-driven configuration"""

    def test_defaults(self):
        config = BlocksConfig.from_env()
        assert config.claude_data_path == Path("~/.claude").expanduser()
        assert config.cache_path == Path("~/.claude-bar/cache.json").expanduser()
        assert config.log_level == "WARNING"
        assert config.log_file is None
        assert config.timezone is None
        assert config.no_cache is False

    def test_projects_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLAUDE_DATA_PATH", str(tmp_path))
        assert BlocksConfig.from_env().projects_path == tmp_path / "projects"

    def test_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CCUSAGE_BLOCKS_CACHE", str(tmp_path / "c.json"))
        monkeypatch.setenv("CCUSAGE_BLOCKS_LOG_LEVEL", "debug")
        monkeypatch.setenv("CCUSAGE_BLOCKS_LOG_FILE", str(tmp_path / "blocks.log"))
        monkeypatch.setenv("CCUSAGE_BLOCKS_TIMEZONE", "Europe/Paris")

        config = BlocksConfig.from_env()
        assert config.cache_path == tmp_path / "c.json"
        assert config.log_level == "DEBUG"
        assert config.log_file == str(tmp_path / "blocks.log")
        assert config.timezone == "Europe/Paris"

    def test_invalid_level(self, monkeypatch):
        monkeypatch.setenv("CCUSAGE_BLOCKS_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            BlocksConfig.from_env()


class TestFromArgs:
    """Tests for command-line overrides"""

    def test_no_overrides(self):
        assert BlocksConfig.from_args(make_args()) == BlocksConfig.from_env()

    def test_overrides(self, tmp_path):
        config = BlocksConfig.from_args(
            make_args(
                data_path=str(tmp_path),
                cache_path=str(tmp_path / "cache.json"),
                log_level="info",
                no_cache=True,
            )
        )
        assert config.claude_data_path == tmp_path
        assert config.cache_path == tmp_path / "cache.json"
        assert config.log_level == "INFO"
        assert config.no_cache is True

    def test_invalid_level(self):
        with pytest.raises(ConfigurationError):
            BlocksConfig.from_args(make_args(log_level="verbose"))
