"""
Tests for configuration loading.

Tests cover:
- Defaults and TASKGRAPH_* environment overrides
- Validation of the limit and the log format
- The cached get_settings accessor
"""

import pytest
from pydantic import ValidationError

from taskgraph.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    """Settings fall back to the documented defaults."""
    monkeypatch.delenv("TASKGRAPH_DATABASE_URL", raising=False)
    monkeypatch.delenv("TASKGRAPH_MAX_DEPENDENCIES_PER_TASK", raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.database_url == "sqlite+aiosqlite:///./data/taskgraph.db"
    assert cfg.max_dependencies_per_task == 10
    assert cfg.log_level == "info"
    assert cfg.log_format == "text"
    assert cfg.debug is False


def test_env_override(monkeypatch):
    """TASKGRAPH_* environment variables override defaults."""
    monkeypatch.setenv("TASKGRAPH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("TASKGRAPH_MAX_DEPENDENCIES_PER_TASK", "5")
    monkeypatch.setenv("TASKGRAPH_LOG_FORMAT", "json")
    cfg = Settings(_env_file=None)
    assert cfg.database_url == "sqlite+aiosqlite:///:memory:"
    assert cfg.max_dependencies_per_task == 5
    assert cfg.log_format == "json"


def test_limit_must_be_positive():
    """A limit below one is rejected."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, max_dependencies_per_task=0)


def test_unknown_log_format_rejected():
    """Only json and text log formats are accepted."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_format="xml")


def test_get_settings_is_cached():
    """get_settings returns one shared instance."""
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
