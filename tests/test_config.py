"""Tests for environment-driven settings."""

from loadset_transfer.config import TransferSettings, get_settings
from loadset_transfer.db.schemas import GROUP_ALL, LOAD_SET_TABLE


def test_defaults(monkeypatch):
    monkeypatch.delenv("LOADSET_GROUP_FILTER", raising=False)
    settings = TransferSettings(_env_file=None)
    assert settings.group_filter == GROUP_ALL
    assert settings.load_set_table == LOAD_SET_TABLE
    assert settings.strict_units is True
    assert settings.fill_import_log is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LOADSET_GROUP_FILTER", "Level 2")
    monkeypatch.setenv("LOADSET_STRICT_UNITS", "false")
    monkeypatch.setenv("LOADSET_LOG_LEVEL", "debug")
    settings = TransferSettings(_env_file=None)
    assert settings.group_filter == "Level 2"
    assert settings.strict_units is False
    assert settings.log_level == "debug"


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
