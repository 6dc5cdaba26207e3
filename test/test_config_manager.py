"""
Unit tests for ConfigManager.
"""

import os
import tempfile

import pytest

from radiocalico.config_manager import CONFIG_SCHEMA, ConfigManager
from radiocalico.database import Database


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    db = Database(db_path=path)
    yield db
    db.close()
    os.unlink(path)


@pytest.fixture
def config_manager(temp_db):
    """Create a ConfigManager instance for testing."""
    return ConfigManager(temp_db)


def test_get_default(config_manager):
    """Test getting default configuration values."""
    assert config_manager.get("poll_interval_seconds") == "10"
    assert config_manager.get("archive_show_title") == "Live Stream"
    assert config_manager.get("metadata_url").endswith("/metadatav2.json")


def test_set_and_get(config_manager):
    """Test setting and getting configuration values."""
    config_manager.set("station_name", "Test FM")
    assert config_manager.get("station_name") == "Test FM"

    config_manager.set("test_key", "test_value")
    assert config_manager.get("test_key") == "test_value"


def test_get_int(config_manager):
    """Test getting integer configuration values."""
    assert config_manager.get_int("poll_interval_seconds") == 10
    assert config_manager.get_int("nonexistent", default=10) == 10

    config_manager.set("invalid_int", "not_a_number")
    assert config_manager.get_int("invalid_int", default=0) == 0


def test_get_float(config_manager):
    config_manager.set("poll_interval_seconds", "2.5")
    assert config_manager.get_float("poll_interval_seconds") == 2.5
    assert config_manager.get_float("nonexistent", default=1.5) == 1.5


def test_get_bool(config_manager):
    assert config_manager.get_bool("archive_enabled") is True
    config_manager.set("archive_enabled", "false")
    assert config_manager.get_bool("archive_enabled") is False
    assert config_manager.get_bool("nonexistent", default=True) is True


def test_get_all_includes_defaults(config_manager):
    config_manager.set("station_name", "Test FM")
    values = config_manager.get_all()
    assert values["station_name"] == "Test FM"
    for key in ConfigManager.DEFAULTS:
        assert key in values


def test_full_config_shape(config_manager):
    full = config_manager.get_full_config()
    assert set(full) == {"values", "schema", "groups"}
    assert set(full["schema"]) == set(CONFIG_SCHEMA)
    for key_def in full["schema"].values():
        assert key_def["group"] in full["groups"]


def test_values_persist_across_instances(temp_db):
    ConfigManager(temp_db).set("station_name", "Persisted FM")
    assert ConfigManager(temp_db).get("station_name") == "Persisted FM"
