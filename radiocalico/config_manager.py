"""
Configuration management using database storage.

Provides access to configuration values with defaults and type conversion.
The CONFIG_SCHEMA provides rich metadata for building user-friendly configuration UIs.
"""

import logging
from typing import Any, Optional

from .database import ConfigRepository, Database

# Configuration groups define the logical sections in the config UI
CONFIG_GROUPS = {
    "station": {"label": "Station", "order": 1},
    "metadata": {"label": "Now Playing Feed", "order": 2},
    "archive": {"label": "Playlist Archive", "order": 3},
}

# Schema defining metadata for each editable configuration key
# This drives the configuration UI - the frontend reads this to render appropriate controls
CONFIG_SCHEMA = {
    # Station
    "station_name": {
        "group": "station",
        "label": "Station Name",
        "description": "Name shown in the page header.",
        "control": "text",
    },
    "stream_url": {
        "group": "station",
        "label": "Stream URL",
        "description": "HLS playlist the audio player loads.",
        "control": "text",
        "placeholder": "https://example.cloudfront.net/hls/live.m3u8",
    },
    # Now Playing Feed
    "metadata_url": {
        "group": "metadata",
        "label": "Metadata Feed URL",
        "description": "JSON feed describing the current and previous tracks.",
        "control": "text",
        "placeholder": "https://example.cloudfront.net/metadatav2.json",
    },
    "poll_interval_seconds": {
        "group": "metadata",
        "label": "Poll Interval",
        "description": "How often the now-playing feed is fetched.",
        "control": "slider",
        "min": 5,
        "max": 60,
        "step": 1,
        "display_format": "seconds",
    },
    "request_timeout_seconds": {
        "group": "metadata",
        "label": "Request Timeout",
        "description": "Give up on a feed request after this many seconds.",
        "control": "slider",
        "min": 1,
        "max": 30,
        "step": 1,
        "display_format": "seconds",
    },
    # Playlist Archive
    "archive_enabled": {
        "group": "archive",
        "label": "Archive Played Tracks",
        "description": "Write each poll's tracks into today's archive playlist.",
        "control": "toggle",
    },
    "archive_show_title": {
        "group": "archive",
        "label": "Archive Show",
        "description": "Show that owns the daily archive playlists.",
        "control": "text",
    },
    "archive_host_name": {
        "group": "archive",
        "label": "Archive Host",
        "description": "Host assigned to the archive show when it is first created.",
        "control": "text",
    },
}


class ConfigManager:
    """Manages configuration stored in database."""

    DEFAULTS = {
        "station_name": "Radio Calico",
        "stream_url": "https://d3d4yli4hf5bmh.cloudfront.net/hls/live.m3u8",
        "metadata_url": "https://d3d4yli4hf5bmh.cloudfront.net/metadatav2.json",
        "poll_interval_seconds": "10",
        "request_timeout_seconds": "5",
        "archive_enabled": "true",
        "archive_show_title": "Live Stream",
        "archive_host_name": "Radio Calico",
    }

    def __init__(self, database: Database):
        """
        Initialize ConfigManager.

        Args:
            database: Database instance
        """
        self.database = database
        self.repository = ConfigRepository(database)
        self.logger = logging.getLogger(__name__)
        self.repository.initialize_defaults(self.DEFAULTS)

    def get(self, key: str, default: Any = None) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if not found (uses DEFAULTS if None)

        Returns:
            Configuration value as string, or None if not found
        """
        if default is None:
            default = self.DEFAULTS.get(key)

        entry = self.repository.get(key)
        if entry:
            return entry.value if entry.value else default
        return default

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Get configuration value as integer."""
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError:
            self.logger.warning("Invalid integer value for %s: %s", key, value)
            return default

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        """Get configuration value as float."""
        value = self.get(key)
        if value is None or value == "":
            return default
        try:
            return float(value)
        except ValueError:
            self.logger.warning("Invalid float value for %s: %s", key, value)
            return default

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        """Get configuration value as boolean."""
        value = self.get(key)
        if value is None or value == "":
            return default
        return value.lower() in ("true", "1", "yes", "on")

    def set(self, key: str, value: Any) -> bool:
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set (will be converted to string)

        Returns:
            True if successful
        """
        return self.repository.set(key, str(value))

    def get_all(self) -> dict:
        """Get all configuration values, merged over the defaults."""
        entries = self.repository.get_all()
        result = dict(self.DEFAULTS)
        result.update({entry.key: entry.value for entry in entries})
        return result

    def get_full_config(self) -> dict:
        """
        Get complete configuration data for the UI.

        Returns:
            Dictionary with 'values', 'schema', and 'groups' keys.
        """
        return {
            "values": self.get_all(),
            "schema": {key: dict(key_def) for key, key_def in CONFIG_SCHEMA.items()},
            "groups": CONFIG_GROUPS.copy(),
        }

    @staticmethod
    def is_editable(key: str) -> bool:
        return key in CONFIG_SCHEMA
