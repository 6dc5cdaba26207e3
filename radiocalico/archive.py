"""
Playlist archive for radiocalico.

Persists each poll's current and previous tracks as the day's playlist of
the archive show. Rewriting the same feed content on the same day leaves
the playlist unchanged.
"""

import logging
import threading
from datetime import date
from typing import Any, Dict, Optional

from .catalog import CatalogManager
from .models import NowPlayingSnapshot


class ArchiveManager:
    """Writes now-playing snapshots into dated archive playlists."""

    def __init__(
        self,
        catalog_manager: CatalogManager,
        show_title: str = "Live Stream",
        host_name: str = "Radio Calico",
    ):
        """
        Initialize ArchiveManager.

        Args:
            catalog_manager: CatalogManager used for all writes
            show_title: Show that owns the archive playlists
            host_name: Host assigned if the show has to be created
        """
        self.catalog_manager = catalog_manager
        self.show_title = show_title
        self.host_name = host_name
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()

    def playlist_name(self, day: date) -> str:
        return "%s - %s" % (self.show_title, day.isoformat())

    def archive_snapshot(self, snapshot: NowPlayingSnapshot, day: Optional[date] = None) -> Dict[str, Any]:
        """
        Archive a snapshot into the playlist for the given day.

        Prior songs of that playlist are replaced, so running twice with the
        same snapshot does not create duplicate rows.

        Args:
            snapshot: Snapshot to archive
            day: Playlist date (defaults to today)

        Returns:
            The playlist with show and songs embedded
        """
        day = day or date.today()
        songs = [
            {"title": track.title, "artist": track.artist, "album": track.album}
            for track in snapshot.tracks()
        ]

        # The poller thread and the save endpoint archive through one manager
        with self._lock:
            show = self.catalog_manager.get_or_create_show(self.show_title, self.host_name)
            playlist = self.catalog_manager.get_or_create_playlist(self.playlist_name(day), day, show.id)
            count = self.catalog_manager.replace_playlist_songs(playlist.id, songs)
        self.logger.info(
            "Archived %d tracks to playlist %s (ID: %s)", count, playlist.name, playlist.id
        )
        return self.catalog_manager.describe_playlist(playlist)
