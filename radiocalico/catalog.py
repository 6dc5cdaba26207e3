"""
Catalog management for radiocalico.

Thin layer over hosts, shows, playlists and songs. Also provides the
primitives the playlist archive uses.
"""

import logging
import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional

from .database import CatalogRepository, Database
from .errors import NotFound, ValidationFailure
from .models import Host, Playlist, Show, Song


def _timestamp(value) -> Optional[str]:
    return value.isoformat() if value else None


def host_to_dict(host: Host) -> Dict[str, Any]:
    return {
        "id": host.id,
        "name": host.name,
        "bio": host.bio,
        "email": host.email,
        "createdAt": _timestamp(host.created_at),
    }


def show_to_dict(show: Show) -> Dict[str, Any]:
    return {
        "id": show.id,
        "title": show.title,
        "description": show.description,
        "airTime": show.air_time,
        "hostId": show.host_id,
        "createdAt": _timestamp(show.created_at),
    }


def playlist_to_dict(playlist: Playlist) -> Dict[str, Any]:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "date": playlist.date.isoformat() if playlist.date else None,
        "showId": playlist.show_id,
        "createdAt": _timestamp(playlist.created_at),
    }


def song_to_dict(song: Song) -> Dict[str, Any]:
    return {
        "id": song.id,
        "title": song.title,
        "artist": song.artist,
        "album": song.album,
        "duration": song.duration,
        "playlistId": song.playlist_id,
        "createdAt": _timestamp(song.created_at),
    }


class CatalogManager:
    """Manages the station catalog."""

    def __init__(self, database: Database):
        """
        Initialize CatalogManager.

        Args:
            database: Database instance for persistence
        """
        self.database = database
        self.repository = CatalogRepository(database)
        self.logger = logging.getLogger(__name__)

    # =========================================================================
    # Hosts
    # =========================================================================

    def create_host(self, name: str, bio: Optional[str] = None, email: Optional[str] = None) -> Host:
        if not name:
            raise ValidationFailure("Host name is required")
        try:
            host = self.repository.create_host(name, bio=bio, email=email)
        except sqlite3.IntegrityError as e:
            raise ValidationFailure("Host email already in use") from e
        self.logger.info("Created host %s (ID: %s)", host.name, host.id)
        return host

    def get_host(self, host_id: int) -> Host:
        host = self.repository.get_host(host_id)
        if host is None:
            raise NotFound("Host not found")
        return host

    def list_hosts(self) -> List[Host]:
        return self.repository.list_hosts()

    def describe_host(self, host: Host) -> Dict[str, Any]:
        """Host with its shows embedded."""
        data = host_to_dict(host)
        data["shows"] = [show_to_dict(show) for show in self.repository.list_shows(host_id=host.id)]
        return data

    # =========================================================================
    # Shows
    # =========================================================================

    def create_show(
        self,
        title: str,
        host_id: int,
        description: Optional[str] = None,
        air_time: Optional[str] = None,
    ) -> Show:
        if not title:
            raise ValidationFailure("Show title is required")
        self.get_host(host_id)
        try:
            show = self.repository.create_show(title, host_id, description=description, air_time=air_time)
        except sqlite3.IntegrityError as e:
            raise ValidationFailure("Show title already in use: %s" % title) from e
        self.logger.info("Created show %s (ID: %s)", show.title, show.id)
        return show

    def get_show(self, show_id: int) -> Show:
        show = self.repository.get_show(show_id)
        if show is None:
            raise NotFound("Show not found")
        return show

    def list_shows(self) -> List[Show]:
        return self.repository.list_shows()

    def get_or_create_show(self, title: str, host_name: str) -> Show:
        """
        Find a show by title, creating it (and its host) if missing.

        Show titles are unique, so a concurrent creator that wins the insert
        is picked up instead of adding a second show.
        """
        show = self.repository.find_show_by_title(title)
        if show:
            return show
        host = self.repository.find_host_by_name(host_name)
        if host is None:
            host = self.create_host(host_name)
        try:
            return self.create_show(title, host.id)
        except ValidationFailure:
            show = self.repository.find_show_by_title(title)
            if show is None:
                raise
            self.logger.debug("Show %s was created concurrently", title)
            return show

    def describe_show(self, show: Show) -> Dict[str, Any]:
        """Show with host and playlists (with songs) embedded."""
        data = show_to_dict(show)
        host = self.repository.get_host(show.host_id)
        data["host"] = host_to_dict(host) if host else None
        data["playlists"] = []
        for playlist in self.repository.list_playlists(show_id=show.id):
            playlist_data = playlist_to_dict(playlist)
            playlist_data["songs"] = [
                song_to_dict(song) for song in self.repository.list_songs(playlist_id=playlist.id)
            ]
            data["playlists"].append(playlist_data)
        return data

    # =========================================================================
    # Playlists
    # =========================================================================

    def create_playlist(self, name: str, playlist_date: date, show_id: int) -> Playlist:
        if not name:
            raise ValidationFailure("Playlist name is required")
        self.get_show(show_id)
        try:
            playlist = self.repository.create_playlist(name, playlist_date, show_id)
        except sqlite3.IntegrityError as e:
            raise ValidationFailure(
                "Show %s already has a playlist for %s" % (show_id, playlist_date.isoformat())
            ) from e
        self.logger.info("Created playlist %s for %s (ID: %s)", playlist.name, playlist.date, playlist.id)
        return playlist

    def get_or_create_playlist(self, name: str, playlist_date: date, show_id: int) -> Playlist:
        """Find the show's playlist for a day, creating it if missing."""
        playlist = self.repository.find_playlist_by_show_and_date(show_id, playlist_date)
        if playlist:
            return playlist
        try:
            return self.create_playlist(name, playlist_date, show_id)
        except ValidationFailure:
            playlist = self.repository.find_playlist_by_show_and_date(show_id, playlist_date)
            if playlist is None:
                raise
            self.logger.debug("Playlist for show %s on %s was created concurrently", show_id, playlist_date)
            return playlist

    def get_playlist(self, playlist_id: int) -> Playlist:
        playlist = self.repository.get_playlist(playlist_id)
        if playlist is None:
            raise NotFound("Playlist not found")
        return playlist

    def list_playlists(self) -> List[Playlist]:
        return self.repository.list_playlists()

    def find_playlist_by_show_and_date(self, show_id: int, playlist_date: date) -> Optional[Playlist]:
        return self.repository.find_playlist_by_show_and_date(show_id, playlist_date)

    def describe_playlist(self, playlist: Playlist) -> Dict[str, Any]:
        """Playlist with show (with host) and songs embedded."""
        data = playlist_to_dict(playlist)
        show = self.repository.get_show(playlist.show_id)
        if show:
            show_data = show_to_dict(show)
            host = self.repository.get_host(show.host_id)
            show_data["host"] = host_to_dict(host) if host else None
            data["show"] = show_data
        else:
            data["show"] = None
        data["songs"] = [
            song_to_dict(song) for song in self.repository.list_songs(playlist_id=playlist.id)
        ]
        return data

    # =========================================================================
    # Songs
    # =========================================================================

    def create_song(
        self,
        title: str,
        artist: str,
        playlist_id: int,
        album: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> Song:
        if not title or not artist:
            raise ValidationFailure("Song title and artist are required")
        self.get_playlist(playlist_id)
        return self.repository.create_song(title, artist, playlist_id, album=album, duration=duration)

    def get_song(self, song_id: int) -> Song:
        song = self.repository.get_song(song_id)
        if song is None:
            raise NotFound("Song not found")
        return song

    def list_songs(self) -> List[Song]:
        return self.repository.list_songs()

    def delete_songs_by_playlist(self, playlist_id: int) -> int:
        count = self.repository.delete_songs_by_playlist(playlist_id)
        self.logger.debug("Deleted %s songs from playlist %s", count, playlist_id)
        return count

    def replace_playlist_songs(self, playlist_id: int, songs: List[Dict[str, Any]]) -> int:
        """Delete a playlist's songs and write new ones in a single transaction."""
        return self.repository.replace_playlist_songs(playlist_id, songs)

    def describe_song(self, song: Song) -> Dict[str, Any]:
        """Song with playlist (with show) embedded."""
        data = song_to_dict(song)
        playlist = self.repository.get_playlist(song.playlist_id)
        if playlist:
            playlist_data = playlist_to_dict(playlist)
            show = self.repository.get_show(playlist.show_id)
            playlist_data["show"] = show_to_dict(show) if show else None
            data["playlist"] = playlist_data
        else:
            data["playlist"] = None
        return data
