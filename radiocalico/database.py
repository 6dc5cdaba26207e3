"""
Database module for radiocalico.

Handles SQLite database initialization, schema creation, connection management
and the repositories that read and write each group of tables.
"""

import logging
import os
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .models import ConfigEntry, Host, Playlist, Rating, Show, Song


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a SQLite CURRENT_TIMESTAMP string."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


class Database:
    """Manages SQLite database connection and schema."""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                RADIOCALICO_DB_PATH or ~/.radiocalico/radiocalico.db
        """
        self.logger = logging.getLogger(__name__)

        if db_path is None:
            db_path = os.environ.get("RADIOCALICO_DB_PATH")

        if db_path is None:
            data_dir = Path.home() / ".radiocalico"
            data_dir.mkdir(exist_ok=True)
            db_path = str(data_dir / "radiocalico.db")

        self.db_path = db_path
        self._ensure_schema()
        self.logger.info("Database initialized at %s", self.db_path)

    def _ensure_schema(self):
        """Ensure database schema exists."""
        conn = self.get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS hosts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                bio TEXT,
                email TEXT UNIQUE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS shows (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT,
                air_time TEXT,
                host_id INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (host_id) REFERENCES hosts(id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS playlists (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                date TEXT NOT NULL,
                show_id INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (show_id) REFERENCES shows(id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS songs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                artist TEXT NOT NULL,
                album TEXT,
                duration INTEGER,
                playlist_id INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (playlist_id) REFERENCES playlists(id) ON DELETE CASCADE
            )
        """)

        # One vote per listener per track
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS ratings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                song_artist TEXT NOT NULL,
                song_title TEXT NOT NULL,
                client_id TEXT NOT NULL,
                rating_type TEXT NOT NULL CHECK (rating_type IN ('up', 'down')),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (song_artist, song_title, client_id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_ratings_song
            ON ratings(song_artist, song_title)
        """)

        # One show per title, one playlist per show per day
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS uq_shows_title
            ON shows(title)
        """)

        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS uq_playlists_show_date
            ON playlists(show_id, date)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_songs_playlist
            ON songs(playlist_id)
        """)

        conn.commit()
        conn.close()
        self.logger.debug("Database schema created/verified")

    def get_connection(self):
        """
        Get a new database connection (thread-safe).

        Each thread should get its own connection. Caller is responsible
        for closing the connection when done.
        """
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=10.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        conn = self.get_connection()
        try:
            conn.execute("SELECT 1").fetchone()
            return True
        finally:
            conn.close()

    def close(self):
        """Close database connection (no-op since we use per-call connections)."""
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class ConfigRepository:
    """Reads and writes the config table."""

    def __init__(self, database: Database):
        self.database = database

    def initialize_defaults(self, defaults: Dict[str, Any]):
        """Insert default values for keys that are not yet stored."""
        conn = self.database.get_connection()
        try:
            for key, value in defaults.items():
                if value is None:
                    continue
                conn.execute(
                    "INSERT OR IGNORE INTO config (key, value) VALUES (?, ?)",
                    (key, str(value)),
                )
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str) -> Optional[ConfigEntry]:
        conn = self.database.get_connection()
        try:
            row = conn.execute(
                "SELECT key, value, updated_at FROM config WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            return ConfigEntry(
                key=row["key"],
                value=row["value"],
                updated_at=_parse_timestamp(row["updated_at"]),
            )
        finally:
            conn.close()

    def set(self, key: str, value: str) -> bool:
        conn = self.database.get_connection()
        try:
            conn.execute(
                """
                INSERT INTO config (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
            return True
        finally:
            conn.close()

    def get_all(self) -> List[ConfigEntry]:
        conn = self.database.get_connection()
        try:
            rows = conn.execute("SELECT key, value, updated_at FROM config").fetchall()
            return [
                ConfigEntry(
                    key=row["key"],
                    value=row["value"],
                    updated_at=_parse_timestamp(row["updated_at"]),
                )
                for row in rows
            ]
        finally:
            conn.close()


class RatingRepository:
    """
    Persistence for listener ratings.

    The UNIQUE (song_artist, song_title, client_id) constraint is the authority
    for one-vote-per-listener-per-track; insert() lets sqlite3.IntegrityError
    propagate so the caller can resolve the conflict.
    """

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def _row_to_rating(row) -> Rating:
        return Rating(
            id=row["id"],
            song_artist=row["song_artist"],
            song_title=row["song_title"],
            client_id=row["client_id"],
            rating_type=row["rating_type"],
            created_at=_parse_timestamp(row["created_at"]),
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    def get(self, song_artist: str, song_title: str, client_id: str) -> Optional[Rating]:
        conn = self.database.get_connection()
        try:
            row = conn.execute(
                """
                SELECT * FROM ratings
                WHERE song_artist = ? AND song_title = ? AND client_id = ?
                """,
                (song_artist, song_title, client_id),
            ).fetchone()
            return self._row_to_rating(row) if row else None
        finally:
            conn.close()

    def insert(self, song_artist: str, song_title: str, client_id: str, rating_type: str) -> Rating:
        """
        Insert a new rating.

        Raises:
            sqlite3.IntegrityError: If the listener already rated this track
        """
        conn = self.database.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO ratings (song_artist, song_title, client_id, rating_type)
                VALUES (?, ?, ?, ?)
                """,
                (song_artist, song_title, client_id, rating_type),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM ratings WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            return self._row_to_rating(row)
        finally:
            conn.close()

    def update_type(self, rating_id: int, rating_type: str) -> Optional[Rating]:
        conn = self.database.get_connection()
        try:
            conn.execute(
                """
                UPDATE ratings
                SET rating_type = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (rating_type, rating_id),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM ratings WHERE id = ?", (rating_id,)).fetchone()
            return self._row_to_rating(row) if row else None
        finally:
            conn.close()

    def delete(self, song_artist: str, song_title: str, client_id: str) -> bool:
        """Delete a rating. Returns True if a row was removed."""
        conn = self.database.get_connection()
        try:
            cursor = conn.execute(
                """
                DELETE FROM ratings
                WHERE song_artist = ? AND song_title = ? AND client_id = ?
                """,
                (song_artist, song_title, client_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def count_by_type(self, song_artist: str, song_title: str) -> Tuple[int, int]:
        """Return (up, down) counts for a track."""
        conn = self.database.get_connection()
        try:
            rows = conn.execute(
                """
                SELECT rating_type, COUNT(*) AS n
                FROM ratings
                WHERE song_artist = ? AND song_title = ?
                GROUP BY rating_type
                """,
                (song_artist, song_title),
            ).fetchall()
            counts = {row["rating_type"]: row["n"] for row in rows}
            return counts.get("up", 0), counts.get("down", 0)
        finally:
            conn.close()


class CatalogRepository:
    """Persistence for hosts, shows, playlists and songs."""

    def __init__(self, database: Database):
        self.database = database

    # Row conversion

    @staticmethod
    def _row_to_host(row) -> Host:
        return Host(
            id=row["id"],
            name=row["name"],
            bio=row["bio"],
            email=row["email"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    @staticmethod
    def _row_to_show(row) -> Show:
        return Show(
            id=row["id"],
            title=row["title"],
            host_id=row["host_id"],
            description=row["description"],
            air_time=row["air_time"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    @staticmethod
    def _row_to_playlist(row) -> Playlist:
        return Playlist(
            id=row["id"],
            name=row["name"],
            date=_parse_date(row["date"]),
            show_id=row["show_id"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    @staticmethod
    def _row_to_song(row) -> Song:
        return Song(
            id=row["id"],
            title=row["title"],
            artist=row["artist"],
            playlist_id=row["playlist_id"],
            album=row["album"],
            duration=row["duration"],
            created_at=_parse_timestamp(row["created_at"]),
        )

    def _fetch_one(self, query: str, params: tuple):
        conn = self.database.get_connection()
        try:
            return conn.execute(query, params).fetchone()
        finally:
            conn.close()

    def _fetch_all(self, query: str, params: tuple = ()):
        conn = self.database.get_connection()
        try:
            return conn.execute(query, params).fetchall()
        finally:
            conn.close()

    def _insert(self, query: str, params: tuple) -> int:
        conn = self.database.get_connection()
        try:
            cursor = conn.execute(query, params)
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    # Hosts

    def create_host(self, name: str, bio: Optional[str] = None, email: Optional[str] = None) -> Host:
        host_id = self._insert(
            "INSERT INTO hosts (name, bio, email) VALUES (?, ?, ?)", (name, bio, email)
        )
        return self.get_host(host_id)

    def get_host(self, host_id: int) -> Optional[Host]:
        row = self._fetch_one("SELECT * FROM hosts WHERE id = ?", (host_id,))
        return self._row_to_host(row) if row else None

    def find_host_by_name(self, name: str) -> Optional[Host]:
        row = self._fetch_one("SELECT * FROM hosts WHERE name = ? ORDER BY id LIMIT 1", (name,))
        return self._row_to_host(row) if row else None

    def list_hosts(self) -> List[Host]:
        return [self._row_to_host(row) for row in self._fetch_all("SELECT * FROM hosts ORDER BY id")]

    # Shows

    def create_show(
        self,
        title: str,
        host_id: int,
        description: Optional[str] = None,
        air_time: Optional[str] = None,
    ) -> Show:
        show_id = self._insert(
            "INSERT INTO shows (title, description, air_time, host_id) VALUES (?, ?, ?, ?)",
            (title, description, air_time, host_id),
        )
        return self.get_show(show_id)

    def get_show(self, show_id: int) -> Optional[Show]:
        row = self._fetch_one("SELECT * FROM shows WHERE id = ?", (show_id,))
        return self._row_to_show(row) if row else None

    def find_show_by_title(self, title: str) -> Optional[Show]:
        row = self._fetch_one("SELECT * FROM shows WHERE title = ? ORDER BY id LIMIT 1", (title,))
        return self._row_to_show(row) if row else None

    def list_shows(self, host_id: Optional[int] = None) -> List[Show]:
        if host_id is None:
            rows = self._fetch_all("SELECT * FROM shows ORDER BY id")
        else:
            rows = self._fetch_all("SELECT * FROM shows WHERE host_id = ? ORDER BY id", (host_id,))
        return [self._row_to_show(row) for row in rows]

    # Playlists

    def create_playlist(self, name: str, playlist_date: date, show_id: int) -> Playlist:
        playlist_id = self._insert(
            "INSERT INTO playlists (name, date, show_id) VALUES (?, ?, ?)",
            (name, playlist_date.isoformat(), show_id),
        )
        return self.get_playlist(playlist_id)

    def get_playlist(self, playlist_id: int) -> Optional[Playlist]:
        row = self._fetch_one("SELECT * FROM playlists WHERE id = ?", (playlist_id,))
        return self._row_to_playlist(row) if row else None

    def find_playlist_by_show_and_date(self, show_id: int, playlist_date: date) -> Optional[Playlist]:
        row = self._fetch_one(
            "SELECT * FROM playlists WHERE show_id = ? AND date = ? ORDER BY id LIMIT 1",
            (show_id, playlist_date.isoformat()),
        )
        return self._row_to_playlist(row) if row else None

    def list_playlists(self, show_id: Optional[int] = None) -> List[Playlist]:
        if show_id is None:
            rows = self._fetch_all("SELECT * FROM playlists ORDER BY id")
        else:
            rows = self._fetch_all(
                "SELECT * FROM playlists WHERE show_id = ? ORDER BY id", (show_id,)
            )
        return [self._row_to_playlist(row) for row in rows]

    # Songs

    def create_song(
        self,
        title: str,
        artist: str,
        playlist_id: int,
        album: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> Song:
        song_id = self._insert(
            """
            INSERT INTO songs (title, artist, album, duration, playlist_id)
            VALUES (?, ?, ?, ?, ?)
            """,
            (title, artist, album, duration, playlist_id),
        )
        return self.get_song(song_id)

    def get_song(self, song_id: int) -> Optional[Song]:
        row = self._fetch_one("SELECT * FROM songs WHERE id = ?", (song_id,))
        return self._row_to_song(row) if row else None

    def list_songs(self, playlist_id: Optional[int] = None) -> List[Song]:
        if playlist_id is None:
            rows = self._fetch_all("SELECT * FROM songs ORDER BY id")
        else:
            rows = self._fetch_all(
                "SELECT * FROM songs WHERE playlist_id = ? ORDER BY id", (playlist_id,)
            )
        return [self._row_to_song(row) for row in rows]

    def delete_songs_by_playlist(self, playlist_id: int) -> int:
        """Delete all songs of a playlist. Returns the number removed."""
        conn = self.database.get_connection()
        try:
            cursor = conn.execute("DELETE FROM songs WHERE playlist_id = ?", (playlist_id,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def replace_playlist_songs(self, playlist_id: int, songs: List[Dict[str, Any]]) -> int:
        """
        Replace all songs of a playlist in one transaction.

        Args:
            playlist_id: Playlist to rewrite
            songs: Dicts with title, artist and optional album/duration

        Returns:
            Number of songs written
        """
        conn = self.database.get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM songs WHERE playlist_id = ?", (playlist_id,))
                conn.executemany(
                    """
                    INSERT INTO songs (title, artist, album, duration, playlist_id)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            song["title"],
                            song["artist"],
                            song.get("album"),
                            song.get("duration"),
                            playlist_id,
                        )
                        for song in songs
                    ],
                )
            return len(songs)
        finally:
            conn.close()
