"""
Rating management for radiocalico.

Enforces one vote per listener per track and handles create, switch and
cancel. Counts are derived on demand, never stored.
"""

import logging
import sqlite3
import threading
from typing import Optional, Tuple

from .database import Database, RatingRepository
from .errors import AlreadyRated, RatingNotFound, ValidationFailure
from .models import VOTES, Rating, RatingAggregate


def validate_rating_key(song_artist: Optional[str], song_title: Optional[str], client_id: Optional[str]):
    """Reject missing key fields before they reach the store."""
    missing = [
        name
        for name, value in (
            ("songArtist", song_artist),
            ("songTitle", song_title),
            ("clientId", client_id),
        )
        if not value
    ]
    if missing:
        raise ValidationFailure("Missing required fields: %s" % ", ".join(missing))


def validate_vote(rating_type: Optional[str]):
    if rating_type not in VOTES:
        raise ValidationFailure("ratingType must be 'up' or 'down'")


class RatingManager:
    """
    Manages listener ratings.

    submit() is check-then-write. The lock serializes it within this process;
    the database unique constraint covers everything else, and a lost insert
    race is resolved against the row that won.
    """

    def __init__(self, database: Database):
        """
        Initialize RatingManager.

        Args:
            database: Database instance for persistence
        """
        self.database = database
        self.repository = RatingRepository(database)
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()

    def submit(
        self, song_artist: str, song_title: str, client_id: str, rating_type: str
    ) -> Tuple[Rating, bool]:
        """
        Record a vote.

        Args:
            song_artist: Track artist (exact match)
            song_title: Track title (exact match)
            client_id: Listener identity token
            rating_type: 'up' or 'down'

        Returns:
            (rating, created) where created is False when an existing vote was switched

        Raises:
            ValidationFailure: Missing field or bad vote value
            AlreadyRated: The listener already holds this exact vote
        """
        validate_rating_key(song_artist, song_title, client_id)
        validate_vote(rating_type)

        with self._lock:
            existing = self.repository.get(song_artist, song_title, client_id)
            if existing is None:
                try:
                    rating = self.repository.insert(song_artist, song_title, client_id, rating_type)
                    self.logger.info(
                        "Rating created: %s voted %s on %s - %s",
                        client_id,
                        rating_type,
                        song_artist,
                        song_title,
                    )
                    return rating, True
                except sqlite3.IntegrityError:
                    # Another writer inserted the same key first
                    self.logger.debug(
                        "Rating insert lost race for %s on %s - %s", client_id, song_artist, song_title
                    )
                    existing = self.repository.get(song_artist, song_title, client_id)
                    if existing is None:
                        raise

            if existing.rating_type == rating_type:
                raise AlreadyRated(
                    "Listener already rated %s - %s as %s" % (song_artist, song_title, rating_type)
                )

            rating = self.repository.update_type(existing.id, rating_type)
            if rating is None:
                # Cancelled concurrently; the vote still stands as a new rating
                rating = self.repository.insert(song_artist, song_title, client_id, rating_type)
                return rating, True

            self.logger.info(
                "Rating switched: %s changed %s -> %s on %s - %s",
                client_id,
                existing.rating_type,
                rating_type,
                song_artist,
                song_title,
            )
            return rating, False

    def cancel(self, song_artist: str, song_title: str, client_id: str) -> None:
        """
        Remove a listener's vote.

        Raises:
            ValidationFailure: Missing field
            RatingNotFound: No vote exists for the key
        """
        validate_rating_key(song_artist, song_title, client_id)

        with self._lock:
            if not self.repository.delete(song_artist, song_title, client_id):
                raise RatingNotFound(
                    "No rating for %s - %s by this listener" % (song_artist, song_title)
                )
        self.logger.info("Rating cancelled: %s on %s - %s", client_id, song_artist, song_title)

    def aggregate(self, song_artist: str, song_title: str) -> RatingAggregate:
        """Count votes for a track. Untouched tracks count as zero."""
        up, down = self.repository.count_by_type(song_artist, song_title)
        return RatingAggregate(song_artist=song_artist, song_title=song_title, up=up, down=down)

    def get_vote(self, song_artist: str, song_title: str, client_id: str) -> Optional[str]:
        """Return the listener's stored vote, or None."""
        rating = self.repository.get(song_artist, song_title, client_id)
        return rating.rating_type if rating else None
