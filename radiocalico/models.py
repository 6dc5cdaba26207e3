"""
Data models for radiocalico.

Defines typed dataclasses for all entities used throughout the application.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple

VOTE_UP = "up"
VOTE_DOWN = "down"
VOTES = (VOTE_UP, VOTE_DOWN)

# Feed reports at most this many previous tracks
MAX_PREVIOUS_TRACKS = 5


@dataclass(frozen=True)
class TrackRef:
    """A track as reported by the metadata feed. Identity is (artist, title)."""

    artist: str
    title: str
    album: Optional[str] = None
    release_date: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.artist, self.title)

    def same_track(self, other: Optional["TrackRef"]) -> bool:
        """Exact, case-sensitive match on (artist, title)."""
        return other is not None and self.key == other.key


@dataclass(frozen=True)
class AudioQuality:
    """Source audio quality reported by the feed."""

    bit_depth: int = 0
    sample_rate: int = 0


@dataclass(frozen=True)
class NowPlayingSnapshot:
    """One successful poll of the feed: current track plus recent history."""

    current: TrackRef
    previous: Tuple[TrackRef, ...] = ()
    audio_quality: AudioQuality = field(default_factory=AudioQuality)

    def tracks(self) -> List[TrackRef]:
        """Current track first, then previous tracks in feed order."""
        return [self.current, *self.previous]


@dataclass
class SelectionState:
    """Which of the available songs the listener is looking at."""

    available_songs: List[TrackRef] = field(default_factory=list)
    selected_index: int = 0
    manual_override: bool = False

    @property
    def selected(self) -> Optional[TrackRef]:
        if not self.available_songs:
            return None
        return self.available_songs[self.selected_index]


@dataclass
class Rating:
    """One listener's vote on one track."""

    id: int
    song_artist: str
    song_title: str
    client_id: str
    rating_type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RatingAggregate:
    """Vote counts for one track, computed on demand."""

    song_artist: str
    song_title: str
    up: int = 0
    down: int = 0

    @property
    def total(self) -> int:
        return self.up + self.down


@dataclass
class Host:
    """Radio host."""

    id: int
    name: str
    bio: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Show:
    """A show on the station schedule."""

    id: int
    title: str
    host_id: int
    description: Optional[str] = None
    air_time: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Playlist:
    """A dated playlist belonging to a show."""

    id: int
    name: str
    date: date
    show_id: int
    created_at: Optional[datetime] = None


@dataclass
class Song:
    """A song entry in a playlist."""

    id: int
    title: str
    artist: str
    playlist_id: int
    album: Optional[str] = None
    duration: Optional[int] = None  # seconds
    created_at: Optional[datetime] = None


@dataclass
class ConfigEntry:
    """Configuration entry."""

    key: str
    value: str
    updated_at: Optional[datetime] = None
