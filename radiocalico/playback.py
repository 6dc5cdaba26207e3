"""
Playback controller for radiocalico.

Thin binding between track selection and the platform media element.
Decoding and output are the media element's business; this module only
decides when to play, pause and rewind.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from .errors import PlaybackFailure
from .selection import SelectionChange

DEFAULT_VOLUME = 0.7


class PlaybackState(Enum):
    """Playback state enumeration."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"


class MediaElement(ABC):
    """
    Interface to the platform media stack.

    play() raises PlaybackFailure when the platform refuses to start.
    """

    @abstractmethod
    def load(self, source: str) -> None:
        """Point the element at a stream URL."""

    @abstractmethod
    def play(self) -> None:
        """Start or resume output."""

    @abstractmethod
    def pause(self) -> None:
        """Pause output, keeping position."""

    @abstractmethod
    def seek(self, position_seconds: float) -> None:
        """Move the playback position."""

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set output volume (0.0 - 1.0)."""


class NullMediaElement(MediaElement):
    """Media element that produces no output. Used by headless sessions."""

    def __init__(self):
        self.source: Optional[str] = None
        self.playing = False
        self.position = 0.0
        self.volume = DEFAULT_VOLUME

    def load(self, source: str) -> None:
        self.source = source
        self.position = 0.0

    def play(self) -> None:
        if self.source is None:
            raise PlaybackFailure("No source loaded")
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek(self, position_seconds: float) -> None:
        self.position = position_seconds

    def set_volume(self, volume: float) -> None:
        self.volume = volume


class PlaybackController:
    """Drives a MediaElement from listener actions."""

    def __init__(
        self,
        media: MediaElement,
        stream_url: str,
        on_notice: Optional[Callable[[str], None]] = None,
        volume: float = DEFAULT_VOLUME,
    ):
        """
        Initialize PlaybackController.

        Args:
            media: Platform media element
            stream_url: Live stream the element is loaded with
            on_notice: Called with a message to show the listener (optional)
            volume: Initial volume (0.0 - 1.0)
        """
        self.media = media
        self.stream_url = stream_url
        self.on_notice = on_notice
        self.logger = logging.getLogger(__name__)
        self.state = PlaybackState.IDLE
        self.lock = threading.Lock()
        self._failure_noticed = False

        self.media.load(stream_url)
        self.set_volume(volume)

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    def play(self) -> bool:
        """
        Start or resume playback.

        Returns:
            True if playing, False if the media element refused
        """
        with self.lock:
            return self._play_locked()

    def _play_locked(self) -> bool:
        if self.state == PlaybackState.PLAYING:
            return True
        try:
            self.media.play()
        except PlaybackFailure as e:
            self.state = PlaybackState.ERROR
            self.logger.error("Media element refused to play: %s", e)
            self._notice("Unable to play audio. Please check your connection.")
            return False

        self.state = PlaybackState.PLAYING
        self._failure_noticed = False
        self.logger.info("Playback started")
        return True

    def pause(self) -> bool:
        """
        Pause playback.

        Returns:
            True if paused, False if nothing was playing
        """
        with self.lock:
            if self.state != PlaybackState.PLAYING:
                self.logger.debug("Not playing, cannot pause")
                return False
            self.media.pause()
            self.state = PlaybackState.PAUSED
            self.logger.info("Playback paused")
            return True

    def toggle(self) -> bool:
        """Toggle play/pause. Returns True if now playing."""
        with self.lock:
            if self.state == PlaybackState.PLAYING:
                self.media.pause()
                self.state = PlaybackState.PAUSED
                return False
            return self._play_locked()

    def set_volume(self, volume: float) -> float:
        """Set volume, clamped to 0.0 - 1.0. Returns the applied value."""
        volume = min(1.0, max(0.0, float(volume)))
        self.media.set_volume(volume)
        self.volume = volume
        return volume

    def on_selection(self, change: SelectionChange):
        """
        React to a manual track selection.

        A different track rewinds to the start and keeps playing if it was
        playing. The same track toggles play/pause in place.
        """
        if not change.index_changed:
            self.toggle()
            return

        with self.lock:
            was_playing = self.state == PlaybackState.PLAYING
            self.media.seek(0)
            self.logger.debug(
                "Switched to %s - %s (index %s)", change.track.artist, change.track.title, change.index
            )
            if was_playing:
                # Re-issue play for the new selection
                self.state = PlaybackState.PAUSED
                self._play_locked()

    def _notice(self, message: str):
        """Show a failure notice once per failure streak."""
        if self._failure_noticed:
            return
        self._failure_noticed = True
        if self.on_notice:
            try:
                self.on_notice(message)
            except Exception as e:
                self.logger.error("Error delivering notice: %s", e, exc_info=True)
