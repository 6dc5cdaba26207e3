"""
Track selection state for radiocalico.

Reconciles each fresh NowPlayingSnapshot with the listener's manual
navigation through the current + previous tracks window. A manual pick
stays pinned while its track is still in the window and is dropped once
the track ages out.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import ValidationFailure
from .models import NowPlayingSnapshot, SelectionState, TrackRef


@dataclass(frozen=True)
class SelectionChange:
    """Result of a manual navigation."""

    track: TrackRef
    index: int
    previous_index: int

    @property
    def index_changed(self) -> bool:
        return self.index != self.previous_index


SelectionListener = Callable[[SelectionChange], None]


class TrackSelection:
    """
    Owns a listener's SelectionState.

    All mutation happens under one lock, so poll-thread reconciliation and
    listener navigation never interleave.
    """

    def __init__(self, on_select: Optional[SelectionListener] = None):
        """
        Initialize TrackSelection.

        Args:
            on_select: Called after every manual navigation (e.g. the playback controller)
        """
        self._state = SelectionState()
        self._lock = threading.Lock()
        self.on_select = on_select
        self.logger = logging.getLogger(__name__)

    @property
    def state(self) -> SelectionState:
        """A copy of the current state."""
        with self._lock:
            return SelectionState(
                available_songs=list(self._state.available_songs),
                selected_index=self._state.selected_index,
                manual_override=self._state.manual_override,
            )

    @property
    def selected(self) -> Optional[TrackRef]:
        with self._lock:
            return self._state.selected

    def apply_snapshot(self, snapshot: NowPlayingSnapshot) -> SelectionState:
        """
        Reconcile a fresh snapshot with the current selection.

        Args:
            snapshot: Snapshot from the poller

        Returns:
            The resulting state
        """
        songs = snapshot.tracks()

        with self._lock:
            previous_track = self._state.selected

            if not self._state.manual_override:
                index = 0
                manual = False
            else:
                index = self._find(songs, previous_track)
                if index is None:
                    self.logger.info(
                        "Selected track %s - %s left the window, following live feed",
                        previous_track.artist if previous_track else None,
                        previous_track.title if previous_track else None,
                    )
                    index = 0
                    manual = False
                else:
                    manual = True

            self._state = SelectionState(
                available_songs=songs, selected_index=index, manual_override=manual
            )

        return self.state

    @staticmethod
    def _find(songs: List[TrackRef], track: Optional[TrackRef]) -> Optional[int]:
        for i, candidate in enumerate(songs):
            if candidate.same_track(track):
                return i
        return None

    # =========================================================================
    # Manual navigation
    # =========================================================================

    def select_song(self, index: int) -> Optional[SelectionChange]:
        """
        Select a track by its position in the window.

        Returns:
            The change, or None if no songs are available

        Raises:
            ValidationFailure: If the index is out of range
        """
        with self._lock:
            count = len(self._state.available_songs)
            if count == 0:
                return None
            if index < 0 or index >= count:
                raise ValidationFailure("Song index %s out of range (0-%s)" % (index, count - 1))
            change = self._select_locked(index)
        self._notify(change)
        return change

    def navigate_prev(self) -> Optional[SelectionChange]:
        """Move to the previous track, wrapping to the end."""
        return self._step(-1)

    def navigate_next(self) -> Optional[SelectionChange]:
        """Move to the next track, wrapping to the start."""
        return self._step(1)

    def _step(self, delta: int) -> Optional[SelectionChange]:
        with self._lock:
            count = len(self._state.available_songs)
            if count == 0:
                return None
            change = self._select_locked((self._state.selected_index + delta) % count)
        self._notify(change)
        return change

    def _select_locked(self, index: int) -> SelectionChange:
        previous_index = self._state.selected_index
        self._state.selected_index = index
        self._state.manual_override = True
        return SelectionChange(
            track=self._state.available_songs[index],
            index=index,
            previous_index=previous_index,
        )

    def _notify(self, change: SelectionChange):
        if self.on_select is None:
            return
        try:
            self.on_select(change)
        except Exception as e:
            self.logger.error("Error in selection listener: %s", e, exc_info=True)
