"""
Listener session for radiocalico.

One owner object for everything a listener's client holds: the metadata
poller, track selection, playback, the local vote record and the server
API client. Nothing here is module-level state, so a session can be
started, stopped and discarded cleanly.
"""

import logging
import threading
from typing import Callable, List, Optional

from .api_client import ApiClient
from .errors import AlreadyRated, RatingNotFound, UpstreamFetchFailure, ValidationFailure
from .listener import ListenerStore, RatingActionKind, decide_rating_action
from .metadata import MetadataClient
from .models import NowPlayingSnapshot, RatingAggregate, TrackRef
from .playback import MediaElement, NullMediaElement, PlaybackController
from .poller import MetadataPoller
from .presentation import build_view, render_now_playing
from .selection import SelectionChange, TrackSelection


class ListenerSession:
    """Client-side reconciliation of the live feed, navigation and ratings."""

    def __init__(
        self,
        metadata_client: MetadataClient,
        api_client: ApiClient,
        listener_store: ListenerStore,
        stream_url: str,
        media: Optional[MediaElement] = None,
        poll_interval_seconds: float = 10.0,
        archive: bool = True,
    ):
        """
        Initialize ListenerSession.

        Args:
            metadata_client: Feed client the poller uses
            api_client: Server API client for ratings and archival
            listener_store: Persisted identity and vote record
            stream_url: Live stream URL for the media element
            media: Platform media element (NullMediaElement if None)
            poll_interval_seconds: Feed poll interval
            archive: Ask the server to archive each snapshot
        """
        self.logger = logging.getLogger(__name__)
        self.api_client = api_client
        self.listener_store = listener_store
        self.notices: List[str] = []
        self._render_callbacks: List[Callable[[str], None]] = []

        self.playback = PlaybackController(
            media or NullMediaElement(), stream_url, on_notice=self._on_notice
        )
        self.selection = TrackSelection(on_select=self._on_select)
        self.poller = MetadataPoller(
            metadata_client,
            interval_seconds=poll_interval_seconds,
            archiver=self._archive if archive else None,
        )
        self.poller.add_listener(self._on_snapshot)

        self._aggregate: Optional[RatingAggregate] = None
        self._aggregate_lock = threading.Lock()

    @property
    def client_id(self) -> str:
        return self.listener_store.client_id

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        self.logger.info("Starting listener session %s", self.client_id)
        self.poller.start()

    def stop(self):
        self.poller.stop()
        self.logger.info("Listener session stopped")

    def add_render_callback(self, callback: Callable[[str], None]):
        """Register a callback that receives freshly rendered HTML."""
        self._render_callbacks.append(callback)

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _archive(self, snapshot: NowPlayingSnapshot):
        self.api_client.save_metadata()

    def _on_snapshot(self, snapshot: NowPlayingSnapshot):
        before = self.selection.selected
        after = self.selection.apply_snapshot(snapshot).selected
        if after is not None and not after.same_track(before):
            self.refresh_ratings()
        self._emit_render()

    def _on_select(self, change: SelectionChange):
        self.playback.on_selection(change)
        self.refresh_ratings()
        self._emit_render()

    def _on_notice(self, message: str):
        self.notices.append(message)

    # =========================================================================
    # Listener actions
    # =========================================================================

    def select_song(self, index: int) -> Optional[SelectionChange]:
        return self.selection.select_song(index)

    def navigate_prev(self) -> Optional[SelectionChange]:
        return self.selection.navigate_prev()

    def navigate_next(self) -> Optional[SelectionChange]:
        return self.selection.navigate_next()

    def toggle_playback(self) -> bool:
        return self.playback.toggle()

    def set_volume(self, volume: float) -> float:
        return self.playback.set_volume(volume)

    def rate(self, clicked_vote: str) -> Optional[str]:
        """
        Handle a rating-button click on the displayed track.

        Returns:
            The listener's vote after the click (None when cancelled or
            when nothing is displayed)
        """
        track = self.selection.selected
        if track is None:
            return None

        stored = self.listener_store.get_vote(track.artist, track.title)
        action = decide_rating_action(stored, clicked_vote)

        try:
            if action.kind == RatingActionKind.CANCEL:
                self.api_client.cancel_rating(track.artist, track.title, self.client_id)
                self.listener_store.clear_vote(track.artist, track.title)
            else:
                self.api_client.submit_rating(track.artist, track.title, self.client_id, action.vote)
                self.listener_store.set_vote(track.artist, track.title, action.vote)
        except AlreadyRated:
            # Server already holds this vote; local record was stale
            self.listener_store.set_vote(track.artist, track.title, action.vote)
        except RatingNotFound:
            self.listener_store.clear_vote(track.artist, track.title)
        except (UpstreamFetchFailure, ValidationFailure) as e:
            self.logger.warning("Rating %s failed for %s - %s: %s", action.kind.value, track.artist, track.title, e)
            return stored

        self.refresh_ratings(track)
        self._emit_render()
        return self.listener_store.get_vote(track.artist, track.title)

    # =========================================================================
    # Ratings and rendering
    # =========================================================================

    def refresh_ratings(self, track: Optional[TrackRef] = None) -> Optional[RatingAggregate]:
        """
        Fetch counts for a track (the selected one by default).

        The result is kept only if that track is still the one displayed.
        """
        track = track or self.selection.selected
        if track is None:
            return None
        try:
            aggregate, _ = self.api_client.get_ratings(track.artist, track.title)
        except UpstreamFetchFailure as e:
            self.logger.warning("Could not load ratings for %s - %s: %s", track.artist, track.title, e)
            return None

        with self._aggregate_lock:
            if not track.same_track(self.selection.selected):
                self.logger.debug("Discarding ratings for %s - %s, selection moved on", track.artist, track.title)
                return None
            self._aggregate = aggregate
        return aggregate

    def current_aggregate(self) -> Optional[RatingAggregate]:
        track = self.selection.selected
        with self._aggregate_lock:
            aggregate = self._aggregate
        if aggregate is None or track is None:
            return None
        if (aggregate.song_artist, aggregate.song_title) != track.key:
            return None
        return aggregate

    def render(self) -> str:
        """Render the now-playing panel from current state."""
        state = self.selection.state
        track = state.selected
        snapshot = self.poller.snapshot
        view = build_view(
            state,
            aggregate=self.current_aggregate(),
            local_vote=self.listener_store.get_vote(track.artist, track.title) if track else None,
            audio_quality=snapshot.audio_quality if snapshot else None,
        )
        return render_now_playing(view)

    def _emit_render(self):
        if not self._render_callbacks:
            return
        html = self.render()
        for callback in list(self._render_callbacks):
            try:
                callback(html)
            except Exception as e:
                self.logger.error("Error in render callback: %s", e, exc_info=True)
