"""
Metadata poller for radiocalico.

Fetches the now-playing feed on a fixed interval, hands each snapshot to
registered listeners and fires off the archival write without waiting on it.
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from .errors import UpstreamFetchFailure
from .metadata import MetadataClient
from .models import NowPlayingSnapshot

SnapshotListener = Callable[[NowPlayingSnapshot], None]
Archiver = Callable[[NowPlayingSnapshot], object]


class MetadataPoller:
    """Periodically polls the metadata feed with an explicit start/stop lifecycle."""

    def __init__(
        self,
        metadata_client: MetadataClient,
        interval_seconds: float = 10.0,
        archiver: Optional[Archiver] = None,
    ):
        """
        Initialize MetadataPoller.

        Args:
            metadata_client: Client used to fetch the feed
            interval_seconds: Delay between polls
            archiver: Called with each new snapshot on a detached thread (optional)
        """
        self.metadata_client = metadata_client
        self.interval_seconds = interval_seconds
        self.archiver = archiver
        self.logger = logging.getLogger(__name__)

        self._listeners: List[SnapshotListener] = []
        self._snapshot: Optional[NowPlayingSnapshot] = None
        self._snapshot_lock = threading.Lock()
        self.last_success_at: Optional[float] = None
        self.consecutive_failures = 0

        self._poll_thread: Optional[threading.Thread] = None
        self._polling = False
        self._stop_event = threading.Event()  # Wakes the poll thread on stop

    def add_listener(self, listener: SnapshotListener):
        """Register a callback invoked with every successful snapshot."""
        self._listeners.append(listener)

    @property
    def snapshot(self) -> Optional[NowPlayingSnapshot]:
        """Most recent successful snapshot, retained across failed polls."""
        with self._snapshot_lock:
            return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._polling

    # =========================================================================
    # Polling
    # =========================================================================

    def poll_once(self) -> Optional[NowPlayingSnapshot]:
        """
        Run a single poll cycle.

        Returns:
            The new snapshot, or None if the fetch failed
        """
        try:
            snapshot = self.metadata_client.fetch()
        except UpstreamFetchFailure as e:
            self.consecutive_failures += 1
            self.logger.warning(
                "Metadata fetch failed (%d in a row), keeping previous snapshot: %s",
                self.consecutive_failures,
                e,
            )
            return None

        if self.consecutive_failures:
            self.logger.info("Metadata feed recovered after %d failures", self.consecutive_failures)
        self.consecutive_failures = 0
        self.last_success_at = time.time()

        with self._snapshot_lock:
            changed = self._snapshot is None or not snapshot.current.same_track(self._snapshot.current)
            self._snapshot = snapshot
        if changed:
            self.logger.info("Now playing: %s - %s", snapshot.current.artist, snapshot.current.title)

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error("Error in snapshot listener: %s", e, exc_info=True)

        self._archive_async(snapshot)
        return snapshot

    def _archive_async(self, snapshot: NowPlayingSnapshot) -> Optional[threading.Thread]:
        """Start the archival write on a detached thread. Failures are only logged."""
        if self.archiver is None:
            return None

        def archive():
            try:
                self.archiver(snapshot)
            except Exception as e:
                self.logger.warning("Archival write failed: %s", e)

        thread = threading.Thread(target=archive, daemon=True, name="MetadataArchive")
        thread.start()
        return thread

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """Start the background poll thread. Polls immediately, then every interval."""
        if self._polling:
            return

        self._polling = True
        self._stop_event.clear()

        def poll_loop():
            while self._polling:
                try:
                    self.poll_once()
                except Exception as e:
                    self.logger.error("Error in metadata poller: %s", e, exc_info=True)
                # Sleep before next poll (wakes immediately if stop_event is set)
                self._stop_event.wait(self.interval_seconds)

        self._poll_thread = threading.Thread(target=poll_loop, daemon=True, name="MetadataPoller")
        self._poll_thread.start()
        self.logger.info("Metadata poller started (every %ss)", self.interval_seconds)

    def stop(self, timeout: float = 2.0):
        """Stop the poll thread and wait for it to exit."""
        if not self._polling:
            return

        self.logger.info("Stopping metadata poller...")
        self._polling = False
        self._stop_event.set()

        if self._poll_thread and self._poll_thread.is_alive():
            self._poll_thread.join(timeout=timeout)
            if self._poll_thread.is_alive():
                self.logger.warning("Metadata poller thread did not stop within timeout")
        self._poll_thread = None

        self.logger.info("Metadata poller stopped")
