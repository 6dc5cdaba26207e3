"""
Now-playing feed client for radiocalico.

Fetches the CDN metadata JSON and turns it into a NowPlayingSnapshot.
The feed is trusted but may be partial: missing previous-track pairs
simply shorten the history window.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import UpstreamFetchFailure
from .models import MAX_PREVIOUS_TRACKS, AudioQuality, NowPlayingSnapshot, TrackRef

logger = logging.getLogger(__name__)

DEFAULT_METADATA_URL = "https://d3d4yli4hf5bmh.cloudfront.net/metadatav2.json"


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_feed(data: Dict[str, Any]) -> NowPlayingSnapshot:
    """
    Parse a metadatav2.json payload.

    Args:
        data: Decoded JSON object

    Returns:
        NowPlayingSnapshot with up to MAX_PREVIOUS_TRACKS previous tracks

    Raises:
        UpstreamFetchFailure: If the payload has no current artist/title
    """
    if not isinstance(data, dict):
        raise UpstreamFetchFailure("Metadata feed did not return a JSON object")

    artist = _text(data.get("artist"))
    title = _text(data.get("title"))
    if artist is None or title is None:
        raise UpstreamFetchFailure("Metadata feed is missing the current artist or title")

    current = TrackRef(
        artist=artist,
        title=title,
        album=_text(data.get("album")),
        release_date=_text(data.get("date")),
    )

    previous = []
    for i in range(1, MAX_PREVIOUS_TRACKS + 1):
        prev_artist = _text(data.get("prev_artist_%d" % i))
        prev_title = _text(data.get("prev_title_%d" % i))
        if prev_artist is None or prev_title is None:
            continue
        previous.append(TrackRef(artist=prev_artist, title=prev_title))

    return NowPlayingSnapshot(
        current=current,
        previous=tuple(previous),
        audio_quality=AudioQuality(
            bit_depth=_int(data.get("bit_depth")),
            sample_rate=_int(data.get("sample_rate")),
        ),
    )


def snapshot_to_dict(snapshot: NowPlayingSnapshot) -> Dict[str, Any]:
    """JSON form of a snapshot for the API."""

    def track(ref: TrackRef) -> Dict[str, Any]:
        return {
            "artist": ref.artist,
            "title": ref.title,
            "album": ref.album,
            "releaseDate": ref.release_date,
        }

    return {
        "current": track(snapshot.current),
        "previous": [track(ref) for ref in snapshot.previous],
        "audioQuality": {
            "bitDepth": snapshot.audio_quality.bit_depth,
            "sampleRate": snapshot.audio_quality.sample_rate,
        },
    }


class MetadataClient:
    """
    HTTP client for the now-playing feed.

    Stateless apart from the underlying httpx client; every failure is
    reported as UpstreamFetchFailure.
    """

    def __init__(
        self,
        url: str = DEFAULT_METADATA_URL,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize MetadataClient.

        Args:
            url: Feed URL
            timeout: Request timeout in seconds
            client: httpx.Client to use (a private one is created if None)
        """
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

        # Feed is polled every few seconds; keep httpx request logging quiet
        logging.getLogger("httpx").setLevel(logging.WARNING)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def fetch(self) -> NowPlayingSnapshot:
        """
        Fetch and parse the feed.

        Raises:
            UpstreamFetchFailure: Network error, non-2xx status or malformed payload
        """
        try:
            response = self._get_client().get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchFailure(
                "Metadata feed returned HTTP %s" % e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchFailure("Metadata feed unreachable: %s" % e) from e
        except ValueError as e:
            raise UpstreamFetchFailure("Metadata feed returned invalid JSON") from e

        snapshot = parse_feed(data)
        logger.debug(
            "Fetched now playing: %s - %s (%d previous)",
            snapshot.current.artist,
            snapshot.current.title,
            len(snapshot.previous),
        )
        return snapshot

    def close(self):
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
