"""
Presentation layer for radiocalico.

Turns selection state, vote counts and the listener's own vote into a
NowPlayingView, and renders it to HTML. Feed and catalog text is untrusted,
so rendering always goes through an autoescaping Jinja2 environment.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import VOTE_DOWN, VOTE_UP, AudioQuality, RatingAggregate, SelectionState, TrackRef

TEMPLATES_DIR = Path(__file__).parent / "web" / "templates"

STREAM_QUALITY = "48kHz FLAC / HLS Lossless"
ACTIVE_TOOLTIP = "Click to cancel"
INACTIVE_TOOLTIPS = {VOTE_UP: "Thumbs up", VOTE_DOWN: "Thumbs down"}


@lru_cache(maxsize=None)
def get_environment() -> Environment:
    """Autoescaping environment over the bundled templates, built once."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )


@dataclass(frozen=True)
class RatingButton:
    vote: str
    count: int
    active: bool
    tooltip: str


@dataclass(frozen=True)
class HistoryEntry:
    index: int
    artist: str
    title: str
    selected: bool


@dataclass(frozen=True)
class NowPlayingView:
    """Everything the now-playing panel shows."""

    artist: str
    title: str
    album: Optional[str]
    year: Optional[str]
    source_quality: str
    stream_quality: str
    is_live: bool
    buttons: List[RatingButton] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)


def format_source_quality(quality: Optional[AudioQuality]) -> str:
    """E.g. AudioQuality(16, 44100) -> '16-bit 44.1kHz'."""
    if quality is None or not quality.bit_depth or not quality.sample_rate:
        return "Unknown"
    return "%d-bit %gkHz" % (quality.bit_depth, quality.sample_rate / 1000.0)


def release_year(track: TrackRef) -> Optional[str]:
    if not track.release_date:
        return None
    return track.release_date[:4]


def build_view(
    state: SelectionState,
    aggregate: Optional[RatingAggregate] = None,
    local_vote: Optional[str] = None,
    audio_quality: Optional[AudioQuality] = None,
) -> Optional[NowPlayingView]:
    """
    Build the view for the selected track.

    Args:
        state: Current selection
        aggregate: Vote counts for the selected track (zeros if None)
        local_vote: The listener's own vote on the selected track
        audio_quality: Source quality from the latest snapshot

    Returns:
        The view, or None when nothing is available yet
    """
    track = state.selected
    if track is None:
        return None

    up = aggregate.up if aggregate else 0
    down = aggregate.down if aggregate else 0
    buttons = [
        RatingButton(
            vote=vote,
            count=count,
            active=local_vote == vote,
            tooltip=ACTIVE_TOOLTIP if local_vote == vote else INACTIVE_TOOLTIPS[vote],
        )
        for vote, count in ((VOTE_UP, up), (VOTE_DOWN, down))
    ]

    history = [
        HistoryEntry(index=i, artist=song.artist, title=song.title, selected=i == state.selected_index)
        for i, song in enumerate(state.available_songs)
    ]

    return NowPlayingView(
        artist=track.artist,
        title=track.title,
        album=track.album,
        year=release_year(track),
        source_quality=format_source_quality(audio_quality),
        stream_quality=STREAM_QUALITY,
        is_live=state.selected_index == 0,
        buttons=buttons,
        history=history,
    )


def render_now_playing(view: Optional[NowPlayingView]) -> str:
    """Render the now-playing panel to escaped HTML."""
    template = get_environment().get_template("now_playing.html")
    return template.render(view=view)
