"""
Tests for view building and HTML rendering.
"""

from radiocalico.models import AudioQuality, RatingAggregate, SelectionState, TrackRef
from radiocalico.presentation import (
    STREAM_QUALITY,
    build_view,
    format_source_quality,
    get_environment,
    release_year,
    render_now_playing,
)


def state(*tracks, index=0):
    return SelectionState(available_songs=list(tracks), selected_index=index, manual_override=index != 0)


def test_format_source_quality():
    assert format_source_quality(AudioQuality(16, 44100)) == "16-bit 44.1kHz"
    assert format_source_quality(AudioQuality(24, 48000)) == "24-bit 48kHz"
    assert format_source_quality(AudioQuality(0, 0)) == "Unknown"
    assert format_source_quality(None) == "Unknown"


def test_release_year():
    assert release_year(TrackRef("A", "X", release_date="1999-04-01")) == "1999"
    assert release_year(TrackRef("A", "X")) is None


def test_empty_state_has_no_view():
    assert build_view(state()) is None


def test_view_for_live_track():
    track = TrackRef("A", "X", album="Album", release_date="2001")
    view = build_view(
        state(track, TrackRef("B", "Y")),
        aggregate=RatingAggregate("A", "X", up=3, down=1),
        audio_quality=AudioQuality(16, 44100),
    )

    assert view.is_live is True
    assert (view.artist, view.title, view.album, view.year) == ("A", "X", "Album", "2001")
    assert view.source_quality == "16-bit 44.1kHz"
    assert view.stream_quality == STREAM_QUALITY
    assert [(b.vote, b.count, b.active, b.tooltip) for b in view.buttons] == [
        ("up", 3, False, "Thumbs up"),
        ("down", 1, False, "Thumbs down"),
    ]
    assert [entry.selected for entry in view.history] == [True, False]


def test_view_for_history_track_with_local_vote():
    view = build_view(state(TrackRef("A", "X"), TrackRef("B", "Y"), index=1), local_vote="down")

    assert view.is_live is False
    assert view.title == "Y"
    up, down = view.buttons
    assert (up.active, up.tooltip, up.count) == (False, "Thumbs up", 0)
    assert (down.active, down.tooltip) == (True, "Click to cancel")


def test_render_escapes_feed_text():
    track = TrackRef("<script>alert(1)</script>", "Tom & Jerry", album='"Quoted"')
    html = render_now_playing(build_view(state(track)))

    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "Tom &amp; Jerry" in html
    assert "&#34;Quoted&#34;" in html


def test_render_marks_active_button():
    html = render_now_playing(build_view(state(TrackRef("A", "X")), local_vote="up"))

    assert "rating-up active" in html
    assert 'title="Click to cancel"' in html
    assert 'title="Thumbs down"' in html
    assert "Live" in html


def test_render_history_badge():
    html = render_now_playing(build_view(state(TrackRef("A", "X"), TrackRef("B", "Y"), index=1)))
    assert "Previously played" in html
    assert 'class="recent-track selected" data-index="1"' in html


def test_render_without_view():
    assert "Waiting for now playing information" in render_now_playing(None)


def test_environment_is_shared_and_autoescaping():
    environment = get_environment()
    assert get_environment() is environment
    assert "&lt;i&gt;" in environment.get_template("now_playing.html").render(
        view=build_view(state(TrackRef("<i>", "X")))
    )
