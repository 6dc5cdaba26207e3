"""
Tests for feed parsing and the metadata client.
"""

import httpx
import pytest

from radiocalico.errors import UpstreamFetchFailure
from radiocalico.metadata import MetadataClient, parse_feed, snapshot_to_dict
from radiocalico.models import AudioQuality, TrackRef


def test_parse_full_feed(make_feed):
    data = make_feed(
        current=("Artist A", "Title X"),
        previous=[("B", "Y"), ("C", "Z")],
        album="Album",
        date="1999-04-01",
        bit_depth=24,
        sample_rate=48000,
    )
    snapshot = parse_feed(data)

    assert snapshot.current == TrackRef("Artist A", "Title X", album="Album", release_date="1999-04-01")
    assert [t.key for t in snapshot.previous] == [("B", "Y"), ("C", "Z")]
    assert snapshot.audio_quality == AudioQuality(24, 48000)


def test_parse_keeps_at_most_five_previous(make_feed):
    data = make_feed(previous=[("P%d" % i, "T%d" % i) for i in range(1, 8)])
    snapshot = parse_feed(data)

    assert len(snapshot.previous) == 5
    assert snapshot.previous[-1].key == ("P5", "T5")


def test_parse_missing_pairs_shorten_window(make_feed):
    data = make_feed(previous=[("B", "Y"), ("C", "Z"), ("D", "W")])
    del data["prev_title_2"]
    snapshot = parse_feed(data)

    assert [t.key for t in snapshot.previous] == [("B", "Y"), ("D", "W")]


def test_parse_does_not_normalize(make_feed):
    snapshot = parse_feed(make_feed(current=(" Artist ", "TITLE")))
    assert snapshot.current.key == (" Artist ", "TITLE")


def test_parse_tolerates_bad_quality_values(make_feed):
    data = make_feed()
    data["bit_depth"] = "n/a"
    del data["sample_rate"]
    assert parse_feed(data).audio_quality == AudioQuality(0, 0)


@pytest.mark.parametrize("payload", [{}, {"artist": "A"}, {"title": "X"}, ["not", "a", "dict"]])
def test_parse_rejects_missing_current(payload):
    with pytest.raises(UpstreamFetchFailure):
        parse_feed(payload)


def test_snapshot_to_dict(make_feed):
    data = snapshot_to_dict(parse_feed(make_feed(previous=[("B", "Y")])))
    assert data["current"]["artist"] == "Artist A"
    assert data["previous"] == [{"artist": "B", "title": "Y", "album": None, "releaseDate": None}]
    assert data["audioQuality"] == {"bitDepth": 16, "sampleRate": 44100}


class TestMetadataClient:
    def test_fetch(self, feed_server, feed_http_client, make_feed):
        feed_server.payload = make_feed(current=("A", "X"))
        client = MetadataClient(url="https://cdn.example/metadatav2.json", client=feed_http_client)

        assert client.fetch().current.key == ("A", "X")
        assert feed_server.requests == 1

    def test_non_success_status(self, feed_server, feed_http_client):
        feed_server.status_code = 503
        client = MetadataClient(url="https://cdn.example/metadatav2.json", client=feed_http_client)

        with pytest.raises(UpstreamFetchFailure):
            client.fetch()

    def test_network_error(self, feed_server, feed_http_client):
        feed_server.fail_with = httpx.ConnectError("connection refused")
        client = MetadataClient(url="https://cdn.example/metadatav2.json", client=feed_http_client)

        with pytest.raises(UpstreamFetchFailure):
            client.fetch()

    def test_invalid_json(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        with httpx.Client(transport=transport) as http:
            client = MetadataClient(url="https://cdn.example/metadatav2.json", client=http)
            with pytest.raises(UpstreamFetchFailure):
                client.fetch()

    def test_close_leaves_injected_client_open(self, feed_http_client):
        client = MetadataClient(client=feed_http_client)
        client.close()
        assert not feed_http_client.is_closed
