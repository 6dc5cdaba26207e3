"""
Pytest configuration for radiocalico tests.

Provides:
- make_feed: builds metadatav2.json payloads
- feed_server / feed_http_client: httpx.MockTransport serving a mutable feed payload
"""

import httpx
import pytest


def build_feed(current=("Artist A", "Title X"), previous=(), album=None, date=None, bit_depth=16, sample_rate=44100):
    """Build a feed payload. previous is a sequence of (artist, title)."""
    data = {
        "artist": current[0],
        "title": current[1],
        "bit_depth": bit_depth,
        "sample_rate": sample_rate,
    }
    if album is not None:
        data["album"] = album
    if date is not None:
        data["date"] = date
    for i, (artist, title) in enumerate(previous, start=1):
        data["prev_artist_%d" % i] = artist
        data["prev_title_%d" % i] = title
    return data


@pytest.fixture
def make_feed():
    """Factory for feed payloads."""
    return build_feed


class FeedServer:
    """Mutable stand-in for the CDN metadata endpoint."""

    def __init__(self):
        self.payload = build_feed()
        self.status_code = 200
        self.fail_with = None
        self.requests = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def feed_server():
    return FeedServer()


@pytest.fixture
def feed_http_client(feed_server):
    """httpx.Client whose requests are answered by feed_server."""
    client = httpx.Client(transport=httpx.MockTransport(feed_server.handler))
    yield client
    client.close()
