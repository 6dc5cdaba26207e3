"""
API endpoint tests for radiocalico.

Covers:
- Rating submit/switch/cancel flows and their error answers
- Metadata archival and now-playing
- Catalog and configuration endpoints
- The rendered now-playing page
"""

import os
import tempfile
from datetime import date

import pytest
from fastapi.testclient import TestClient

from radiocalico.archive import ArchiveManager
from radiocalico.catalog import CatalogManager
from radiocalico.config_manager import ConfigManager
from radiocalico.database import Database
from radiocalico.metadata import MetadataClient
from radiocalico.poller import MetadataPoller
from radiocalico.ratings import RatingManager
from radiocalico.web.server import create_app

FEED_URL = "https://cdn.example/metadatav2.json"

# Test listener IDs
ALICE_ID = "alice-client-1234"
BOB_ID = "bob-client-5678"


@pytest.fixture
def temp_db():
    """Create a temporary database."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    db = Database(db_path=path)
    yield db
    db.close()
    os.unlink(path)


@pytest.fixture
def catalog_manager(temp_db):
    return CatalogManager(temp_db)


@pytest.fixture
def metadata_client(feed_http_client):
    return MetadataClient(url=FEED_URL, client=feed_http_client)


@pytest.fixture
def poller(metadata_client):
    return MetadataPoller(metadata_client)


def build_app(temp_db, catalog_manager, metadata_client, poller=None):
    return create_app(
        catalog_manager,
        RatingManager(temp_db),
        ConfigManager(temp_db),
        metadata_client,
        ArchiveManager(catalog_manager, show_title="Live Stream", host_name="Radio Calico"),
        poller=poller,
    )


@pytest.fixture
def client(temp_db, catalog_manager, metadata_client):
    """Test client without a server-side poller."""
    return TestClient(build_app(temp_db, catalog_manager, metadata_client))


@pytest.fixture
def polling_client(temp_db, catalog_manager, metadata_client, poller):
    """Test client backed by a poller (not started; tests call poll_once)."""
    return TestClient(build_app(temp_db, catalog_manager, metadata_client, poller=poller))


def rate(client, vote, client_id=ALICE_ID, artist="A", title="X"):
    return client.post(
        "/api/ratings",
        json={"songArtist": artist, "songTitle": title, "ratingType": vote, "clientId": client_id},
    )


def cancel(client, client_id=ALICE_ID, artist="A", title="X"):
    return client.request(
        "DELETE",
        "/api/ratings",
        json={"songArtist": artist, "songTitle": title, "clientId": client_id},
    )


# =============================================================================
# Health
# =============================================================================


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_database_check(client):
    response = client.get("/api/test-db")
    assert response.status_code == 200
    assert response.json()["database"] == "SQLite"


# =============================================================================
# Ratings
# =============================================================================


class TestRatings:
    def test_counts_start_at_zero(self, client):
        response = client.get("/api/ratings/A/X")
        assert response.status_code == 200
        data = response.json()
        assert (data["thumbsUp"], data["thumbsDown"], data["total"]) == (0, 0, 0)
        assert "userRating" not in data

    def test_submit_then_duplicate(self, client):
        response = rate(client, "up")
        assert response.status_code == 201
        assert response.json()["ratingType"] == "up"
        assert response.json()["clientId"] == ALICE_ID

        response = rate(client, "up")
        assert response.status_code == 400
        assert response.json()["error"] == "AlreadyRated"

        assert client.get("/api/ratings/A/X").json()["thumbsUp"] == 1

    def test_switch_vote(self, client):
        first = rate(client, "up").json()
        response = rate(client, "down")

        assert response.status_code == 200
        assert response.json()["id"] == first["id"]
        data = client.get("/api/ratings/A/X").json()
        assert (data["thumbsUp"], data["thumbsDown"], data["total"]) == (0, 1, 1)

    def test_user_rating(self, client):
        rate(client, "down", client_id=BOB_ID)

        assert client.get("/api/ratings/A/X", params={"clientId": BOB_ID}).json()["userRating"] == "down"
        assert client.get("/api/ratings/A/X", params={"clientId": ALICE_ID}).json()["userRating"] is None

    def test_cancel(self, client):
        rate(client, "up")
        rate(client, "up", client_id=BOB_ID)

        response = cancel(client)
        assert response.status_code == 200
        assert response.json() == {"status": "cancelled"}
        assert client.get("/api/ratings/A/X").json()["thumbsUp"] == 1

    def test_cancel_without_rating(self, client):
        response = cancel(client)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_missing_field(self, client):
        response = client.post(
            "/api/ratings", json={"songArtist": "A", "songTitle": "X", "ratingType": "up"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationFailure"
        assert "clientId" in response.json()["message"]
        assert client.get("/api/ratings/A/X").json()["total"] == 0

    def test_invalid_rating_type(self, client):
        response = rate(client, "sideways")
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationFailure"

    def test_cancel_missing_field(self, client):
        response = client.request("DELETE", "/api/ratings", json={"songArtist": "A", "songTitle": "X"})
        assert response.status_code == 400

    def test_special_characters_in_track(self, client):
        assert rate(client, "up", artist="Tom & Jerry", title="What? 100%").status_code == 201

        response = client.get("/api/ratings/Tom%20%26%20Jerry/What%3F%20100%25")
        assert response.json()["thumbsUp"] == 1
        assert response.json()["songArtist"] == "Tom & Jerry"


# =============================================================================
# Metadata
# =============================================================================


class TestMetadata:
    def test_save_archives_todays_playlist(self, client, feed_server, make_feed):
        feed_server.payload = make_feed(current=("A", "X"), previous=[("B", "Y")])

        response = client.post("/api/metadata/save")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Live Stream - %s" % date.today().isoformat()
        assert [(s["artist"], s["title"]) for s in data["songs"]] == [("A", "X"), ("B", "Y")]

        # Same feed again leaves the playlist as it was
        again = client.post("/api/metadata/save").json()
        assert again["id"] == data["id"]
        assert len(again["songs"]) == 2

    def test_save_with_feed_down(self, client, feed_server):
        feed_server.status_code = 503

        response = client.post("/api/metadata/save")
        assert response.status_code == 500
        assert response.json()["error"] == "UpstreamFetchFailure"
        assert client.get("/api/playlists").json() == []

    def test_now_playing_without_poller(self, client):
        response = client.get("/api/metadata/now-playing")
        assert response.status_code == 404

    def test_now_playing(self, polling_client, poller, feed_server, make_feed):
        feed_server.payload = make_feed(current=("A", "X"), previous=[("B", "Y")])
        poller.poll_once()

        data = polling_client.get("/api/metadata/now-playing").json()
        assert data["current"]["artist"] == "A"
        assert len(data["previous"]) == 1


# =============================================================================
# Catalog
# =============================================================================


class TestCatalog:
    def test_create_and_read_back(self, client):
        host = client.post("/api/hosts", json={"name": "DJ Luna", "email": "luna@example.com"})
        assert host.status_code == 201
        host_id = host.json()["id"]

        show = client.post(
            "/api/shows", json={"title": "Indie Horizons", "hostId": host_id, "airTime": "Weekdays 9 AM"}
        )
        assert show.status_code == 201
        show_id = show.json()["id"]

        playlist = client.post(
            "/api/playlists", json={"name": "Morning Mix", "date": "2025-11-21", "showId": show_id}
        )
        assert playlist.status_code == 201
        playlist_id = playlist.json()["id"]

        song = client.post(
            "/api/songs",
            json={"title": "Crystal Dreams", "artist": "The Morning Coast", "playlistId": playlist_id, "duration": 245},
        )
        assert song.status_code == 201

        data = client.get("/api/shows/%d" % show_id).json()
        assert data["host"]["name"] == "DJ Luna"
        assert data["airTime"] == "Weekdays 9 AM"
        assert data["playlists"][0]["songs"][0]["title"] == "Crystal Dreams"

        assert len(client.get("/api/hosts").json()) == 1
        assert client.get("/api/songs/%d" % song.json()["id"]).json()["playlist"]["id"] == playlist_id

    def test_missing_resources(self, client):
        for path in ("/api/shows/99", "/api/hosts/99", "/api/playlists/99", "/api/songs/99"):
            response = client.get(path)
            assert response.status_code == 404
            assert response.json()["error"] == "NotFound"

    def test_show_for_unknown_host(self, client):
        response = client.post("/api/shows", json={"title": "Orphan", "hostId": 42})
        assert response.status_code == 404

    def test_duplicate_show_title(self, client):
        host_id = client.post("/api/hosts", json={"name": "DJ Luna"}).json()["id"]
        assert client.post("/api/shows", json={"title": "Indie", "hostId": host_id}).status_code == 201

        response = client.post("/api/shows", json={"title": "Indie", "hostId": host_id})
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationFailure"

    def test_invalid_playlist_date(self, client):
        response = client.post("/api/playlists", json={"name": "P", "date": "not-a-date", "showId": 1})
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationFailure"


# =============================================================================
# Configuration
# =============================================================================


class TestConfig:
    def test_get_config(self, client):
        data = client.get("/api/config").json()
        assert data["values"]["poll_interval_seconds"] == "10"
        assert "metadata_url" in data["schema"]
        assert "archive" in data["groups"]

    def test_update_config(self, client):
        response = client.patch("/api/config", json={"key": "station_name", "value": "Calico FM"})
        assert response.status_code == 200
        assert client.get("/api/config").json()["values"]["station_name"] == "Calico FM"

    def test_update_unknown_key(self, client):
        response = client.patch("/api/config", json={"key": "secret", "value": "x"})
        assert response.status_code == 400


# =============================================================================
# Web UI
# =============================================================================


class TestIndexPage:
    def test_waiting_without_snapshot(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Waiting for now playing information" in response.text
        assert 'id="radio-stream"' in response.text

    def test_renders_current_track(self, polling_client, poller, feed_server, make_feed):
        feed_server.payload = make_feed(current=("<b>Loud</b>", "X"), previous=[("B", "Y")])
        poller.poll_once()
        rate(polling_client, "up", artist="<b>Loud</b>")

        response = polling_client.get("/", params={"clientId": ALICE_ID})
        assert response.status_code == 200
        assert "&lt;b&gt;Loud&lt;/b&gt;" in response.text
        assert "<b>Loud</b>" not in response.text
        assert "rating-up active" in response.text
        assert "16-bit 44.1kHz" in response.text
