"""
FastAPI web server for radiocalico.

Provides the REST API for ratings, metadata archival and the catalog, and
renders the now-playing page.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from ..archive import ArchiveManager
from ..catalog import CatalogManager
from ..config_manager import ConfigManager
from ..errors import NotFound, RadioCalicoError, ValidationFailure
from ..metadata import MetadataClient, snapshot_to_dict
from ..models import Rating, SelectionState
from ..poller import MetadataPoller
from ..presentation import TEMPLATES_DIR, build_view
from ..ratings import RatingManager

logger = logging.getLogger(__name__)


# Request models
class RatingRequest(BaseModel):
    songArtist: Optional[str] = None
    songTitle: Optional[str] = None
    ratingType: Optional[str] = None
    clientId: Optional[str] = None


class CancelRatingRequest(BaseModel):
    songArtist: Optional[str] = None
    songTitle: Optional[str] = None
    clientId: Optional[str] = None


class HostRequest(BaseModel):
    name: str
    bio: Optional[str] = None
    email: Optional[str] = None


class ShowRequest(BaseModel):
    title: str
    hostId: int
    description: Optional[str] = None
    airTime: Optional[str] = None


class PlaylistRequest(BaseModel):
    name: str
    date: date
    showId: int


class SongRequest(BaseModel):
    title: str
    artist: str
    playlistId: int
    album: Optional[str] = None
    duration: Optional[int] = None


class ConfigUpdateRequest(BaseModel):
    key: str
    value: str


def rating_to_dict(rating: Rating) -> dict:
    return {
        "id": rating.id,
        "songArtist": rating.song_artist,
        "songTitle": rating.song_title,
        "ratingType": rating.rating_type,
        "clientId": rating.client_id,
        "createdAt": rating.created_at.isoformat() if rating.created_at else None,
        "updatedAt": rating.updated_at.isoformat() if rating.updated_at else None,
    }


# Dependency to get components
def get_catalog_manager(request: Request) -> CatalogManager:
    """Get CatalogManager from app state."""
    return request.app.state.catalog_manager


def get_rating_manager(request: Request) -> RatingManager:
    """Get RatingManager from app state."""
    return request.app.state.rating_manager


def get_config_manager(request: Request) -> ConfigManager:
    """Get ConfigManager from app state."""
    return request.app.state.config_manager


def get_metadata_client(request: Request) -> MetadataClient:
    """Get MetadataClient from app state."""
    return request.app.state.metadata_client


def get_archive_manager(request: Request) -> ArchiveManager:
    """Get ArchiveManager from app state."""
    return request.app.state.archive_manager


def get_poller(request: Request) -> Optional[MetadataPoller]:
    """Get the server-side MetadataPoller from app state (may be None)."""
    return request.app.state.poller


def create_app(
    catalog_manager: CatalogManager,
    rating_manager: RatingManager,
    config_manager: ConfigManager,
    metadata_client: MetadataClient,
    archive_manager: ArchiveManager,
    poller: Optional[MetadataPoller] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        catalog_manager: CatalogManager instance
        rating_manager: RatingManager instance
        config_manager: ConfigManager instance
        metadata_client: MetadataClient for server-side feed fetches
        archive_manager: ArchiveManager for playlist archival
        poller: Server-side MetadataPoller (optional, backs now-playing endpoints)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(title="radiocalico", version="1.0.0")

    # Store components in app state
    app.state.catalog_manager = catalog_manager
    app.state.rating_manager = rating_manager
    app.state.config_manager = config_manager
    app.state.metadata_client = metadata_client
    app.state.archive_manager = archive_manager
    app.state.poller = poller

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @app.exception_handler(RadioCalicoError)
    async def handle_radiocalico_error(request: Request, exc: RadioCalicoError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()})
        error = ValidationFailure("Invalid or missing fields: %s" % ", ".join(fields))
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # Health endpoints
    @app.get("/health")
    def health():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/test-db")
    def test_db(catalog: CatalogManager = Depends(get_catalog_manager)):
        """Check the database answers."""
        try:
            catalog.database.ping()
        except Exception as e:
            logger.error("Database connection failed: %s", e, exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Database connection failed", "message": str(e)},
            )
        return {"status": "Database connected successfully", "database": "SQLite"}

    # Rating endpoints
    @app.get("/api/ratings/{artist}/{title}")
    def get_ratings(
        artist: str,
        title: str,
        clientId: Optional[str] = None,
        ratings: RatingManager = Depends(get_rating_manager),
    ):
        """Get vote counts for a track."""
        aggregate = ratings.aggregate(artist, title)
        result = {
            "songArtist": aggregate.song_artist,
            "songTitle": aggregate.song_title,
            "thumbsUp": aggregate.up,
            "thumbsDown": aggregate.down,
            "total": aggregate.total,
        }
        if clientId:
            result["userRating"] = ratings.get_vote(artist, title, clientId)
        return result

    @app.post("/api/ratings", status_code=201)
    def submit_rating(
        request_data: RatingRequest,
        response: Response,
        ratings: RatingManager = Depends(get_rating_manager),
    ):
        """Submit a new vote (201) or switch an existing one (200)."""
        rating, created = ratings.submit(
            request_data.songArtist,
            request_data.songTitle,
            request_data.clientId,
            request_data.ratingType,
        )
        if not created:
            response.status_code = 200
        return rating_to_dict(rating)

    @app.delete("/api/ratings")
    def cancel_rating(
        request_data: CancelRatingRequest,
        ratings: RatingManager = Depends(get_rating_manager),
    ):
        """Cancel a listener's vote."""
        ratings.cancel(request_data.songArtist, request_data.songTitle, request_data.clientId)
        return {"status": "cancelled"}

    # Metadata endpoints
    @app.post("/api/metadata/save")
    def save_metadata(
        metadata: MetadataClient = Depends(get_metadata_client),
        archive: ArchiveManager = Depends(get_archive_manager),
    ):
        """Fetch the feed server-side and archive it into today's playlist."""
        snapshot = metadata.fetch()
        return archive.archive_snapshot(snapshot)

    @app.get("/api/metadata/now-playing")
    def now_playing(poller: Optional[MetadataPoller] = Depends(get_poller)):
        """Latest snapshot seen by the server-side poller."""
        snapshot = poller.snapshot if poller else None
        if snapshot is None:
            raise NotFound("No now-playing data yet")
        return snapshot_to_dict(snapshot)

    # Show endpoints
    @app.get("/api/shows")
    def list_shows(catalog: CatalogManager = Depends(get_catalog_manager)):
        return [catalog.describe_show(show) for show in catalog.list_shows()]

    @app.get("/api/shows/{show_id}")
    def get_show(show_id: int, catalog: CatalogManager = Depends(get_catalog_manager)):
        return catalog.describe_show(catalog.get_show(show_id))

    @app.post("/api/shows", status_code=201)
    def create_show(request_data: ShowRequest, catalog: CatalogManager = Depends(get_catalog_manager)):
        show = catalog.create_show(
            request_data.title,
            request_data.hostId,
            description=request_data.description,
            air_time=request_data.airTime,
        )
        return catalog.describe_show(show)

    # Host endpoints
    @app.get("/api/hosts")
    def list_hosts(catalog: CatalogManager = Depends(get_catalog_manager)):
        return [catalog.describe_host(host) for host in catalog.list_hosts()]

    @app.get("/api/hosts/{host_id}")
    def get_host(host_id: int, catalog: CatalogManager = Depends(get_catalog_manager)):
        return catalog.describe_host(catalog.get_host(host_id))

    @app.post("/api/hosts", status_code=201)
    def create_host(request_data: HostRequest, catalog: CatalogManager = Depends(get_catalog_manager)):
        host = catalog.create_host(request_data.name, bio=request_data.bio, email=request_data.email)
        return catalog.describe_host(host)

    # Playlist endpoints
    @app.get("/api/playlists")
    def list_playlists(catalog: CatalogManager = Depends(get_catalog_manager)):
        return [catalog.describe_playlist(playlist) for playlist in catalog.list_playlists()]

    @app.get("/api/playlists/{playlist_id}")
    def get_playlist(playlist_id: int, catalog: CatalogManager = Depends(get_catalog_manager)):
        return catalog.describe_playlist(catalog.get_playlist(playlist_id))

    @app.post("/api/playlists", status_code=201)
    def create_playlist(
        request_data: PlaylistRequest, catalog: CatalogManager = Depends(get_catalog_manager)
    ):
        playlist = catalog.create_playlist(request_data.name, request_data.date, request_data.showId)
        return catalog.describe_playlist(playlist)

    # Song endpoints
    @app.get("/api/songs")
    def list_songs(catalog: CatalogManager = Depends(get_catalog_manager)):
        return [catalog.describe_song(song) for song in catalog.list_songs()]

    @app.get("/api/songs/{song_id}")
    def get_song(song_id: int, catalog: CatalogManager = Depends(get_catalog_manager)):
        return catalog.describe_song(catalog.get_song(song_id))

    @app.post("/api/songs", status_code=201)
    def create_song(request_data: SongRequest, catalog: CatalogManager = Depends(get_catalog_manager)):
        song = catalog.create_song(
            request_data.title,
            request_data.artist,
            request_data.playlistId,
            album=request_data.album,
            duration=request_data.duration,
        )
        return catalog.describe_song(song)

    # Configuration endpoints
    @app.get("/api/config")
    def get_config(config: ConfigManager = Depends(get_config_manager)):
        """Get all configuration with schema metadata for the UI."""
        return config.get_full_config()

    @app.patch("/api/config")
    def update_config(
        request_data: ConfigUpdateRequest,
        config: ConfigManager = Depends(get_config_manager),
    ):
        """Update an editable configuration key."""
        if not config.is_editable(request_data.key):
            raise ValidationFailure("Unknown configuration key: %s" % request_data.key)
        config.set(request_data.key, request_data.value)
        return {"status": "updated", "key": request_data.key, "value": request_data.value}

    # Web UI
    @app.get("/", response_class=HTMLResponse)
    def index(
        request: Request,
        clientId: Optional[str] = None,
        poller: Optional[MetadataPoller] = Depends(get_poller),
        ratings: RatingManager = Depends(get_rating_manager),
        config: ConfigManager = Depends(get_config_manager),
    ):
        """Serve the now-playing page, rendered from the server's latest snapshot."""
        snapshot = poller.snapshot if poller else None
        view = None
        if snapshot is not None:
            state = SelectionState(available_songs=snapshot.tracks())
            current = snapshot.current
            view = build_view(
                state,
                aggregate=ratings.aggregate(current.artist, current.title),
                local_vote=ratings.get_vote(current.artist, current.title, clientId) if clientId else None,
                audio_quality=snapshot.audio_quality,
            )
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "view": view,
                "station_name": config.get("station_name"),
                "stream_url": config.get("stream_url"),
            },
        )

    return app
