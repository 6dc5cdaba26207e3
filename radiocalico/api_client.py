"""
HTTP client for the radiocalico server API.

Used by listener sessions for rating calls and archival writes. Server
error responses are turned back into the matching radiocalico errors.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from .errors import AlreadyRated, RatingNotFound, UpstreamFetchFailure, ValidationFailure
from .models import RatingAggregate

logger = logging.getLogger(__name__)


class ApiClient:
    """Client for /api/ratings and /api/metadata."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize ApiClient.

        Args:
            base_url: Server base URL
            timeout: Request timeout in seconds
            client: httpx.Client to use; its own base_url is used when given
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamFetchFailure("Server unreachable: %s" % e) from e

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        message = body.get("message", "") if isinstance(body, dict) else ""
        logger.debug("%s %s -> %s %s", method, path, response.status_code, error)

        if error == "AlreadyRated":
            raise AlreadyRated(message)
        if response.status_code == 404 and path.startswith("/api/ratings"):
            raise RatingNotFound(message)
        if response.status_code == 400:
            raise ValidationFailure(message)
        raise UpstreamFetchFailure("%s %s returned HTTP %s" % (method, path, response.status_code))

    def get_ratings(
        self, artist: str, title: str, client_id: Optional[str] = None
    ) -> Tuple[RatingAggregate, Optional[str]]:
        """
        Fetch vote counts for a track.

        Returns:
            (aggregate, the listener's vote if client_id was given)
        """
        params = {"clientId": client_id} if client_id else None
        path = "/api/ratings/%s/%s" % (quote(artist, safe=""), quote(title, safe=""))
        data = self._request("GET", path, params=params).json()
        aggregate = RatingAggregate(
            song_artist=data.get("songArtist", artist),
            song_title=data.get("songTitle", title),
            up=data.get("thumbsUp", 0),
            down=data.get("thumbsDown", 0),
        )
        return aggregate, data.get("userRating")

    def submit_rating(
        self, artist: str, title: str, client_id: str, rating_type: str
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Submit or switch a vote.

        Returns:
            (rating JSON, created) where created is False for a switch
        """
        response = self._request(
            "POST",
            "/api/ratings",
            json={
                "songArtist": artist,
                "songTitle": title,
                "ratingType": rating_type,
                "clientId": client_id,
            },
        )
        return response.json(), response.status_code == 201

    def cancel_rating(self, artist: str, title: str, client_id: str) -> None:
        self._request(
            "DELETE",
            "/api/ratings",
            json={"songArtist": artist, "songTitle": title, "clientId": client_id},
        )

    def save_metadata(self) -> Dict[str, Any]:
        """Ask the server to fetch and archive the current feed."""
        return self._request("POST", "/api/metadata/save").json()

    def close(self):
        if self._owns_client:
            self._client.close()
