"""
Error types for radiocalico.

Every error carries a short machine-readable code and the HTTP status the
web layer answers with. None of these are fatal to the process.
"""


class RadioCalicoError(Exception):
    """Base class for all radiocalico errors."""

    error_code = "Error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.error_code)
        self.message = message or self.error_code

    def to_dict(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class UpstreamFetchFailure(RadioCalicoError):
    """The metadata feed or the server API was unreachable or answered non-2xx."""

    error_code = "UpstreamFetchFailure"
    status_code = 500


class AlreadyRated(RadioCalicoError):
    """The listener already holds the same vote for this track."""

    error_code = "AlreadyRated"
    status_code = 400


class RatingNotFound(RadioCalicoError):
    """No rating exists for the (artist, title, listener) key."""

    error_code = "NotFound"
    status_code = 404


class NotFound(RadioCalicoError):
    """A catalog entity does not exist."""

    error_code = "NotFound"
    status_code = 404


class ValidationFailure(RadioCalicoError):
    """Missing or malformed input, rejected before reaching the store."""

    error_code = "ValidationFailure"
    status_code = 400


class PlaybackFailure(RadioCalicoError):
    """The media element refused to play."""

    error_code = "PlaybackFailure"
    status_code = 500
