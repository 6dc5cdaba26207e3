"""
Listener-local state for radiocalico.

Holds the listener identity token and the listener's own votes, persisted
to a JSON file the way a browser keeps them in local storage. The vote
record only drives button highlighting and the submit/cancel decision; it
is never the source of truth for counts.
"""

import json
import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from .errors import ValidationFailure
from .models import VOTES


class RatingActionKind(Enum):
    SUBMIT = "submit"
    CANCEL = "cancel"


@dataclass(frozen=True)
class RatingAction:
    """What a rating-button click should do."""

    kind: RatingActionKind
    vote: Optional[str] = None

    @classmethod
    def submit(cls, vote: str) -> "RatingAction":
        return cls(RatingActionKind.SUBMIT, vote)

    @classmethod
    def cancel(cls) -> "RatingAction":
        return cls(RatingActionKind.CANCEL)


def decide_rating_action(stored_vote: Optional[str], clicked_vote: str) -> RatingAction:
    """
    Decide what a rating-button click does.

    Same button as the stored vote cancels it; the opposite button switches;
    with no stored vote the click submits a new one.
    """
    if clicked_vote not in VOTES:
        raise ValidationFailure("Unknown vote %r" % clicked_vote)
    if stored_vote == clicked_vote:
        return RatingAction.cancel()
    return RatingAction.submit(clicked_vote)


def vote_key(artist: str, title: str) -> str:
    return "%s::%s" % (artist, title)


class ListenerStore:
    """Persisted listener identity and vote record."""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize ListenerStore.

        Args:
            path: JSON file to persist to. If None, uses ~/.radiocalico/listener.json
        """
        self.logger = logging.getLogger(__name__)
        if path is None:
            data_dir = Path.home() / ".radiocalico"
            data_dir.mkdir(exist_ok=True)
            path = str(data_dir / "listener.json")
        self.path = Path(path)
        self._lock = threading.Lock()

        data = self._load()
        client_id = data.get("client_id")
        if not isinstance(client_id, str):
            client_id = None
        self.client_id: str = client_id or uuid.uuid4().hex
        votes = data.get("votes")
        if not isinstance(votes, dict):
            votes = {}
        self._votes: Dict[str, str] = {key: vote for key, vote in votes.items() if vote in VOTES}
        if not client_id:
            self.logger.info("Generated new listener identity")
            self._save()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            self.logger.warning("Failed to read listener state from %s, starting fresh", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self):
        payload = {"client_id": self.client_id, "votes": self._votes}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def get_vote(self, artist: str, title: str) -> Optional[str]:
        with self._lock:
            return self._votes.get(vote_key(artist, title))

    def set_vote(self, artist: str, title: str, vote: str):
        if vote not in VOTES:
            raise ValidationFailure("Unknown vote %r" % vote)
        with self._lock:
            self._votes[vote_key(artist, title)] = vote
            self._save()

    def clear_vote(self, artist: str, title: str):
        with self._lock:
            if self._votes.pop(vote_key(artist, title), None) is not None:
                self._save()

    @property
    def votes(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._votes)
