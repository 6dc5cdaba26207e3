"""
Tests for the rating-click decision and the persisted listener store.
"""

import json

import pytest

from radiocalico.errors import ValidationFailure
from radiocalico.listener import ListenerStore, RatingAction, RatingActionKind, decide_rating_action


@pytest.mark.parametrize(
    "stored,clicked,expected",
    [
        (None, "up", RatingAction.submit("up")),
        (None, "down", RatingAction.submit("down")),
        ("up", "up", RatingAction.cancel()),
        ("down", "down", RatingAction.cancel()),
        ("up", "down", RatingAction.submit("down")),
        ("down", "up", RatingAction.submit("up")),
    ],
)
def test_decide_rating_action(stored, clicked, expected):
    assert decide_rating_action(stored, clicked) == expected


def test_decide_rejects_unknown_vote():
    with pytest.raises(ValidationFailure):
        decide_rating_action(None, "meh")


def test_cancel_carries_no_vote():
    action = decide_rating_action("up", "up")
    assert action.kind == RatingActionKind.CANCEL
    assert action.vote is None


class TestListenerStore:
    def test_identity_is_generated_and_persisted(self, tmp_path):
        path = tmp_path / "listener.json"
        store = ListenerStore(str(path))

        assert len(store.client_id) == 32
        assert json.loads(path.read_text())["client_id"] == store.client_id
        assert ListenerStore(str(path)).client_id == store.client_id

    def test_votes_survive_reload(self, tmp_path):
        path = str(tmp_path / "listener.json")
        store = ListenerStore(path)
        store.set_vote("A", "X", "up")
        store.set_vote("B", "Y", "down")
        store.clear_vote("B", "Y")

        reloaded = ListenerStore(path)
        assert reloaded.get_vote("A", "X") == "up"
        assert reloaded.get_vote("B", "Y") is None
        assert reloaded.votes == {"A::X": "up"}

    def test_votes_are_per_track(self, tmp_path):
        store = ListenerStore(str(tmp_path / "listener.json"))
        store.set_vote("A", "X", "up")
        assert store.get_vote("A", "Y") is None
        assert store.get_vote("a", "x") is None

    def test_set_vote_rejects_unknown(self, tmp_path):
        store = ListenerStore(str(tmp_path / "listener.json"))
        with pytest.raises(ValidationFailure):
            store.set_vote("A", "X", "sideways")

    def test_corrupt_file_starts_fresh(self, tmp_path):
        path = tmp_path / "listener.json"
        path.write_text("{not json")

        store = ListenerStore(str(path))
        assert store.client_id
        assert store.votes == {}

    def test_unknown_stored_votes_are_dropped(self, tmp_path):
        path = tmp_path / "listener.json"
        path.write_text(json.dumps({"client_id": "abc", "votes": {"A::X": "up", "B::Y": "maybe"}}))

        store = ListenerStore(str(path))
        assert store.client_id == "abc"
        assert store.votes == {"A::X": "up"}

    @pytest.mark.parametrize("votes", [None, [], ["up"], "up", 5])
    def test_malformed_votes_start_empty(self, tmp_path, votes):
        path = tmp_path / "listener.json"
        path.write_text(json.dumps({"client_id": "abc", "votes": votes}))

        store = ListenerStore(str(path))
        assert store.client_id == "abc"
        assert store.votes == {}

    def test_malformed_client_id_is_replaced(self, tmp_path):
        path = tmp_path / "listener.json"
        path.write_text(json.dumps({"client_id": 123, "votes": {"A::X": "up"}}))

        store = ListenerStore(str(path))
        assert isinstance(store.client_id, str)
        assert store.client_id != "123"
        assert store.get_vote("A", "X") == "up"
        assert json.loads(path.read_text())["client_id"] == store.client_id
