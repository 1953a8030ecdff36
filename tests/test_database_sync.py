import pytest
import requests

from pairflip import database_sync
from pairflip.database_sync import SyncGameDatabase, load_client_id
from pairflip.models import GameStats


class FakeResponse:
    def __init__(self, status_code, data=None):
        self.status_code = status_code
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("no JSON body")
        return self._data


class FakeServer:
    """Plays back canned responses and remembers every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def sync_db(monkeypatch):
    monkeypatch.setattr(database_sync.time, "sleep", lambda seconds: None)
    database = SyncGameDatabase(":memory:", server_url="localhost:5000/",
                                client_id="client-1", background=False)
    yield database
    database.close()


def make_stats():
    return GameStats.create_from_game_end(
        rows=2, columns=2, start_time=10.0, end_time=25.0, moves=3, matches=2, score=30)


def test_server_url_is_normalized(sync_db):
    assert sync_db.server_url == "http://localhost:5000"


def test_save_stores_locally_and_pushes(sync_db, monkeypatch):
    server = FakeServer(FakeResponse(200, {"success": True}))
    monkeypatch.setattr(requests, "post", server)

    local_id = sync_db.save_game_stats(make_stats())

    assert local_id > 0
    assert sync_db.get_game_count() == 1
    url, kwargs = server.calls[0]
    assert url == "http://localhost:5000/api/stats/save"
    assert kwargs["json"]["client_id"] == "client-1"
    assert kwargs["json"]["local_id"] == local_id
    assert "id" not in kwargs["json"]
    assert sync_db.online is True


def test_push_retries_server_errors(sync_db, monkeypatch):
    server = FakeServer(
        requests.exceptions.ConnectionError("down"),
        FakeResponse(503),
        FakeResponse(200),
    )
    monkeypatch.setattr(requests, "post", server)
    assert sync_db.push_game_stats(make_stats()) is True
    assert len(server.calls) == 3


def test_push_treats_conflict_as_success(sync_db, monkeypatch):
    monkeypatch.setattr(requests, "post", FakeServer(FakeResponse(409)))
    assert sync_db.push_game_stats(make_stats()) is True


def test_push_gives_up_on_client_error(sync_db, monkeypatch):
    server = FakeServer(FakeResponse(400), FakeResponse(200))
    monkeypatch.setattr(requests, "post", server)
    assert sync_db.push_game_stats(make_stats()) is False
    assert len(server.calls) == 1
    assert sync_db.online is False


def test_push_stops_after_max_retries(sync_db, monkeypatch):
    server = FakeServer(FakeResponse(500), FakeResponse(500), FakeResponse(500), FakeResponse(200))
    monkeypatch.setattr(requests, "post", server)
    assert sync_db.push_game_stats(make_stats()) is False
    assert len(server.calls) == sync_db.max_retries


def test_failed_push_keeps_local_record(sync_db, monkeypatch):
    monkeypatch.setattr(requests, "post", FakeServer(FakeResponse(400)))
    assert sync_db.save_game_stats(make_stats()) > 0
    assert sync_db.get_game_count() == 1


def test_remote_leaderboard(sync_db, monkeypatch):
    rows = [{"score": 99}]
    server = FakeServer(FakeResponse(200, {"leaderboard": rows}))
    monkeypatch.setattr(requests, "get", server)

    assert sync_db.get_remote_leaderboard(4, 4, limit=5) == rows
    url, kwargs = server.calls[0]
    assert url == "http://localhost:5000/api/stats/leaderboard/4x4"
    assert kwargs["params"] == {"limit": 5}


def test_remote_leaderboard_falls_back_to_local(sync_db, monkeypatch):
    monkeypatch.setattr(requests, "post", FakeServer(FakeResponse(400)))
    sync_db.save_game_stats(make_stats())
    server = FakeServer(requests.exceptions.Timeout("slow"))
    monkeypatch.setattr(requests, "get", server)

    board = sync_db.get_remote_leaderboard()
    assert [row["score"] for row in board] == [30]
    assert server.calls[0][0].endswith("/leaderboard/all")


def test_check_server_connection(sync_db, monkeypatch):
    monkeypatch.setattr(requests, "get", FakeServer(FakeResponse(200)))
    assert sync_db.check_server_connection() is True
    monkeypatch.setattr(requests, "get", FakeServer(requests.exceptions.ConnectionError("no")))
    assert sync_db.check_server_connection() is False


def test_client_id_is_created_once(tmp_path):
    path = str(tmp_path / ".client_id")
    first = load_client_id(path)
    assert first
    assert load_client_id(path) == first
