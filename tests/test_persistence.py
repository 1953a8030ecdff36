import json

import pytest

from pairflip.classes import Board, CardFace
from pairflip.persistence import SessionPersistence, denormalize_color, normalize_color
from pairflip.scoring import ComboTracker
from pairflip.settings import BLUE, GameSettings, RED, YELLOW

A = CardFace("A", RED)
B = CardFace("♥", YELLOW)
C = CardFace("C", BLUE)


@pytest.fixture()
def board():
    board = Board([A, A, B, B, C, C], 2, 3)
    board.reveal(0)
    board.reveal(1)
    board.take_pair()
    board.mark_matched(0, 1)
    board.reveal(4)
    return board


@pytest.fixture()
def tracker():
    tracker = ComboTracker(GameSettings())
    tracker.score = 30
    tracker.combo_level = 1
    tracker.last_match_timestamp = 1234.5
    tracker.is_first_match = False
    return tracker


def test_color_channels_survive_normalization():
    for color in (RED, BLUE, YELLOW, (12, 34, 56, 128)):
        channels = normalize_color(color)
        assert all(0.0 <= c <= 1.0 for c in channels)
        assert denormalize_color(channels) == color


def test_capture_records_board_and_score(board, tracker):
    snapshot = SessionPersistence.capture(board, tracker)

    assert (snapshot.rows, snapshot.columns) == (2, 3)
    assert snapshot.score == 30
    assert snapshot.combo_level == 1
    assert snapshot.last_match_timestamp == 1234.5
    assert snapshot.is_first_match is False
    assert snapshot.flipped_card_ids == [4]
    assert snapshot.matched_card_ids == [0, 1]
    assert [card.id for card in snapshot.cards] == list(range(6))
    assert snapshot.cards[2].value == "♥"
    assert snapshot.cards[0].color == (1.0, 0.0, 0.0, 1.0)
    assert snapshot.moves == 1


def test_saved_blob_uses_camel_case_keys(db, board, tracker):
    persistence = SessionPersistence(db)
    assert persistence.save(persistence.capture(board, tracker))

    data = json.loads(db.get_value("saved_session"))
    for key in ("rows", "columns", "score", "lastMatchTimestamp", "comboLevel",
                "isFirstMatch", "flippedCardIds", "matchedCardIds", "cards"):
        assert key in data
    assert set(data["cards"][0]) >= {"id", "value", "colorR", "colorG", "colorB",
                                     "colorA", "isFlipped", "isMatched"}
    assert data["cards"][2]["value"] == "♥"


def test_save_load_restore_round_trip(db, board, tracker):
    persistence = SessionPersistence(db)
    persistence.save(persistence.capture(board, tracker))

    snapshot = persistence.load()
    assert snapshot is not None
    restored = SessionPersistence.restore_board(snapshot)
    restored.check_rep()

    assert [card.face for card in restored.cards] == [card.face for card in board.cards]
    assert restored.matched_ids == {0, 1}
    assert restored.revealed_ids == [4]
    assert [card.is_revealed for card in restored.cards] == [True, True, False, False, True, False]
    assert restored.moves == board.moves


def test_save_overwrites_previous_save(db, board, tracker):
    persistence = SessionPersistence(db)
    persistence.save(persistence.capture(board, tracker))
    tracker.score = 90
    persistence.save(persistence.capture(board, tracker))
    assert persistence.load().score == 90


def test_load_without_save_returns_none(persistence):
    assert persistence.has() is False
    assert persistence.load() is None


def test_corrupt_blob_loads_as_none(db):
    db.set_value("saved_session", "{not json")
    assert SessionPersistence(db).load() is None


@pytest.mark.parametrize("change", [
    lambda data: data.update(rows=float("inf")),
    lambda data: data.update(lastMatchTimestamp=float("nan")),
    lambda data: data["cards"][0].update(colorR=float("nan")),
    lambda data: data["cards"][1].update(colorG=1.5),
    lambda data: data["cards"][2].update(colorA=-0.1),
])
def test_non_finite_or_out_of_range_numbers_load_as_none(db, board, tracker, change):
    persistence = SessionPersistence(db)
    data = persistence.capture(board, tracker).to_dict()
    change(data)
    db.set_value("saved_session", json.dumps(data))
    assert persistence.load() is None


def test_missing_field_loads_as_none(db, board, tracker):
    persistence = SessionPersistence(db)
    data = persistence.capture(board, tracker).to_dict()
    del data["comboLevel"]
    db.set_value("saved_session", json.dumps(data))
    assert persistence.load() is None


@pytest.mark.parametrize("change", [
    lambda data: data.update(rows=3),
    lambda data: data.update(flippedCardIds=[0]),
    lambda data: data.update(matchedCardIds=[0]),
    lambda data: data.update(flippedCardIds=[17]),
    lambda data: data["cards"].pop(),
])
def test_inconsistent_snapshot_loads_as_none(db, board, tracker, change):
    persistence = SessionPersistence(db)
    data = persistence.capture(board, tracker).to_dict()
    change(data)
    db.set_value("saved_session", json.dumps(data))
    assert persistence.load() is None


def test_delete_removes_save_and_tolerates_absence(persistence, board, tracker):
    persistence.save(persistence.capture(board, tracker))
    assert persistence.has()
    persistence.delete()
    assert not persistence.has()
    persistence.delete()
