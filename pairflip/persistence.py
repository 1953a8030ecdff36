"""
Save and restore a whole match session.

A session is written as one JSON document under a fixed key of the local
key-value store. Loading never raises: a missing, unreadable or
inconsistent save is reported as "no saved session".
"""
import json
import math
from typing import Optional

import pygame

from .classes import Board, CardFace
from .database import GameDatabase
from .models import SavedCard, SavedSession
from .scoring import ComboTracker

DEFAULT_SAVE_KEY = "saved_session"


def normalize_color(rgba) -> tuple:
    """RGBA ints 0..255 -> four floats 0..1."""
    return tuple(pygame.Color(*rgba).normalize())


def denormalize_color(channels) -> tuple:
    """Four floats 0..1 -> RGBA ints 0..255."""
    return tuple(min(255, max(0, int(round(c * 255)))) for c in channels)


class SessionPersistence:
    """Snapshot/restore of session state through a GameDatabase key-value store."""

    def __init__(self, store: GameDatabase, key: str = DEFAULT_SAVE_KEY):
        self.store = store
        self.key = key

    @staticmethod
    def capture(board: Board, tracker: ComboTracker) -> SavedSession:
        """Take a snapshot of the board and the score state."""
        cards = [
            SavedCard(
                id=card.card_id,
                value=card.face.symbol,
                color=normalize_color(card.face.color),
                is_flipped=card.is_revealed,
                is_matched=card.is_matched,
            )
            for card in board.cards
        ]
        return SavedSession(
            rows=board.rows,
            columns=board.cols,
            score=tracker.score,
            last_match_timestamp=tracker.last_match_timestamp,
            combo_level=tracker.combo_level,
            is_first_match=tracker.is_first_match,
            flipped_card_ids=list(board.revealed_ids),
            matched_card_ids=sorted(board.matched_ids),
            cards=cards,
            moves=board.moves,
            mismatches=board.mismatches,
        )

    def save(self, snapshot: SavedSession) -> bool:
        """
        Write a snapshot, overwriting any previous save.

        Returns:
            True if the save was committed to the store
        """
        try:
            blob = json.dumps(snapshot.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            print(f"Error serializing session: {e}")
            return False
        return self.store.set_value(self.key, blob)

    def load(self) -> Optional[SavedSession]:
        """
        Read the saved snapshot.

        Returns:
            The snapshot, or None if there is no usable save
        """
        blob = self.store.get_value(self.key)
        if blob is None:
            return None
        try:
            snapshot = SavedSession.from_dict(json.loads(blob))
            self._check_snapshot(snapshot)
            return snapshot
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, OverflowError) as e:
            print(f"Error loading saved session: {e}")
            return None

    def has(self) -> bool:
        return self.store.has_value(self.key)

    def delete(self) -> None:
        self.store.delete_value(self.key)

    @staticmethod
    def _check_snapshot(snapshot: SavedSession) -> None:
        total = snapshot.rows * snapshot.columns
        if snapshot.rows <= 0 or snapshot.columns <= 0 or total % 2 != 0:
            raise ValueError(f"invalid board size {snapshot.rows}x{snapshot.columns}")
        if len(snapshot.cards) != total:
            raise ValueError(f"expected {total} cards, found {len(snapshot.cards)}")
        if sorted(card.id for card in snapshot.cards) != list(range(total)):
            raise ValueError("card ids must be 0..N-1")
        if snapshot.score < 0 or snapshot.combo_level < 0:
            raise ValueError("score and combo level must not be negative")
        if not math.isfinite(snapshot.last_match_timestamp):
            raise ValueError("last match timestamp must be finite")
        for card in snapshot.cards:
            if not all(math.isfinite(c) and 0.0 <= c <= 1.0 for c in card.color):
                raise ValueError(f"card {card.id} has a color channel outside 0..1")

        flipped = snapshot.flipped_card_ids
        matched = set(snapshot.matched_card_ids)
        if len(set(flipped)) != len(flipped) or len(matched) != len(snapshot.matched_card_ids):
            raise ValueError("duplicate card ids")
        if any(not 0 <= card_id < total for card_id in list(flipped) + list(matched)):
            raise ValueError("card id out of range")
        if matched.intersection(flipped):
            raise ValueError("a card cannot be both flipped and matched")
        if len(matched) % 2 != 0:
            raise ValueError("matched cards must come in pairs")
        if matched != {card.id for card in snapshot.cards if card.is_matched}:
            raise ValueError("matched ids disagree with card flags")

    @staticmethod
    def restore_board(snapshot: SavedSession) -> Board:
        """
        Rebuild a board directly from a snapshot.

        Card flags are set as saved; no reveal events are replayed. Cards that
        were waiting for a partner go back into the pairing queue in their saved
        order. A card that was face up in a pair still being resolved comes back
        face up but outside the queue.
        """
        cards = sorted(snapshot.cards, key=lambda card: card.id)
        faces = [CardFace(card.value, denormalize_color(card.color)) for card in cards]
        board = Board(faces, snapshot.rows, snapshot.columns)

        for saved, card in zip(cards, board.cards):
            card.is_matched = saved.is_matched
            card.is_revealed = saved.is_flipped or saved.is_matched
        for card_id in snapshot.flipped_card_ids:
            board.cards[card_id].is_revealed = True

        board.matched_ids = set(snapshot.matched_card_ids)
        board.revealed_ids = list(snapshot.flipped_card_ids)
        board.moves = snapshot.moves
        board.mismatches = snapshot.mismatches
        return board
