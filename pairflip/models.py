"""
Record types shared by the engine, local storage, the sync client and the stats server.
This keeps the wire and storage formats in one place.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass
class GameStats:
    """Statistics of one finished or abandoned session."""
    rows: int
    columns: int
    start_time: float
    end_time: float
    duration_seconds: float
    moves: int
    matches: int
    errors: int
    score: int
    completed: bool
    id: Optional[int] = None

    @property
    def board(self) -> str:
        return f"{self.rows}x{self.columns}"

    @classmethod
    def from_dict(cls, data):
        """Create a GameStats object from a dictionary."""
        return cls(
            rows=data.get('rows', 0),
            columns=data.get('columns', 0),
            start_time=data.get('start_time', 0.0),
            end_time=data.get('end_time', 0.0),
            duration_seconds=data.get('duration_seconds', 0.0),
            moves=data.get('moves', 0),
            matches=data.get('matches', 0),
            errors=data.get('errors', 0),
            score=data.get('score', 0),
            completed=bool(data.get('completed', False)),
            id=data.get('id')
        )

    def to_dict(self):
        """Convert the GameStats object to a dictionary."""
        return {
            'rows': self.rows,
            'columns': self.columns,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'duration_seconds': self.duration_seconds,
            'moves': self.moves,
            'matches': self.matches,
            'errors': self.errors,
            'score': self.score,
            'completed': self.completed,
            'id': self.id
        }

    @classmethod
    def create_from_game_end(cls, rows, columns, start_time, end_time, moves, matches,
                             score, completed=True):
        """Create a GameStats object from game end data."""
        return cls(
            rows=rows,
            columns=columns,
            start_time=start_time,
            end_time=end_time,
            duration_seconds=end_time - start_time,
            moves=moves,
            matches=matches,
            errors=max(0, moves - matches),
            score=score,
            completed=completed
        )


@dataclass
class SavedCard:
    """One card of a saved session. Color channels are normalized to 0..1."""
    id: int
    value: str
    color: Tuple[float, float, float, float]
    is_flipped: bool
    is_matched: bool

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=int(data['id']),
            value=str(data['value']),
            color=(float(data['colorR']), float(data['colorG']),
                   float(data['colorB']), float(data['colorA'])),
            is_flipped=bool(data['isFlipped']),
            is_matched=bool(data['isMatched'])
        )

    def to_dict(self):
        r, g, b, a = self.color
        return {
            'id': self.id,
            'value': self.value,
            'colorR': r,
            'colorG': g,
            'colorB': b,
            'colorA': a,
            'isFlipped': self.is_flipped,
            'isMatched': self.is_matched
        }


@dataclass
class SavedSession:
    """Everything needed to put a session back on screen exactly as it was saved."""
    rows: int
    columns: int
    score: int
    last_match_timestamp: float
    combo_level: int
    is_first_match: bool
    flipped_card_ids: List[int]
    matched_card_ids: List[int]
    cards: List[SavedCard]
    moves: int = 0
    mismatches: int = 0

    @classmethod
    def from_dict(cls, data):
        """
        Create a SavedSession from its stored form.

        Raises:
            KeyError, TypeError, ValueError: If a required field is missing or malformed
        """
        return cls(
            rows=int(data['rows']),
            columns=int(data['columns']),
            score=int(data['score']),
            last_match_timestamp=float(data['lastMatchTimestamp']),
            combo_level=int(data['comboLevel']),
            is_first_match=bool(data['isFirstMatch']),
            flipped_card_ids=[int(i) for i in data['flippedCardIds']],
            matched_card_ids=[int(i) for i in data['matchedCardIds']],
            cards=[SavedCard.from_dict(card) for card in data['cards']],
            moves=int(data.get('moves', 0)),
            mismatches=int(data.get('mismatches', 0))
        )

    def to_dict(self):
        return {
            'rows': self.rows,
            'columns': self.columns,
            'score': self.score,
            'lastMatchTimestamp': self.last_match_timestamp,
            'comboLevel': self.combo_level,
            'isFirstMatch': self.is_first_match,
            'flippedCardIds': list(self.flipped_card_ids),
            'matchedCardIds': list(self.matched_card_ids),
            'cards': [card.to_dict() for card in self.cards],
            'moves': self.moves,
            'mismatches': self.mismatches
        }
