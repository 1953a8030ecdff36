from typing import List, NamedTuple, Optional, Tuple

from .settings import Color


class CardFace(NamedTuple):
    """The token printed on a card: a symbol drawn in a color."""
    symbol: str
    color: Color


class Card:
    """
    A single tile on the board.
    Each card has a fixed face, can be revealed or face down, and can be matched or unmatched.
    """

    def __init__(self, face: CardFace, card_id: int):
        """
        Initialize a new card.

        Args:
            face: The token shown when the card is revealed
            card_id: Index of the card in board order, unique within a session
        """
        self.face = face
        self.card_id = card_id
        self.is_revealed = False
        self.is_matched = False

    @property
    def value(self) -> str:
        return self.face.symbol

    def __str__(self):
        status = "matched" if self.is_matched else "revealed" if self.is_revealed else "face down"
        return f"Card({self.value}, {status})"

    def __repr__(self):
        return (f"Card(face={self.face}, card_id={self.card_id}, "
                f"is_revealed={self.is_revealed}, is_matched={self.is_matched})")


class Board:
    """
    The cards of one session and which of them are face up or matched.

    revealed_ids keeps insertion order: the two oldest entries are always the
    next pair to resolve. Cards taken out as a pair stay revealed and move to
    resolving_ids until their resolution matches them or flips them down.
    """

    def __init__(self, faces: List[CardFace], rows: int, cols: int):
        """
        Initialize a new board.

        Args:
            faces: One face per card, already shuffled, in board order
            rows: Number of rows in the grid
            cols: Number of columns in the grid
        """
        if len(faces) != rows * cols:
            raise ValueError("faces length must equal rows*cols")

        self.rows = rows
        self.cols = cols
        self.cards = [Card(face, card_id=i) for i, face in enumerate(faces)]
        self.revealed_ids: List[int] = []
        self.resolving_ids = set()
        self.matched_ids = set()
        self.moves = 0
        self.mismatches = 0

    def __len__(self):
        return len(self.cards)

    def has_card(self, card_id) -> bool:
        return isinstance(card_id, int) and 0 <= card_id < len(self.cards)

    def get_card(self, row, col) -> Optional[Card]:
        """
        Get the card at the specified position.

        Returns:
            Card at the specified position or None if position is invalid
        """
        if 0 <= row < self.rows and 0 <= col < self.cols:
            return self.cards[row * self.cols + col]
        return None

    def position_of(self, card_id: int) -> Tuple[int, int]:
        """Get the (row, col) of a card from its id."""
        return divmod(card_id, self.cols)

    def reveal(self, card_id: int) -> bool:
        """
        Turn a card face up and queue it for pairing.

        Returns:
            False if the card is matched, waiting for a partner or being resolved
        """
        if (card_id in self.matched_ids or card_id in self.revealed_ids
                or card_id in self.resolving_ids):
            return False
        self.cards[card_id].is_revealed = True
        self.revealed_ids.append(card_id)
        return True

    def take_pair(self) -> Optional[Tuple[int, int]]:
        """Remove and return the two longest-waiting revealed cards, if there are two."""
        if len(self.revealed_ids) < 2:
            return None
        first, second = self.revealed_ids[0], self.revealed_ids[1]
        del self.revealed_ids[:2]
        self.resolving_ids.update((first, second))
        return first, second

    def release(self, *card_ids) -> None:
        """Forget that cards are being resolved, without touching their flags."""
        self.resolving_ids.difference_update(card_ids)

    def is_unmatched(self, *card_ids) -> bool:
        return not any(card_id in self.matched_ids for card_id in card_ids)

    def faces_match(self, first: int, second: int) -> bool:
        return self.cards[first].face == self.cards[second].face

    def mark_matched(self, first: int, second: int) -> None:
        """Mark two cards as permanently matched."""
        for card_id in (first, second):
            card = self.cards[card_id]
            card.is_revealed = True
            card.is_matched = True
        self.release(first, second)
        self.matched_ids.update((first, second))
        self.moves += 1

    def mark_mismatch(self) -> None:
        self.moves += 1
        self.mismatches += 1

    def flip_down(self, *card_ids) -> None:
        """Turn unmatched cards face down again."""
        for card_id in card_ids:
            card = self.cards[card_id]
            if not card.is_matched:
                card.is_revealed = False
        self.release(*card_ids)

    @property
    def matches(self) -> int:
        return len(self.matched_ids) // 2

    def is_complete(self) -> bool:
        """Check if every card has been matched."""
        return len(self.matched_ids) == len(self.cards)

    def check_rep(self) -> None:
        n = len(self.cards)
        assert len(self.matched_ids) % 2 == 0
        assert not self.matched_ids.intersection(self.revealed_ids)
        assert not self.resolving_ids.intersection(self.revealed_ids)
        assert not self.resolving_ids.intersection(self.matched_ids)
        assert len(set(self.revealed_ids)) == len(self.revealed_ids)
        assert all(0 <= card_id < n for card_id in self.revealed_ids)
        for card in self.cards:
            if card.is_matched:
                assert card.is_revealed
            assert card.is_matched == (card.card_id in self.matched_ids)

    def __str__(self) -> str:
        """Return a string representation of the board."""
        result = []
        for row in range(self.rows):
            row_cards = []
            for col in range(self.cols):
                card = self.get_card(row, col)
                if card.is_matched:
                    row_cards.append("M")
                elif card.is_revealed:
                    row_cards.append(card.value)
                else:
                    row_cards.append("#")
            result.append(" ".join(row_cards))
        return "\n".join(result)
