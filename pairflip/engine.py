"""
The match-session engine.

MatchEngine owns the board of one session, pairs up revealed cards in the
order they were revealed, and resolves every pair in its own asyncio task
after a short reveal delay. Several pairs can be resolving at once; they
only meet through the board's matched set and the combo tracker.

Each session gets a generation number. Every task remembers the generation
it was started in and checks it again after each await, so starting,
replaying or loading a session silently retires whatever the previous
session still had in flight.

All inbound calls are expected on the event loop's thread. Revealing cards
and anything that arms a countdown need a running loop.
"""
import asyncio
import random
import time
from typing import Optional, Set

from .classes import Board
from .database import GameDatabase
from .deck import generate_pairs
from .events import EventEmitter
from .models import GameStats
from .persistence import SessionPersistence
from .scoring import ComboTracker
from .settings import GameSettings


class MatchEngine:
    """Deck, pairing, delayed resolution, scoring, win detection and save/load for one board."""

    EVENTS = (
        "match_resolved",       # (matched, first_id, second_id)
        "cards_flipped_back",   # (first_id, second_id)
        "session_won",          # ()
        "starting_in",          # (seconds_remaining,)
        "session_restarted",    # ()
        "session_started",      # (rows, columns)
        "session_loaded",       # (rows, columns)
    )

    def __init__(self, settings: Optional[GameSettings] = None,
                 persistence: Optional[SessionPersistence] = None,
                 stats_db: Optional[GameDatabase] = None,
                 clock=time.time,
                 rng: Optional[random.Random] = None):
        """
        Initialize the engine. Nothing is dealt until start_session is called.

        Args:
            settings: Game settings, defaults to GameSettings()
            persistence: Where save_session/load_session keep the session
            stats_db: Where finished and abandoned games are recorded
            clock: Returns the current time in seconds
            rng: Random source for shuffling
        """
        self.settings = settings or GameSettings()
        self.persistence = persistence
        self.stats_db = stats_db
        self._clock = clock
        self._rng = rng

        self.tracker = ComboTracker(self.settings, clock=clock)
        self.events = EventEmitter(self.EVENTS)

        self.board: Optional[Board] = None
        self._generation = 0
        self._start_time = 0.0
        self._pending: Set[asyncio.Task] = set()
        self._win_task: Optional[asyncio.Task] = None

    # Subscriptions

    def subscribe(self, event: str, handler) -> None:
        """Subscribe to an engine or score event."""
        if event in ComboTracker.EVENTS:
            self.tracker.events.subscribe(event, handler)
        else:
            self.events.subscribe(event, handler)

    def unsubscribe(self, event: str, handler) -> None:
        if event in ComboTracker.EVENTS:
            self.tracker.events.unsubscribe(event, handler)
        else:
            self.events.unsubscribe(event, handler)

    # Read-only views

    @property
    def rows(self) -> int:
        return self.board.rows if self.board else 0

    @property
    def columns(self) -> int:
        return self.board.cols if self.board else 0

    @property
    def cards(self):
        return tuple(self.board.cards) if self.board else ()

    @property
    def revealed_ids(self):
        return tuple(self.board.revealed_ids) if self.board else ()

    @property
    def matched_ids(self):
        return frozenset(self.board.matched_ids) if self.board else frozenset()

    @property
    def score(self) -> int:
        return self.tracker.score

    @property
    def combo_level(self) -> int:
        return self.tracker.combo_level

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_active(self) -> bool:
        return self.board is not None and not self.board.is_complete()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # Session lifecycle

    def start_session(self, rows: int, columns: int) -> None:
        """
        Deal a fresh board, replacing whatever session was running.

        The caller is responsible for passing a playable size
        (see settings.validate_board_size).
        """
        self._record_stats(completed=False)
        self._next_generation()

        faces = generate_pairs(rows * columns, self.settings.symbols,
                               self.settings.colors, rng=self._rng)
        self.board = Board(faces, rows, columns)
        self._start_time = self._clock()
        self.tracker.reset_score()
        self.events.emit("session_started", rows, columns)

    def replay_session(self) -> None:
        """Start over on a board of the same size."""
        if self.board is None:
            print("No session to replay")
            return
        self.start_session(self.board.rows, self.board.cols)

    def close(self) -> None:
        """Retire every task of the current session."""
        self._next_generation()
        self.tracker.cancel()
        for task in list(self._pending):
            task.cancel()

    def _next_generation(self) -> None:
        self._generation += 1
        if self._win_task is not None:
            self._win_task.cancel()
            self._win_task = None

    # Reveals and resolution

    def on_card_revealed(self, card_id: int) -> None:
        """
        Handle a card turned face up by the player.

        Duplicate reveals of a card that is matched or already waiting are
        ignored. Every complete pair in the queue is handed to its own
        resolution task straight away.
        """
        board = self.board
        if board is None:
            print(f"Ignoring reveal of card {card_id}: no session")
            return
        if not board.has_card(card_id):
            print(f"Ignoring reveal of unknown card {card_id}")
            return
        # raises before the board is touched if called outside the loop
        loop = asyncio.get_running_loop()
        if not board.reveal(card_id):
            return

        while True:
            pair = board.take_pair()
            if pair is None:
                break
            task = loop.create_task(self._resolve_pair(pair[0], pair[1], self._generation))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def wait_for_resolutions(self) -> None:
        """Wait until no pair is being resolved."""
        while self._pending:
            results = await asyncio.gather(*list(self._pending), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    raise result

    def _pair_is_live(self, generation: int, first: int, second: int) -> bool:
        if generation != self._generation or self.board is None:
            return False
        if self.board.is_unmatched(first, second):
            return True
        self.board.release(first, second)
        return False

    async def _resolve_pair(self, first: int, second: int, generation: int) -> None:
        if not self._pair_is_live(generation, first, second):
            return

        await asyncio.sleep(self.settings.reveal_delay)
        if not self._pair_is_live(generation, first, second):
            return

        board = self.board
        if board.faces_match(first, second):
            board.mark_matched(first, second)
            self.tracker.record_match(self._clock())
            if generation != self._generation:
                return
            self.events.emit("match_resolved", True, first, second)
            # a handler may have started another session
            if generation == self._generation and board.is_complete():
                self._on_session_won()
            return

        board.mark_mismatch()
        self.events.emit("match_resolved", False, first, second)

        await asyncio.sleep(self.settings.mismatch_delay)
        if generation != self._generation:
            return

        board.flip_down(first, second)
        self.events.emit("cards_flipped_back", first, second)

    # Winning

    def _on_session_won(self, record_stats: bool = True) -> None:
        if record_stats:
            self._record_stats(completed=True)
        self.events.emit("session_won")

        if self._win_task is not None:
            self._win_task.cancel()
        self._win_task = asyncio.get_running_loop().create_task(
            self._restart_after_countdown(self._generation))

    async def _restart_after_countdown(self, generation: int) -> None:
        for seconds_remaining in range(self.settings.restart_countdown_seconds, 0, -1):
            if generation != self._generation:
                return
            self.events.emit("starting_in", seconds_remaining)
            await asyncio.sleep(self.settings.countdown_tick_seconds)

        if generation != self._generation:
            return
        # start_session cancels _win_task, which is this task
        self._win_task = None
        self.events.emit("session_restarted")
        self.start_session(self.board.rows, self.board.cols)

    def _record_stats(self, completed: bool) -> None:
        """Hand the current session's statistics to the stats database, if any."""
        board = self.board
        if self.stats_db is None or board is None:
            return
        if not completed and (board.moves == 0 or board.is_complete()):
            return

        stats = GameStats.create_from_game_end(
            rows=board.rows,
            columns=board.cols,
            start_time=self._start_time,
            end_time=self._clock(),
            moves=board.moves,
            matches=board.matches,
            score=self.tracker.score,
            completed=completed,
        )
        if self.stats_db.save_game_stats(stats) < 0:
            print("Game statistics were not recorded")

    # Save / load

    def save_session(self) -> bool:
        """
        Save the current session, replacing any earlier save.

        Returns:
            True if the save was written
        """
        if self.persistence is None or self.board is None:
            print("Nothing to save")
            return False
        snapshot = self.persistence.capture(self.board, self.tracker)
        return self.persistence.save(snapshot)

    def load_session(self) -> bool:
        """
        Replace the current session with the saved one.

        Returns:
            False if there is no usable save; the current session is then left alone
        """
        if self.persistence is None:
            return False
        snapshot = self.persistence.load()
        if snapshot is None:
            return False
        board = SessionPersistence.restore_board(snapshot)

        self._record_stats(completed=False)
        self._next_generation()

        self.board = board
        self._start_time = self._clock()
        self.tracker.restore(
            score=snapshot.score,
            combo_level=snapshot.combo_level,
            last_match_timestamp=snapshot.last_match_timestamp,
            is_first_match=snapshot.is_first_match,
        )
        self.events.emit("session_loaded", snapshot.rows, snapshot.columns)

        if self.board.is_complete():
            # saved after the last match, before the restart
            self._on_session_won(record_stats=False)
        return True

    def has_saved_session(self) -> bool:
        return self.persistence is not None and self.persistence.has()

    def delete_saved_session(self) -> None:
        if self.persistence is not None:
            self.persistence.delete()
