import asyncio
import time
from typing import Optional

from .events import EventEmitter
from .settings import GameSettings


class ComboTracker:
    """
    Score keeping with a time-windowed combo bonus.

    A match made within combo_window_seconds of the previous one raises the
    combo level and earns bonus points. After every match a countdown reports
    how much of the window is left through combo_timer_changed; only one
    countdown runs at a time.

    The countdown runs as an asyncio task, so record_match and restore must be
    called while an event loop is running.
    """

    EVENTS = ("score_changed", "combo_timer_changed", "combo_broken")

    def __init__(self, settings: GameSettings, clock=time.time):
        self.settings = settings
        self._clock = clock
        self.events = EventEmitter(self.EVENTS)

        self.score = 0
        self.combo_level = 0
        self.last_match_timestamp = 0.0
        self.is_first_match = True
        self._countdown: Optional[asyncio.Task] = None

    @property
    def countdown_active(self) -> bool:
        return self._countdown is not None and not self._countdown.done()

    def record_match(self, now: Optional[float] = None) -> int:
        """
        Award points for a match.

        Args:
            now: Timestamp of the match, defaults to the tracker's clock

        Returns:
            Points awarded for this match
        """
        if now is None:
            now = self._clock()
        base = self.settings.base_match_points

        if self.is_first_match:
            points = base
            self.is_first_match = False
        elif now - self.last_match_timestamp <= self.settings.combo_window_seconds:
            self.combo_level = min(self.combo_level + 1, self.settings.max_combo_level)
            points = base + base * self.settings.combo_multiplier * self.combo_level
        else:
            self.combo_level = 0
            points = base
            self.events.emit("combo_broken")

        self.score += points
        self.last_match_timestamp = now
        self._restart_countdown()
        self.events.emit("score_changed", self.score)
        return points

    def reset_score(self) -> None:
        """Zero the score and combo, and stop the combo countdown."""
        self.cancel()
        self.score = 0
        self.combo_level = 0
        self.is_first_match = True
        self.events.emit("score_changed", 0)
        self.events.emit("combo_timer_changed", 0.0)

    def restore(self, score: int, combo_level: int, last_match_timestamp: float,
                is_first_match: bool) -> None:
        """
        Load score state from a saved session.

        A live combo gets a fresh window starting now, since the saved
        timestamp belongs to a clock that may have moved on a long way.
        """
        self.cancel()
        self.score = score
        self.combo_level = combo_level
        self.last_match_timestamp = last_match_timestamp
        self.is_first_match = is_first_match
        self.events.emit("score_changed", self.score)

        if self.combo_level > 0 and not self.is_first_match:
            self.last_match_timestamp = self._clock()
            self._restart_countdown()
        else:
            self.events.emit("combo_timer_changed", 0.0)

    def cancel(self) -> None:
        """Stop the combo countdown without emitting anything."""
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _restart_countdown(self) -> None:
        self.cancel()
        deadline = self._clock() + self.settings.combo_window_seconds
        self._countdown = asyncio.get_running_loop().create_task(self._run_countdown(deadline))

    async def _run_countdown(self, deadline: float) -> None:
        window = self.settings.combo_window_seconds
        tick = max(self.settings.combo_tick_seconds, 0.0)

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0 or window <= 0:
                break
            self.events.emit("combo_timer_changed", min(1.0, remaining / window))
            await asyncio.sleep(min(tick, remaining))

        if self._countdown is asyncio.current_task():
            self._countdown = None
        self.events.emit("combo_timer_changed", 0.0)
        if self.combo_level > 0:
            self.combo_level = 0
