"""
Game settings for the pairflip match engine.

Settings live in a small JSON file next to the game. Anything missing or
unreadable falls back to the defaults below, which are the reference values
the game ships with.
"""
import json
import os
from dataclasses import dataclass, field, fields, asdict
from typing import List, Optional, Tuple

import pygame

SETTINGS_FILE = "settings.json"

# User-facing strings
TOAST_INVALID_INPUT = "Row x Column can't be odd!"
TOAST_OUT_OF_BOUNDS = "Rows must be {min_rows}-{max_rows} and columns {min_columns}-{max_columns}!"
TOAST_GAME_OVER = "You cleared the round!"
TOAST_STARTING_NEW_GAME = "Starting New Game In"

DEFAULT_SYMBOLS = [
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L", "M", "N", "O",
    "P", "Q", "R", "S", "T", "U", "V", "W", "X", "Y", "Z",
    "★", "♠", "♣", "♥", "♦", "♪", "♫", "☀", "☂", "☃", "✈",
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
]

# Colors (RGBA)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)
YELLOW = (255, 235, 4, 255)
MAGENTA = (255, 0, 255, 255)
CYAN = (0, 255, 255, 255)
ORANGE = (255, 128, 0, 255)
PURPLE = (128, 0, 255, 255)
PINK = (255, 191, 204, 255)
LIGHT_GREEN = (128, 255, 128, 255)
LIGHT_YELLOW = (255, 255, 128, 255)
BROWN = (204, 102, 51, 255)
TEAL = (51, 204, 204, 255)
ORCHID = (204, 51, 204, 255)
SLATE = (102, 102, 204, 255)

DEFAULT_COLORS = [
    RED, BLUE, GREEN, YELLOW, MAGENTA, CYAN, ORANGE, PURPLE,
    PINK, LIGHT_GREEN, LIGHT_YELLOW, BROWN, TEAL, ORCHID, SLATE,
]

Color = Tuple[int, int, int, int]


def to_rgba(value) -> Color:
    """
    Convert anything pygame understands as a color into an RGBA tuple.

    Args:
        value: A color name, a "#rrggbb" string, or an RGB/RGBA sequence

    Returns:
        Tuple of four ints in 0..255
    """
    if isinstance(value, (list, tuple)):
        color = pygame.Color(*value)
    else:
        color = pygame.Color(value)
    return (color.r, color.g, color.b, color.a)


@dataclass
class GameSettings:
    """All tunable values for a match session."""
    # Board bounds
    min_rows: int = 2
    min_columns: int = 2
    max_rows: int = 6
    max_columns: int = 6

    # Scoring system
    base_match_points: int = 10
    combo_window_seconds: float = 3.0  # seconds to get combo
    combo_multiplier: int = 2
    max_combo_level: int = 5

    # Timing
    reveal_delay: float = 0.3
    mismatch_delay: float = 0.4
    restart_countdown_seconds: int = 3
    countdown_tick_seconds: float = 1.0
    combo_tick_seconds: float = 0.05

    # Card data
    symbols: List[str] = field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    colors: List[Color] = field(default_factory=lambda: list(DEFAULT_COLORS))

    # Storage
    db_file: str = "memory_game.db"
    save_key: str = "saved_session"
    server_url: Optional[str] = None

    def to_dict(self):
        """Convert the settings to a JSON-friendly dictionary."""
        data = asdict(self)
        data['colors'] = [list(color) for color in self.colors]
        return data

    @classmethod
    def from_dict(cls, data):
        """
        Create settings from a dictionary, ignoring unknown keys.

        Colors go through pygame so names and hex strings work too. A color
        pygame cannot parse drops the whole palette back to the default.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}

        if 'colors' in values:
            try:
                values['colors'] = [to_rgba(color) for color in values['colors']]
            except (ValueError, TypeError) as e:
                print(f"Invalid color in settings, using default palette: {e}")
                del values['colors']

        if 'symbols' in values and not values['symbols']:
            del values['symbols']
        if 'colors' in values and not values['colors']:
            del values['colors']

        return cls(**values)


def load_settings(path=SETTINGS_FILE) -> GameSettings:
    """Load settings from a JSON file, falling back to defaults."""
    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if isinstance(data, dict):
                return GameSettings.from_dict(data)
            print(f"Settings file {path} is not a JSON object, using defaults")
        except (OSError, json.JSONDecodeError, TypeError) as e:
            print(f"Error reading settings file {path}: {e}")
    return GameSettings()


def save_settings(settings: GameSettings, path=SETTINGS_FILE) -> None:
    """Save settings to a JSON file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(settings.to_dict(), f, ensure_ascii=False, indent=2)


def validate_board_size(rows: int, columns: int, settings: GameSettings) -> Optional[str]:
    """
    Check a board size before a session is started with it.

    Args:
        rows: Requested number of rows
        columns: Requested number of columns
        settings: Settings holding the allowed bounds

    Returns:
        The toast text to show the player, or None if the size is playable
    """
    if not (settings.min_rows <= rows <= settings.max_rows
            and settings.min_columns <= columns <= settings.max_columns):
        return TOAST_OUT_OF_BOUNDS.format(
            min_rows=settings.min_rows,
            max_rows=settings.max_rows,
            min_columns=settings.min_columns,
            max_columns=settings.max_columns,
        )
    if (rows * columns) % 2 != 0:
        return TOAST_INVALID_INPUT
    return None
