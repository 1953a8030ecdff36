"""
pairflip: the session engine of a tile-matching memory game.

Deals paired cards, resolves revealed pairs concurrently, keeps a combo
score, detects the win and saves/restores sessions.
"""
from .classes import Board, Card, CardFace
from .database import GameDatabase
from .deck import generate_pairs
from .engine import MatchEngine
from .events import EventEmitter
from .models import GameStats, SavedCard, SavedSession
from .persistence import SessionPersistence
from .scoring import ComboTracker
from .settings import GameSettings, load_settings, save_settings, validate_board_size

__all__ = [
    "Board",
    "Card",
    "CardFace",
    "ComboTracker",
    "EventEmitter",
    "GameDatabase",
    "GameSettings",
    "GameStats",
    "MatchEngine",
    "SavedCard",
    "SavedSession",
    "SessionPersistence",
    "generate_pairs",
    "load_settings",
    "save_settings",
    "validate_board_size",
]
