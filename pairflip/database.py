import sqlite3
import os
from typing import Dict, List, Optional, Any

from .models import GameStats


class GameDatabase:
    """
    Class to handle SQLite database operations for the match engine:
    a small string key-value store for saved sessions, and a table of
    finished game statistics.
    """

    def __init__(self, db_file="memory_game.db"):
        """
        Initialize the database connection.

        Args:
            db_file: Path to the SQLite database file, or ":memory:"
        """
        self.db_file = db_file
        self.conn = None
        self.cursor = None
        self.initialize_db()

    def initialize_db(self) -> None:
        """Create the database and tables if they don't exist."""
        try:
            # Create database directory if it doesn't exist
            db_dir = os.path.dirname(self.db_file)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)

            self.conn = sqlite3.connect(self.db_file)
            self.cursor = self.conn.cursor()

            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS key_value_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            ''')

            self.cursor.execute('''
                CREATE TABLE IF NOT EXISTS game_stats (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    "rows" INTEGER NOT NULL,
                    "columns" INTEGER NOT NULL,
                    start_time REAL NOT NULL,
                    end_time REAL NOT NULL,
                    duration_seconds REAL NOT NULL,
                    moves INTEGER NOT NULL,
                    matches INTEGER NOT NULL,
                    errors INTEGER NOT NULL,
                    score INTEGER NOT NULL,
                    completed BOOLEAN NOT NULL
                )
            ''')

            self.conn.commit()
        except (sqlite3.Error, OSError) as e:
            print(f"Database initialization error: {e}")
            self.conn = None
            self.cursor = None

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self.cursor = None

    def _ensure_connection(self) -> bool:
        if not self.conn:
            self.initialize_db()
        return self.conn is not None

    # Key-value store

    def get_value(self, key: str) -> Optional[str]:
        """
        Read a stored string.

        Returns:
            The stored value, or None if the key is absent or the read failed
        """
        try:
            if not self._ensure_connection():
                return None
            self.cursor.execute('SELECT value FROM key_value_store WHERE key = ?', (key,))
            row = self.cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error as e:
            print(f"Error reading key {key!r}: {e}")
            return None

    def set_value(self, key: str, value: str) -> bool:
        """
        Store a string under a key, replacing any previous value.

        Returns:
            True if the write was committed
        """
        try:
            if not self._ensure_connection():
                return False
            self.cursor.execute('''
                INSERT INTO key_value_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
            ''', (key, value))
            self.conn.commit()
            return True
        except sqlite3.Error as e:
            print(f"Error writing key {key!r}: {e}")
            return False

    def has_value(self, key: str) -> bool:
        return self.get_value(key) is not None

    def delete_value(self, key: str) -> bool:
        """Remove a key. Deleting an absent key is not an error."""
        try:
            if not self._ensure_connection():
                return False
            self.cursor.execute('DELETE FROM key_value_store WHERE key = ?', (key,))
            self.conn.commit()
            return True
        except sqlite3.Error as e:
            print(f"Error deleting key {key!r}: {e}")
            return False

    # Game statistics

    def save_game_stats(self, stats: GameStats) -> int:
        """
        Save game statistics to the database.

        Args:
            stats: Statistics of a finished or abandoned session

        Returns:
            ID of the inserted record, or -1 on failure
        """
        try:
            if not self._ensure_connection():
                return -1

            self.cursor.execute('''
                INSERT INTO game_stats
                ("rows", "columns", start_time, end_time, duration_seconds,
                 moves, matches, errors, score, completed)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                stats.rows, stats.columns, stats.start_time, stats.end_time,
                stats.duration_seconds, stats.moves, stats.matches, stats.errors,
                stats.score, stats.completed
            ))

            self.conn.commit()
            stats.id = self.cursor.lastrowid
            return stats.id
        except sqlite3.Error as e:
            print(f"Error saving game stats: {e}")
            return -1

    def _fetch_dicts(self) -> List[Dict[str, Any]]:
        columns = [col[0] for col in self.cursor.description]
        return [dict(zip(columns, row)) for row in self.cursor.fetchall()]

    def get_leaderboard(self, rows: Optional[int] = None, columns: Optional[int] = None,
                        limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the best completed games, optionally for one board size.

        Args:
            rows: Board rows, or None for every board size
            columns: Board columns, or None for every board size
            limit: Maximum number of records to return

        Returns:
            List of dictionaries ordered by score, then by duration
        """
        try:
            if not self._ensure_connection():
                return []

            query = '''
                SELECT id, "rows", "columns", duration_seconds, moves, errors, score
                FROM game_stats
                WHERE completed = 1
            '''

            params = []
            if rows is not None and columns is not None:
                query += ' AND "rows" = ? AND "columns" = ?'
                params.extend([rows, columns])

            query += " ORDER BY score DESC, duration_seconds ASC LIMIT ?"
            params.append(limit)

            self.cursor.execute(query, params)
            return self._fetch_dicts()
        except sqlite3.Error as e:
            print(f"Error retrieving leaderboard: {e}")
            return []

    def get_game_count(self) -> int:
        """Get the total number of games recorded in the database."""
        try:
            if not self._ensure_connection():
                return 0
            self.cursor.execute("SELECT COUNT(*) FROM game_stats")
            return self.cursor.fetchone()[0]
        except sqlite3.Error as e:
            print(f"Error getting game count: {e}")
            return 0

    def get_recent_games(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the most recent games.

        Args:
            limit: Maximum number of records to return

        Returns:
            List of dictionaries containing recent game stats
        """
        try:
            if not self._ensure_connection():
                return []

            self.cursor.execute('''
                SELECT id, "rows", "columns", start_time, end_time, duration_seconds,
                       moves, matches, errors, score, completed
                FROM game_stats
                ORDER BY start_time DESC, id DESC
                LIMIT ?
            ''', (limit,))

            return self._fetch_dicts()
        except sqlite3.Error as e:
            print(f"Error retrieving recent games: {e}")
            return []
