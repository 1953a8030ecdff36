"""
Game database that also reports finished games to a stats server.
Use this in place of GameDatabase when server integration is needed.
"""
import os
import random
import threading
import time
import uuid
from typing import Any, Dict, List, Optional

import requests

from .database import GameDatabase
from .models import GameStats

SERVER_URL = "http://localhost:5000"
CLIENT_ID_FILE = ".client_id"


def load_client_id(path=CLIENT_ID_FILE) -> str:
    """Read this install's client id, creating one on first use."""
    if os.path.exists(path):
        with open(path, "r") as f:
            client_id = f.read().strip()
        if client_id:
            return client_id
    client_id = str(uuid.uuid4())
    try:
        with open(path, "w") as f:
            f.write(client_id)
    except OSError as e:
        print(f"Could not store client id: {e}")
    return client_id


class SyncGameDatabase(GameDatabase):
    """
    GameDatabase that pushes every saved game to a stats server.

    Games are always stored locally first; the upload happens afterwards,
    on a background thread unless background is False, so a slow server
    never stalls the game.
    """

    max_retries = 3
    base_delay = 1.0  # seconds, doubled on every retry

    def __init__(self, db_file="memory_game.db", server_url=SERVER_URL,
                 client_id: Optional[str] = None, background: bool = True):
        super().__init__(db_file)

        # Ensure server_url has the correct format with http:// prefix
        if server_url and not server_url.startswith(('http://', 'https://')):
            server_url = 'http://' + server_url
        self.server_url = (server_url or SERVER_URL).rstrip('/')
        self.client_id = client_id or load_client_id()
        self.background = background
        self.online = False

    def check_server_connection(self) -> bool:
        """Check if the server is available."""
        try:
            response = requests.get(f"{self.server_url}/", timeout=5)
            self.online = response.status_code == 200
        except requests.exceptions.RequestException as e:
            self.online = False
            print(f"Server connection failed: {e}")
        return self.online

    def save_game_stats(self, stats: GameStats) -> int:
        """
        Save game statistics locally, then send them to the server.

        Returns:
            ID of the local record, or -1 if the local save failed
        """
        local_id = super().save_game_stats(stats)
        if local_id < 0:
            return local_id

        if self.background:
            threading.Thread(target=self.push_game_stats, args=(stats,), daemon=True).start()
        else:
            self.push_game_stats(stats)
        return local_id

    def push_game_stats(self, stats: GameStats) -> bool:
        """
        Send one game to the server, retrying on network errors, 5xx and 429.

        Returns:
            True if the server stored the game (or already had it)
        """
        payload = stats.to_dict()
        payload['local_id'] = payload.pop('id')
        payload['client_id'] = self.client_id
        url = f"{self.server_url}/api/stats/save"

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.post(url, json=payload, timeout=10)

                if response.status_code == 200:
                    self.online = True
                    return True
                # Conflict - stat already exists
                if response.status_code == 409:
                    return True

                print(f"Attempt {attempt}: Failed to save game stats to server: {response.status_code}")
                if response.status_code < 500 and response.status_code != 429:
                    print(f"Non-retriable error code {response.status_code}, abandoning retry")
                    break
            except requests.exceptions.RequestException as e:
                print(f"Attempt {attempt}: Network error saving game stats: {e}")

            if attempt < self.max_retries:
                # Exponential backoff with jitter
                delay = self.base_delay * (2 ** (attempt - 1)) * (0.5 + random.random())
                time.sleep(delay)

        self.online = False
        return False

    def get_remote_leaderboard(self, rows: Optional[int] = None, columns: Optional[int] = None,
                               limit: int = 10) -> List[Dict[str, Any]]:
        """
        Get the leaderboard from the server, falling back to local data.

        Args:
            rows: Board rows, or None for every board size
            columns: Board columns, or None for every board size
            limit: Maximum number of records to return
        """
        board = f"{rows}x{columns}" if rows is not None and columns is not None else "all"
        try:
            response = requests.get(
                f"{self.server_url}/api/stats/leaderboard/{board}",
                params={'limit': limit},
                timeout=10
            )
            if response.status_code == 200:
                self.online = True
                return response.json().get('leaderboard', [])
            print(f"Server returned {response.status_code} for leaderboard, using local data")
        except (requests.exceptions.RequestException, ValueError) as e:
            print(f"Error fetching remote leaderboard, using local data: {e}")

        self.online = False
        return self.get_leaderboard(rows, columns, limit)
