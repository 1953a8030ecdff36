"""
Match Statistics Server

A simple Flask server that collects game statistics sent by
SyncGameDatabase clients and serves leaderboards per board size.
"""
import os
import re
import sqlite3
import time

from flask import Flask, request, jsonify

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "server_stats.db")

REQUIRED_FIELDS = ['rows', 'columns', 'start_time', 'end_time', 'moves', 'matches',
                   'score', 'completed']

BOARD_PATTERN = re.compile(r'^(\d+)x(\d+)$')


def init_db(db_path):
    """Initialize the database if it doesn't exist."""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS game_stats (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id TEXT NOT NULL,
            "rows" INTEGER NOT NULL,
            "columns" INTEGER NOT NULL,
            start_time REAL NOT NULL,
            end_time REAL NOT NULL,
            duration_seconds REAL NOT NULL,
            moves INTEGER NOT NULL,
            matches INTEGER NOT NULL,
            errors INTEGER NOT NULL,
            score INTEGER NOT NULL,
            completed BOOLEAN NOT NULL,
            sync_time REAL NOT NULL
        )
    ''')
    conn.commit()
    conn.close()


def create_app(db_path=DEFAULT_DB_PATH):
    """Create the stats server with its database at db_path."""
    app = Flask(__name__)
    app.config['STATS_DB_PATH'] = db_path
    init_db(db_path)

    def connect():
        conn = sqlite3.connect(app.config['STATS_DB_PATH'])
        conn.row_factory = sqlite3.Row
        return conn

    @app.route('/')
    def index():
        """Serve a simple status page."""
        return """
        <html>
            <head><title>Match Statistics Server</title></head>
            <body>
                <h1>Match Statistics Server</h1>
                <ul>
                    <li>/api/stats/save - POST: Save new statistics</li>
                    <li>/api/stats/leaderboard/:board - GET: Leaderboard for a board size (e.g. 4x4) or "all"</li>
                </ul>
            </body>
        </html>
        """

    @app.route('/api/stats/save', methods=['POST'])
    def save_stats():
        """Save game statistics from a client."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Expected a JSON object"}), 400

        for field in REQUIRED_FIELDS:
            if field not in data:
                return jsonify({"error": f"Missing required field: {field}"}), 400

        # Calculate derived fields if not provided
        if 'duration_seconds' not in data:
            data['duration_seconds'] = data['end_time'] - data['start_time']
        if 'errors' not in data:
            data['errors'] = max(0, data['moves'] - data['matches'])

        try:
            conn = connect()
            try:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO game_stats (
                        client_id, "rows", "columns", start_time, end_time, duration_seconds,
                        moves, matches, errors, score, completed, sync_time
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    data.get('client_id', 'unknown'), data['rows'], data['columns'],
                    data['start_time'], data['end_time'], data['duration_seconds'],
                    data['moves'], data['matches'], data['errors'], data['score'],
                    bool(data['completed']), time.time()
                ))
                conn.commit()
                record_id = cursor.lastrowid
            finally:
                conn.close()
        except sqlite3.Error as e:
            print(f"Error saving stats: {e}")
            return jsonify({"error": str(e)}), 500

        return jsonify({
            "success": True,
            "message": "Statistics saved successfully",
            "id": record_id
        })

    @app.route('/api/stats/leaderboard/<board>', methods=['GET'])
    def get_leaderboard(board):
        """Get the leaderboard for a board size such as "4x4", or "all"."""
        limit = request.args.get('limit', 10, type=int)

        query = '''
            SELECT id, "rows", "columns", duration_seconds, moves, errors, score
            FROM game_stats
            WHERE completed = 1
        '''
        params = []
        if board.lower() != 'all':
            match = BOARD_PATTERN.match(board.lower())
            if not match:
                return jsonify({"error": f"Invalid board size: {board}"}), 400
            query += ' AND "rows" = ? AND "columns" = ?'
            params.extend([int(match.group(1)), int(match.group(2))])
        query += " ORDER BY score DESC, duration_seconds ASC LIMIT ?"
        params.append(limit)

        try:
            conn = connect()
            try:
                results = [dict(row) for row in conn.execute(query, params).fetchall()]
            finally:
                conn.close()
        except sqlite3.Error as e:
            return jsonify({"error": str(e)}), 500

        # Format times for display
        for result in results:
            minutes = int(result['duration_seconds'] // 60)
            seconds = result['duration_seconds'] % 60
            result['formatted_time'] = f"{minutes:02d}:{seconds:05.2f}"

        return jsonify({"leaderboard": results})

    return app


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    create_app().run(host='0.0.0.0', port=port, debug=True)
