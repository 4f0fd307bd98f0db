"""SQLite database for storing connections, settings and the query log."""

import os
import sqlite3
from pathlib import Path


def default_db_path():
    """Location of the store, overridable with BOBA_DB."""
    env_path = os.environ.get("BOBA_DB")
    if env_path:
        return Path(env_path)
    return Path.home() / ".boba" / "boba.db"


class Store:
    def __init__(self, db_path=None):
        if db_path is None:
            db_path = default_db_path()
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self):
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        with self._get_conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS connections (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    host TEXT NOT NULL,
                    port INTEGER,
                    database TEXT,
                    user TEXT NOT NULL,
                    password TEXT NOT NULL,
                    last_used TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS query_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    connection_name TEXT,
                    sql TEXT NOT NULL,
                    duration REAL,
                    row_count INTEGER,
                    status TEXT NOT NULL,
                    error_message TEXT,
                    executed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    # Connection methods
    def get_connections(self):
        with self._get_conn() as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                "SELECT id, name, host, port, database, user FROM connections ORDER BY name"
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_connection(self, name):
        with self._get_conn() as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                "SELECT id, name, host, port, database, user, password FROM connections WHERE name = ?",
                (name,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_last_connection(self):
        """Most recently saved or used connection, or None."""
        with self._get_conn() as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                """SELECT id, name, host, port, database, user, password FROM connections
                   ORDER BY last_used DESC, id DESC LIMIT 1"""
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def save_connection(self, name, host, port, database, user, password):
        with self._get_conn() as conn:
            conn.execute(
                """INSERT INTO connections (name, host, port, database, user, password, last_used)
                   VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(name) DO UPDATE SET
                       host = excluded.host, port = excluded.port,
                       database = excluded.database, user = excluded.user,
                       password = excluded.password, last_used = CURRENT_TIMESTAMP""",
                (name, host, port, database, user, password)
            )
            conn.commit()

    def delete_connection(self, name):
        with self._get_conn() as conn:
            conn.execute("DELETE FROM connections WHERE name = ?", (name,))
            conn.commit()

    # Settings methods
    def get_setting(self, key, default=None):
        with self._get_conn() as conn:
            cursor = conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row[0] if row else default

    def set_setting(self, key, value):
        with self._get_conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, value)
            )
            conn.commit()

    # Query log methods
    def log_query(self, connection_name, sql, duration=None, row_count=None,
                  status="success", error_message=None):
        with self._get_conn() as conn:
            conn.execute(
                """INSERT INTO query_log
                   (connection_name, sql, duration, row_count, status, error_message)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (connection_name, sql, duration, row_count, status, error_message)
            )
            conn.commit()

    def get_query_log(self, connection_name=None, limit=100):
        """Newest entries first, optionally for one connection only."""
        with self._get_conn() as conn:
            conn.row_factory = sqlite3.Row
            if connection_name:
                cursor = conn.execute(
                    """SELECT connection_name, sql, duration, row_count, status, error_message, executed_at
                       FROM query_log WHERE connection_name = ? ORDER BY id DESC LIMIT ?""",
                    (connection_name, limit)
                )
            else:
                cursor = conn.execute(
                    """SELECT connection_name, sql, duration, row_count, status, error_message, executed_at
                       FROM query_log ORDER BY id DESC LIMIT ?""",
                    (limit,)
                )
            return [dict(row) for row in cursor.fetchall()]
