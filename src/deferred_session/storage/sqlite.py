"""SQLite payload storage.

Keeps every session as one row of a local SQLite database, using the
standard library ``sqlite3`` module.  ``saved_at`` is an indexed integer
column so idle sessions are purged with one range delete.

Classes
-------
- SQLiteBackend  — SQLite-backed payload storage
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

from deferred_session.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH: Path = Path.home() / ".deferred-session" / "sessions.db"
_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    payload    TEXT NOT NULL,
    saved_at   INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS sessions_saved_at ON sessions (saved_at);
"""
_SAVE_SQL = """
INSERT INTO sessions (session_id, payload, saved_at) VALUES (?, ?, ?)
ON CONFLICT(session_id) DO UPDATE SET payload = excluded.payload, saved_at = excluded.saved_at
"""


class SQLiteBackend(StorageBackend):
    """Persists sessions in a SQLite database file.

    Parameters
    ----------
    db_path:
        Path to the database file.  The parent directory and the schema are
        created on first use.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._db_path: Path = Path(db_path) if db_path is not None else _DEFAULT_DB_PATH

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path))
        conn.executescript(_SCHEMA_SQL)
        return conn

    def _fetch(self, session_id: str, column: str) -> Any:
        with closing(self._connect()) as conn:
            row = conn.execute(
                f"SELECT {column} FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"No stored session {session_id!r} in {self._db_path}.")
        return row[0]

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, session_id: str, payload: str, saved_at: int) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(_SAVE_SQL, (session_id, payload, saved_at))

    def load(self, session_id: str) -> str:
        return str(self._fetch(session_id, "payload"))

    def saved_at(self, session_id: str) -> int:
        return int(self._fetch(session_id, "saved_at"))

    def list(self) -> list[str]:
        """Return session ids, most recently saved first."""
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT session_id FROM sessions ORDER BY saved_at DESC, session_id"
            ).fetchall()
        return [str(row[0]) for row in rows]

    def delete(self, session_id: str) -> None:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
        if cursor.rowcount == 0:
            raise KeyError(f"No stored session {session_id!r} in {self._db_path}.")

    def exists(self, session_id: str) -> bool:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT 1 FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return row is not None

    def purge(self, idle_before: int) -> list[str]:
        """Delete idle sessions inside one write transaction."""
        with closing(self._connect()) as conn, conn:
            conn.execute("BEGIN IMMEDIATE")
            rows = conn.execute(
                "SELECT session_id FROM sessions WHERE saved_at < ?", (idle_before,)
            ).fetchall()
            conn.execute("DELETE FROM sessions WHERE saved_at < ?", (idle_before,))
        purged = [str(row[0]) for row in rows]
        logger.debug("SQLiteBackend: purged %d idle session(s)", len(purged))
        return purged

    def __repr__(self) -> str:
        return f"SQLiteBackend(db_path={str(self._db_path)!r})"
