"""
Command Store — SQLite Persistent Backend

Tables:
    memos  - Append-only command log (id AUTOINCREMENT, cmd, created_at)

The log is capped: every insert trims the oldest entries (smallest id) in the
same transaction, so the table never holds more than ``cap`` rows once an
insert has returned.  Ids come from SQLite AUTOINCREMENT and are never reused,
even after the rows that carried them were trimmed.

Relative indexes (1 = most recent) are never stored; callers address entries
by offset in id-descending order through entry_at_offset().

Author: memo contributors
"""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Iterator, Optional

from memo.types import DB_CAP, MemoEntry

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a read or write against the command log fails."""


class StorageUnavailable(StorageError):
    """Raised when the store cannot be opened or its schema created."""


# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS memos (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    cmd        TEXT NOT NULL,
    created_at INTEGER NOT NULL
);
"""

_SQLITE_INT_MAX = 2**63 - 1


# ---------------------------------------------------------------------------
# MemoStore
# ---------------------------------------------------------------------------

class MemoStore:
    """
    SQLite-backed bounded command log.

    Single-threaded: one store is opened per invocation and closed on exit.
    Usable as a context manager.
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        cap: int = DB_CAP,
        wal_mode: bool = True,
        busy_timeout: float = 5.0,
    ):
        """Open (and create if needed) the command log.

        Args:
            db_path: SQLite database path (or ":memory:" for in-memory).
            cap: Maximum number of entries kept after any insert.
            wal_mode: Enable WAL journal mode for disk-backed databases.
            busy_timeout: Seconds to wait on a lock held by another process.

        Raises:
            StorageUnavailable: If the directory, file or schema cannot be
                created.
        """
        if cap < 1:
            raise ValueError(f"cap must be >= 1, got {cap}")
        self._db_path = db_path
        self._cap = cap
        self._conn: Optional[sqlite3.Connection] = None
        try:
            # Auto-create parent directory for disk-backed databases.
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(db_path, timeout=busy_timeout)
            conn.row_factory = sqlite3.Row
            if wal_mode and db_path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA_SQL)
            conn.commit()
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailable(f"cannot open {db_path}: {exc}") from exc
        self._conn = conn
        logger.debug("MemoStore opened: %s (cap=%d)", db_path, cap)

    # -- Lifecycle ---------------------------------------------------------

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def cap(self) -> int:
        return self._cap

    def close(self) -> None:
        """Close the underlying connection. Safe to call twice."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> MemoStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("store is closed")
        return self._conn

    # -- Writes ------------------------------------------------------------

    def insert(self, cmd: str) -> int:
        """Append a command and trim to capacity. Returns the new entry id.

        Insert and trim run in one transaction: either both land or neither.
        """
        conn = self._connection()
        try:
            with conn:
                cur = conn.execute(
                    "INSERT INTO memos (cmd, created_at) VALUES (?, ?)",
                    (cmd, int(time.time())),
                )
                entry_id = cur.lastrowid
                self._trim(conn)
        except sqlite3.Error as exc:
            raise StorageError(f"insert failed: {exc}") from exc
        logger.debug("Inserted memo id=%s", entry_id)
        return entry_id

    def enforce_capacity(self) -> int:
        """Delete the oldest entries beyond the cap. Returns rows deleted."""
        conn = self._connection()
        try:
            with conn:
                return self._trim(conn)
        except sqlite3.Error as exc:
            raise StorageError(f"capacity trim failed: {exc}") from exc

    def _trim(self, conn: sqlite3.Connection) -> int:
        """Delete exactly count - cap smallest ids (caller owns the transaction)."""
        count = conn.execute("SELECT COUNT(*) FROM memos").fetchone()[0]
        excess = count - self._cap
        if excess <= 0:
            return 0
        conn.execute(
            "DELETE FROM memos WHERE id IN ("
            "SELECT id FROM memos ORDER BY id ASC LIMIT ?)",
            (excess,),
        )
        logger.debug("Trimmed %d oldest memo(s) (cap=%d)", excess, self._cap)
        return excess

    # -- Reads -------------------------------------------------------------

    def count(self) -> int:
        """Number of entries currently stored."""
        try:
            return self._connection().execute(
                "SELECT COUNT(*) FROM memos"
            ).fetchone()[0]
        except sqlite3.Error as exc:
            raise StorageError(f"count failed: {exc}") from exc

    def most_recent(self) -> Optional[MemoEntry]:
        """The entry with the largest id, or None if the log is empty."""
        return self.entry_at_offset(0)

    def entry_at_offset(self, offset: int) -> Optional[MemoEntry]:
        """Entry at 0-based *offset* in id-descending order, or None."""
        if offset < 0 or offset > _SQLITE_INT_MAX:
            # SQLite treats a negative OFFSET as 0 and rejects values
            # outside a signed 64-bit integer.
            return None
        try:
            row = self._connection().execute(
                "SELECT id, cmd, created_at FROM memos "
                "ORDER BY id DESC LIMIT 1 OFFSET ?",
                (offset,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"lookup failed: {exc}") from exc
        return MemoEntry.from_row(row) if row is not None else None

    def scan_descending(self) -> Iterator[MemoEntry]:
        """Yield entries most recent first. Each call starts a fresh scan."""
        try:
            cur = self._connection().execute(
                "SELECT id, cmd, created_at FROM memos ORDER BY id DESC"
            )
            for row in cur:
                yield MemoEntry.from_row(row)
        except sqlite3.Error as exc:
            raise StorageError(f"scan failed: {exc}") from exc
