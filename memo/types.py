"""
Command Data Model

Defines the stored command record and the listing row. Entries are immutable
once written; the only way an entry leaves the store is the capacity trim.

Author: memo contributors
"""

from __future__ import annotations

import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, NamedTuple

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DB_CAP = 200
DEFAULT_LIMIT = 10


def _now_epoch() -> int:
    """Current time as integer seconds since the epoch."""
    return int(time.time())


# ---------------------------------------------------------------------------
# MemoEntry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoEntry:
    """
    One stored command.

    Rules:
    - id is assigned by the store, strictly increasing, never reused.
    - cmd is opaque text; no shell parsing happens anywhere in memo.
    - The relative index shown to users is NOT stored here; it is derived
      from the position of the entry in id-descending order.
    """

    id: int
    cmd: str
    created_at: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize entry to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_row(cls, row) -> MemoEntry:
        """Build an entry from a sqlite3.Row (or any mapping with the columns)."""
        return cls(id=row["id"], cmd=row["cmd"], created_at=row["created_at"])


class ListedCommand(NamedTuple):
    """One listing row: relative index over the full log, and the command."""

    index: int
    cmd: str
