"""
memo — Recall, search, copy and re-run recently typed shell commands.

One file, one log. Commands live in a single capped SQLite table under the
user's state directory; the newest entry is always index 1.

Author: memo contributors
"""

__version__ = "0.1.0"

from memo.types import MemoEntry, ListedCommand, DB_CAP, DEFAULT_LIMIT
from memo.store import MemoStore, StorageError, StorageUnavailable
from memo.query import EntryNotFound, list_commands, resolve_index
from memo.ingest import maybe_save
from memo.policy import SafetyPolicy, is_dangerous
from memo.config import MemoConfig

__all__ = [
    "__version__",
    "MemoEntry",
    "ListedCommand",
    "DB_CAP",
    "DEFAULT_LIMIT",
    "MemoStore",
    "StorageError",
    "StorageUnavailable",
    "EntryNotFound",
    "list_commands",
    "resolve_index",
    "maybe_save",
    "SafetyPolicy",
    "is_dangerous",
    "MemoConfig",
]
