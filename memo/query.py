"""
Relative-index resolution and substring filtering.

Index numbering is over the FULL id-descending order of the log: a filtered
listing shows the same index a later ``memo run <N>`` or ``memo <N>`` will
resolve, because skipped entries still consume their number.

    entries (newest first): git push, ls, git status
    list_commands(store, 10, "git") -> [(1, "git push"), (3, "git status")]

Author: memo contributors
"""

from __future__ import annotations

import logging
from typing import List, Optional

from memo.store import MemoStore
from memo.types import ListedCommand, MemoEntry

logger = logging.getLogger(__name__)


class EntryNotFound(LookupError):
    """Raised when a relative index does not denote a stored entry."""

    def __init__(self, index: int):
        super().__init__(f"no entry at index {index}")
        self.index = index


def _matches(cmd: str, needle: Optional[str]) -> bool:
    """Case-insensitive substring containment (needle already lowered)."""
    return needle is None or needle in cmd.lower()


def list_commands(
    store: MemoStore, limit: int, query: Optional[str] = None,
) -> List[ListedCommand]:
    """List up to *limit* commands, most recent first, optionally filtered.

    Every scanned entry gets its 1-based index whether or not it matches;
    only matching entries are emitted. An empty or whitespace-only query
    means no filter.
    """
    if limit <= 0:
        return []
    needle = query.lower() if query and query.strip() else None

    out: List[ListedCommand] = []
    for index, entry in enumerate(store.scan_descending(), start=1):
        if _matches(entry.cmd, needle):
            out.append(ListedCommand(index, entry.cmd))
            if len(out) >= limit:
                break
    logger.debug("list_commands(limit=%d, query=%r) -> %d row(s)",
                 limit, query, len(out))
    return out


def resolve_index(store: MemoStore, index: int) -> Optional[MemoEntry]:
    """Map relative index N (1 = most recent) to its entry, or None."""
    if index < 1:
        return None
    return store.entry_at_offset(index - 1)


def require_entry(store: MemoStore, index: int) -> MemoEntry:
    """Like resolve_index() but raises EntryNotFound instead of returning None."""
    entry = resolve_index(store, index)
    if entry is None:
        raise EntryNotFound(index)
    return entry
