"""
Insert policy — dedup-on-save.

A candidate command is appended unless it is byte-for-byte equal to the
current most recent entry.  Only that single entry is compared: the same
command may reappear later in the log once something else was saved in
between.

Save failures never interrupt the CLI: storage errors are logged and
reported through SaveResult, not raised.

Public API:
    maybe_save(store, candidate) -> SaveResult
    save_last_history(store, history_config) -> SaveResult

Author: memo contributors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from memo.config import HistoryConfig
from memo.history import read_last_command
from memo.store import MemoStore, StorageError

logger = logging.getLogger(__name__)

SaveAction = Literal["inserted", "skipped", "failed"]


@dataclass
class SaveResult:
    """Outcome of one save attempt."""

    action: SaveAction
    cmd: str
    entry_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def inserted(self) -> bool:
        return self.action == "inserted"

    @property
    def skipped(self) -> bool:
        return self.action == "skipped"

    @property
    def failed(self) -> bool:
        return self.action == "failed"


def maybe_save(store: MemoStore, candidate: str) -> SaveResult:
    """Insert *candidate* unless it repeats the most recent entry."""
    try:
        last = store.most_recent()
        if last is not None and last.cmd == candidate:
            logger.debug("Skipping duplicate of most recent entry id=%d", last.id)
            return SaveResult(action="skipped", cmd=candidate, entry_id=last.id)
        entry_id = store.insert(candidate)
    except StorageError as e:
        logger.warning("Could not save command: %s", e)
        return SaveResult(action="failed", cmd=candidate, error=str(e))
    return SaveResult(action="inserted", cmd=candidate, entry_id=entry_id)


def save_last_history(
    store: MemoStore, history: Optional[HistoryConfig] = None,
) -> SaveResult:
    """Save the last typed shell command through maybe_save().

    Raises:
        HistoryUnavailable: no history source or no usable command in it.
    """
    history = history or HistoryConfig()
    cmd = read_last_command(history.histfile, history.skip_commands)
    return maybe_save(store, cmd)
