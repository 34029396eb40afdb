"""
Invocation context.

Bundles the effective configuration and the single store connection of one
invocation.  Commands receive it explicitly; nothing in memo keeps a
module-level connection, so tests can hand in an in-memory store.

Author: memo contributors
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from memo.config import MemoConfig
from memo.policy import SafetyPolicy
from memo.store import MemoStore


@dataclass
class MemoContext:
    """Everything a command needs: config, open store, safety policy."""

    config: MemoConfig
    store: MemoStore
    policy: Optional[SafetyPolicy] = None

    def __post_init__(self) -> None:
        if self.policy is None:
            self.policy = SafetyPolicy(config=self.config.safety)


def open_store(config: MemoConfig) -> MemoStore:
    """Open the store described by config.store.

    Raises:
        StorageUnavailable: the database cannot be opened or initialized.
    """
    sc = config.store
    return MemoStore(
        db_path=sc.resolved_db_path(),
        cap=sc.cap,
        wal_mode=sc.wal_mode,
        busy_timeout=sc.busy_timeout,
    )


@contextmanager
def open_context(
    config: Optional[MemoConfig] = None,
    store: Optional[MemoStore] = None,
) -> Iterator[MemoContext]:
    """Yield a MemoContext; the store is closed on every exit path."""
    config = config or MemoConfig()
    store = store or open_store(config)
    try:
        yield MemoContext(config=config, store=store)
    finally:
        store.close()
