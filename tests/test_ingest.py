"""
Tests for memo.ingest — dedup-on-save and history auto-save.

Author: memo contributors
"""

import pytest

from memo.config import HistoryConfig
from memo.history import HistoryUnavailable
from memo.ingest import maybe_save, save_last_history
from memo.store import MemoStore


@pytest.fixture
def store():
    s = MemoStore(":memory:")
    yield s
    s.close()


def _cmds(store):
    return [e.cmd for e in store.scan_descending()]


class TestMaybeSave:
    def test_inserts_into_empty_store(self, store):
        r = maybe_save(store, "ls -la")
        assert r.inserted
        assert r.entry_id is not None
        assert _cmds(store) == ["ls -la"]

    def test_back_to_back_duplicate_skipped(self, store):
        maybe_save(store, "ls -la")
        r = maybe_save(store, "ls -la")
        assert r.skipped
        assert store.count() == 1

    def test_duplicate_after_other_command_kept(self, store):
        """Only the most recent entry is compared, not the whole log."""
        maybe_save(store, "ls -la")
        maybe_save(store, "pwd")
        r = maybe_save(store, "ls -la")
        assert r.inserted
        assert _cmds(store) == ["ls -la", "pwd", "ls -la"]

    def test_comparison_is_exact(self, store):
        maybe_save(store, "ls -la")
        assert maybe_save(store, "ls -la ").inserted
        assert maybe_save(store, "LS -LA").inserted
        assert store.count() == 3

    def test_storage_failure_is_swallowed(self):
        s = MemoStore(":memory:")
        s.close()
        r = maybe_save(s, "ls")
        assert r.failed
        assert "closed" in r.error


class TestSaveLastHistory:
    def test_saves_last_command(self, store, tmp_path):
        hist = tmp_path / "hist"
        hist.write_text(": 1700000000:0;make\n: 1700000001:0;make test\n")
        r = save_last_history(store, HistoryConfig(histfile=str(hist)))
        assert r.inserted
        assert _cmds(store) == ["make test"]

    def test_repeated_auto_save_deduplicated(self, store, tmp_path):
        hist = tmp_path / "hist"
        hist.write_text("git status\nmemo\n")
        cfg = HistoryConfig(histfile=str(hist))
        save_last_history(store, cfg)
        save_last_history(store, cfg)
        assert _cmds(store) == ["git status"]

    def test_missing_history_raises(self, store, tmp_path):
        cfg = HistoryConfig(histfile=str(tmp_path / "nope"))
        with pytest.raises(HistoryUnavailable):
            save_last_history(store, cfg)
        assert store.count() == 0
