"""
Tests for memo.query — relative indexes over the full log, substring filter.

Author: memo contributors
"""

import pytest

from memo.query import EntryNotFound, list_commands, require_entry, resolve_index
from memo.store import MemoStore
from memo.types import ListedCommand


@pytest.fixture
def store():
    s = MemoStore(":memory:")
    yield s
    s.close()


def _seed(store, *oldest_first):
    for cmd in oldest_first:
        store.insert(cmd)


# ---------------------------------------------------------------------------
# list_commands
# ---------------------------------------------------------------------------


class TestListCommands:
    def test_unfiltered_most_recent_first(self, store):
        _seed(store, "a", "b", "c")
        assert list_commands(store, 10) == [(1, "c"), (2, "b"), (3, "a")]

    def test_rows_are_named(self, store):
        _seed(store, "ls")
        row = list_commands(store, 10)[0]
        assert isinstance(row, ListedCommand)
        assert row.index == 1
        assert row.cmd == "ls"

    def test_filtered_keeps_full_order_index(self, store):
        """Non-matching entries still consume their index."""
        _seed(store, "git status", "ls", "git push")
        rows = list_commands(store, 10, "git")
        assert rows == [(1, "git push"), (3, "git status")]

    def test_case_insensitive(self, store):
        _seed(store, "Docker PS", "ls")
        assert list_commands(store, 10, "docker ps") == [(2, "Docker PS")]
        assert list_commands(store, 10, "LS") == [(1, "ls")]

    def test_literal_substring_not_regex(self, store):
        _seed(store, "grep a.b file", "grep axb file")
        assert list_commands(store, 10, "a.b") == [(2, "grep a.b file")]

    def test_limit_counts_matches(self, store):
        _seed(store, "git a", "ls", "git b", "ls", "git c")
        rows = list_commands(store, 2, "git")
        assert rows == [(1, "git c"), (3, "git b")]

    def test_limit_unfiltered(self, store):
        _seed(store, *[f"cmd {i}" for i in range(20)])
        rows = list_commands(store, 10)
        assert len(rows) == 10
        assert rows[0] == (1, "cmd 19")
        assert rows[-1] == (10, "cmd 10")

    def test_no_match_is_empty(self, store):
        _seed(store, "ls")
        assert list_commands(store, 10, "nothing-like-this") == []

    def test_empty_store(self, store):
        assert list_commands(store, 10) == []

    def test_zero_limit(self, store):
        _seed(store, "ls")
        assert list_commands(store, 0) == []

    def test_blank_query_means_no_filter(self, store):
        _seed(store, "a", "b")
        assert list_commands(store, 10, "   ") == list_commands(store, 10)
        assert list_commands(store, 10, "") == list_commands(store, 10)


# ---------------------------------------------------------------------------
# resolve_index
# ---------------------------------------------------------------------------


class TestResolveIndex:
    def test_index_one_is_most_recent(self, store):
        _seed(store, "old", "new")
        assert resolve_index(store, 1).cmd == "new"
        assert resolve_index(store, 2).cmd == "old"

    def test_zero_and_negative(self, store):
        _seed(store, "a")
        assert resolve_index(store, 0) is None
        assert resolve_index(store, -1) is None

    def test_past_end(self, store):
        _seed(store, "a", "b")
        assert resolve_index(store, store.count() + 1) is None

    def test_agrees_with_listing(self, store):
        _seed(store, *[f"cmd {i}" for i in range(15)])
        rows = list_commands(store, 15)
        for k, (index, cmd) in enumerate(rows, start=1):
            assert index == k
            assert resolve_index(store, k).cmd == cmd

    def test_filtered_index_resolves_same_entry(self, store):
        _seed(store, "git status", "ls", "git push")
        for index, cmd in list_commands(store, 10, "git"):
            assert resolve_index(store, index).cmd == cmd

    def test_index_shifts_after_insert(self, store):
        _seed(store, "a")
        assert resolve_index(store, 1).cmd == "a"
        store.insert("b")
        assert resolve_index(store, 1).cmd == "b"
        assert resolve_index(store, 2).cmd == "a"

    def test_round_trip(self, store):
        cmd = "find . -name '*.py' -exec wc -l {} +"
        store.insert(cmd)
        assert resolve_index(store, 1).cmd == cmd


class TestRequireEntry:
    def test_found(self, store):
        _seed(store, "ls")
        assert require_entry(store, 1).cmd == "ls"

    def test_not_found(self, store):
        with pytest.raises(EntryNotFound) as exc_info:
            require_entry(store, 3)
        assert exc_info.value.index == 3

    def test_is_lookup_error(self):
        assert issubclass(EntryNotFound, LookupError)
