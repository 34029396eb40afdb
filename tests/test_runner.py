"""
Tests for memo.runner — the run state machine and the shell executor.

Author: memo contributors
"""

import sys
import pytest

from memo.policy import SafetyPolicy
from memo.runner import EXIT_FAILURE, run_index, shell_executor
from memo.store import MemoStore


@pytest.fixture
def store():
    s = MemoStore(":memory:")
    yield s
    s.close()


class Recorder:
    """Fake executor/confirmation gate that records calls."""

    def __init__(self, exit_code=0, answer=False):
        self.exit_code = exit_code
        self.answer = answer
        self.executed = []
        self.asked = 0

    def execute(self, cmd):
        self.executed.append(cmd)
        return self.exit_code

    def confirm(self):
        self.asked += 1
        return self.answer


class TestRunIndex:
    def test_not_found(self, store):
        rec = Recorder()
        out = run_index(store, 1, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.state == "not_found"
        assert out.exit_code == EXIT_FAILURE
        assert rec.executed == []

    def test_index_zero_not_found(self, store):
        store.insert("ls")
        rec = Recorder()
        out = run_index(store, 0, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.state == "not_found"

    def test_safe_runs_without_asking(self, store):
        store.insert("ls -la")
        rec = Recorder(exit_code=0)
        out = run_index(store, 1, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.state == "executed"
        assert out.exit_code == 0
        assert rec.asked == 0
        assert rec.executed == ["ls -la"]

    def test_exit_code_propagated(self, store):
        store.insert("make test")
        rec = Recorder(exit_code=7)
        out = run_index(store, 1, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.exit_code == 7

    def test_dangerous_declined(self, store):
        store.insert("rm -rf build")
        rec = Recorder(answer=False)
        out = run_index(store, 1, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.state == "declined"
        assert out.exit_code == EXIT_FAILURE
        assert out.verdict.matched == ["rm"]
        assert rec.asked == 1
        assert rec.executed == []

    def test_dangerous_confirmed(self, store):
        store.insert("sudo systemctl restart nginx")
        rec = Recorder(exit_code=0, answer=True)
        out = run_index(store, 1, confirm_fn=rec.confirm, execute=rec.execute)
        assert out.state == "executed"
        assert rec.executed == ["sudo systemctl restart nginx"]

    def test_resolves_by_relative_index(self, store):
        for cmd in ("first", "second", "third"):
            store.insert(cmd)
        rec = Recorder()
        run_index(store, 3, confirm_fn=rec.confirm, execute=rec.execute)
        assert rec.executed == ["first"]

    def test_custom_policy(self, store):
        store.insert("rm -rf build")
        rec = Recorder()
        out = run_index(
            store, 1, policy=SafetyPolicy(rules=[]),
            confirm_fn=rec.confirm, execute=rec.execute,
        )
        assert out.state == "executed"
        assert rec.asked == 0


@pytest.mark.skipif(sys.platform == "win32", reason="needs sh")
class TestShellExecutor:
    def test_exit_status(self):
        assert shell_executor()("exit 0") == 0
        assert shell_executor()("exit 5") == 5

    def test_shell_syntax(self, tmp_path):
        out = tmp_path / "out.txt"
        code = shell_executor()(f'for i in 1 2; do echo $i; done > "{out}"')
        assert code == 0
        assert out.read_text().split() == ["1", "2"]

    def test_missing_shell(self):
        assert shell_executor("/nonexistent/shell")("true") == EXIT_FAILURE

    def test_killed_by_signal(self):
        assert shell_executor()("kill -TERM $$") == EXIT_FAILURE
