"""
Run a recalled command.

    resolve index ──► not_found
        │
        ▼
    classify ──safe──────────────────────┐
        │                                ▼
    dangerous ──► confirm ──yes──► execute ──► executed(exit code)
                     │
                     no ──► declined

The executor and the confirmation gate are injected so the state machine can
be driven without a terminal or a real shell.

Author: memo contributors
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from memo.policy import SafetyPolicy, SafetyVerdict, confirm
from memo.query import resolve_index
from memo.store import MemoStore

logger = logging.getLogger(__name__)

RunState = Literal["not_found", "declined", "executed"]

# Exit status reported for not-found, declined, unstartable or killed runs.
EXIT_FAILURE = 1


@dataclass
class RunOutcome:
    """Terminal state of one ``memo run``."""

    state: RunState
    exit_code: int
    cmd: Optional[str] = None
    verdict: Optional[SafetyVerdict] = None


def shell_executor(shell: str = "sh") -> Callable[[str], int]:
    """Return an executor running commands as ``<shell> -c <cmd>``.

    The child inherits stdio and runs to completion. A child killed by a
    signal, or a shell that cannot be started, reports EXIT_FAILURE.
    """

    def execute(cmd: str) -> int:
        try:
            proc = subprocess.run([shell, "-c", cmd])
        except OSError as e:
            logger.warning("Cannot start %s: %s", shell, e)
            return EXIT_FAILURE
        if proc.returncode < 0:
            logger.debug("Command killed by signal %d", -proc.returncode)
            return EXIT_FAILURE
        return proc.returncode

    return execute


def run_index(
    store: MemoStore,
    index: int,
    policy: Optional[SafetyPolicy] = None,
    confirm_fn: Callable[[], bool] = confirm,
    execute: Optional[Callable[[str], int]] = None,
) -> RunOutcome:
    """Resolve, classify, confirm if needed, then execute entry *index*."""
    entry = resolve_index(store, index)
    if entry is None:
        return RunOutcome(state="not_found", exit_code=EXIT_FAILURE)

    policy = policy or SafetyPolicy()
    verdict = policy.evaluate(entry.cmd)
    if verdict.dangerous and not confirm_fn():
        logger.info("Run of [%d] declined", index)
        return RunOutcome(
            state="declined", exit_code=EXIT_FAILURE,
            cmd=entry.cmd, verdict=verdict,
        )

    execute = execute or shell_executor()
    code = execute(entry.cmd)
    return RunOutcome(state="executed", exit_code=code, cmd=entry.cmd, verdict=verdict)
