"""
Execution Safety — Danger Classifier

Flags recalled commands that look destructive or privilege-escalating so
that ``memo run`` asks before executing them.  Detection is a plain regex
scan over the literal command text: there is no shell parsing, so a path
component named ``rm`` is flagged and an aliased ``rm`` is not.

Rules are data (DangerRule); callers and tests may pass their own set.

Author: memo contributors
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import IO, List, Optional, Sequence

from memo.config import SafetyConfig

logger = logging.getLogger(__name__)

CONFIRM_PROMPT = "dangerous command, run? [y/N] "


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DangerRule:
    """One named danger pattern."""

    name: str
    pattern: re.Pattern

    @classmethod
    def compile(cls, name: str, regex: str) -> DangerRule:
        return cls(name=name, pattern=re.compile(regex))

    def matches(self, cmd: str) -> bool:
        return self.pattern.search(cmd) is not None


DEFAULT_DANGER_RULES: List[DangerRule] = [
    DangerRule.compile("rm", r"\brm\b"),
    DangerRule.compile("sudo", r"\bsudo\b"),
    DangerRule.compile("dd", r"\bdd\b"),
    DangerRule.compile("mkfs", r"\bmkfs"),  # mkfs, mkfs.ext4, ...
    DangerRule.compile("shutdown", r"\bshutdown\b"),
    DangerRule.compile("reboot", r"\breboot\b"),
    DangerRule.compile("poweroff", r"\bpoweroff\b"),
    DangerRule.compile("pipe-to-sh", r"\|\s*sh\b"),
]


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------

@dataclass
class SafetyVerdict:
    """Result of classifying one command."""

    dangerous: bool
    matched: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

class SafetyPolicy:
    """
    Classifies commands against danger rules.

    The built-in rules come first; ``safety.extra_patterns`` from config are
    appended as ``extra#<i>``.  With ``safety.enabled = false`` nothing is
    ever flagged.
    """

    def __init__(
        self,
        rules: Optional[Sequence[DangerRule]] = None,
        config: Optional[SafetyConfig] = None,
    ):
        self._config = config or SafetyConfig()
        base = list(DEFAULT_DANGER_RULES if rules is None else rules)
        for i, regex in enumerate(self._config.extra_patterns):
            base.append(DangerRule.compile(f"extra#{i}", regex))
        self._rules = base

    @property
    def rules(self) -> List[DangerRule]:
        return list(self._rules)

    def evaluate(self, cmd: str) -> SafetyVerdict:
        """Return the verdict with the names of every matching rule."""
        if not self._config.enabled:
            return SafetyVerdict(dangerous=False)
        matched = [rule.name for rule in self._rules if rule.matches(cmd)]
        if matched:
            logger.debug("Command flagged dangerous by %s", ", ".join(matched))
        return SafetyVerdict(dangerous=bool(matched), matched=matched)

    def is_dangerous(self, cmd: str) -> bool:
        return self.evaluate(cmd).dangerous


def is_dangerous(cmd: str) -> bool:
    """Classify *cmd* with the built-in rule set."""
    return SafetyPolicy().is_dangerous(cmd)


# ---------------------------------------------------------------------------
# Confirmation gate
# ---------------------------------------------------------------------------

def confirm(
    prompt: str = CONFIRM_PROMPT,
    stdin: Optional[IO[str]] = None,
    stdout: Optional[IO[str]] = None,
) -> bool:
    """Ask for confirmation. Only 'y' or 'yes' (any case) count as consent.

    EOF, read errors and any other answer decline.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    stdout.write(prompt)
    stdout.flush()
    try:
        answer = stdin.readline()
    except (OSError, ValueError) as e:
        logger.debug("Confirmation read failed: %s", e)
        return False
    if not answer:
        return False
    return answer.strip().lower() in ("y", "yes")
