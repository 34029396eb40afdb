"""
Shell history scan — best-effort "last typed command".

Understands plain history files (one command per line), zsh
EXTENDED_HISTORY lines (``: <epoch>:<duration>;<command>``) and bash
HISTTIMEFORMAT comment lines (``#<epoch>``), which are skipped.
Invocations of memo itself are never returned, otherwise a bare ``memo``
would always record itself.

Author: memo contributors
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_HISTFILE = "~/.zsh_history"
DEFAULT_SKIP_COMMANDS = ("memo",)

_EXTENDED_RE = re.compile(r"^:\s*\d+:\d+;")
_BASH_TIMESTAMP_RE = re.compile(r"^#\d+$")


class HistoryUnavailable(LookupError):
    """Raised when no history file is found or it holds no usable command."""


def history_path(histfile: Optional[str] = None) -> Path:
    """Resolve the history file: explicit > $HISTFILE > ~/.zsh_history."""
    raw = histfile or os.environ.get("HISTFILE") or DEFAULT_HISTFILE
    return Path(os.path.expanduser(raw))


def parse_history_line(line: str) -> str:
    """Strip the zsh extended-history prefix (if any) and surrounding blanks."""
    if line.startswith(":"):
        m = _EXTENDED_RE.match(line)
        if m:
            line = line[m.end():]
    return line.strip()


def _is_skipped(cmd: str, skip_commands: Iterable[str]) -> bool:
    for name in skip_commands:
        if cmd == name or cmd.startswith(name + " "):
            return True
    return False


def last_command(
    lines: Sequence[str], skip_commands: Iterable[str] = DEFAULT_SKIP_COMMANDS,
) -> Optional[str]:
    """Return the most recent usable command from history *lines*, or None."""
    skip = tuple(skip_commands)
    for raw in reversed(lines):
        if not raw or _BASH_TIMESTAMP_RE.match(raw):
            continue
        cmd = parse_history_line(raw)
        if not cmd or _is_skipped(cmd, skip):
            continue
        return cmd
    return None


def read_last_command(
    histfile: Optional[str] = None,
    skip_commands: Iterable[str] = DEFAULT_SKIP_COMMANDS,
) -> str:
    """Read the history file and return the last typed command.

    Raises:
        HistoryUnavailable: file missing, unreadable, or nothing usable in it.
    """
    path = history_path(histfile)
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.debug("History file unavailable (%s): %s", path, exc)
        raise HistoryUnavailable(f"no history file at {path}") from exc

    # zsh writes metafied bytes; replacement keeps the scan going.
    text = data.decode("utf-8", errors="replace")
    cmd = last_command(text.splitlines(), skip_commands)
    if cmd is None:
        raise HistoryUnavailable(f"no usable command in {path}")
    return cmd
