"""
Clipboard sink — best-effort copy through an external program.

The probe order is data: an ordered list of ClipboardCandidate, each naming
the argv to run and the platforms it applies to.  The first candidate for
the current platform whose program is on PATH wins.

Author: memo contributors
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class ClipboardUnavailable(RuntimeError):
    """Raised when no clipboard program is usable or the copy failed."""


@dataclass(frozen=True)
class ClipboardCandidate:
    """One clipboard program. Empty *platforms* = any platform."""

    argv: Tuple[str, ...]
    platforms: Tuple[str, ...] = ()
    exclude_platforms: Tuple[str, ...] = ()

    def applies_to(self, platform: str) -> bool:
        if platform in self.exclude_platforms:
            return False
        return not self.platforms or platform in self.platforms

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ClipboardCandidate:
        return cls(
            argv=tuple(d["argv"]),
            platforms=tuple(d.get("platforms", ())),
            exclude_platforms=tuple(d.get("exclude_platforms", ())),
        )


# macOS only ever uses pbcopy; the X11/Wayland tools are ignored there.
DEFAULT_CANDIDATES: List[ClipboardCandidate] = [
    ClipboardCandidate(("pbcopy",), platforms=("darwin",)),
    ClipboardCandidate(("wl-copy",), exclude_platforms=("darwin",)),
    ClipboardCandidate(("xclip", "-selection", "clipboard"), exclude_platforms=("darwin",)),
    ClipboardCandidate(("xsel", "--clipboard", "--input"), exclude_platforms=("darwin",)),
]


def candidates_from_config(
    raw: Optional[List[Dict[str, Any]]],
) -> List[ClipboardCandidate]:
    """Build candidates from config data (None = built-in defaults)."""
    if raw is None:
        return list(DEFAULT_CANDIDATES)
    return [ClipboardCandidate.from_dict(d) for d in raw]


def find_clipboard_command(
    candidates: Optional[Sequence[ClipboardCandidate]] = None,
    platform: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Optional[Tuple[str, ...]]:
    """Return argv of the first usable candidate, or None."""
    platform = platform or sys.platform
    for cand in DEFAULT_CANDIDATES if candidates is None else candidates:
        if cand.applies_to(platform) and which(cand.argv[0]):
            return cand.argv
    return None


def copy_to_clipboard(
    text: str,
    candidates: Optional[Sequence[ClipboardCandidate]] = None,
) -> Tuple[str, ...]:
    """Pipe *text* into the clipboard program. Returns the argv used.

    Raises:
        ClipboardUnavailable: no program found, spawn failure, or non-zero exit.
    """
    argv = find_clipboard_command(candidates)
    if argv is None:
        raise ClipboardUnavailable("no clipboard program found")
    try:
        proc = subprocess.run(
            list(argv), input=text, text=True,
            stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise ClipboardUnavailable(f"{argv[0]}: {exc}") from exc
    if proc.returncode != 0:
        raise ClipboardUnavailable(f"{argv[0]} exited with {proc.returncode}")
    logger.debug("Copied %d chars via %s", len(text), argv[0])
    return argv
