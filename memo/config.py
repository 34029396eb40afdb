"""
memo Configuration

Configuration dataclasses for memo: store, listing, history scan, safety
rules, clipboard candidates and command execution.  Includes load_config()
for reading a JSON config file with silent fallback to compiled defaults,
and resolve_config() which layers MEMO_* environment variables on top.

Precedence (invariant):
    MEMO_* env var  >  config.json  >  compiled default

Author: memo contributors
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from memo.types import DB_CAP, DEFAULT_LIMIT


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(ValueError):
    """Raised when config values are out of valid range."""

    pass


def _check_range(
    errors: List[str], name: str, value, lo, hi, typ=None,
) -> None:
    """Append an error message if value is out of [lo, hi] or wrong type."""
    if typ is not None and not isinstance(value, typ):
        errors.append(f"{name}: expected {typ.__name__}, got {type(value).__name__}")
        return
    if value < lo or value > hi:
        errors.append(f"{name}: {value} not in [{lo}, {hi}]")


# ---------------------------------------------------------------------------
# Platform directories
# ---------------------------------------------------------------------------


def _expand_base(value: Optional[str], fallback: str) -> Path:
    """Return an XDG base directory, expanding a leading '~'."""
    base = value or fallback
    return Path(os.path.expanduser(base))


def state_dir() -> Path:
    """State base directory: $XDG_STATE_HOME or ~/.local/state."""
    return _expand_base(os.environ.get("XDG_STATE_HOME"), "~/.local/state")


def config_dir() -> Path:
    """Config base directory: $XDG_CONFIG_HOME or ~/.config."""
    return _expand_base(os.environ.get("XDG_CONFIG_HOME"), "~/.config")


def default_db_path() -> str:
    """Default database location: <state-dir>/memo/memo.sqlite3."""
    return str(state_dir() / "memo" / "memo.sqlite3")


def default_config_path() -> str:
    """Default config file location: <config-dir>/memo/config.json."""
    return str(config_dir() / "memo" / "config.json")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass
class StoreConfig:
    """SQLite store configuration."""
    db_path: Optional[str] = None
    cap: int = DB_CAP
    wal_mode: bool = True
    busy_timeout: float = 5.0

    def resolved_db_path(self) -> str:
        """Return db_path, or the state-directory default when unset."""
        return self.db_path or default_db_path()

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: List[str] = []
        _check_range(errors, "store.cap", self.cap, 1, 100000, int)
        if isinstance(self.busy_timeout, (int, float)):
            _check_range(errors, "store.busy_timeout",
                         self.busy_timeout, 0, 600)
        else:
            errors.append("store.busy_timeout: expected number, "
                          f"got {type(self.busy_timeout).__name__}")
        return errors


@dataclass
class ListingConfig:
    """Listing defaults."""
    default_limit: int = DEFAULT_LIMIT

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: List[str] = []
        _check_range(errors, "listing.default_limit",
                     self.default_limit, 1, 10000, int)
        return errors


@dataclass
class HistoryConfig:
    """Shell history scan configuration."""
    histfile: Optional[str] = None
    skip_commands: List[str] = field(default_factory=lambda: ["memo"])

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: List[str] = []
        if self.histfile is not None and not isinstance(self.histfile, str):
            errors.append("history.histfile: expected str or null")
        if not isinstance(self.skip_commands, list) or not all(
            isinstance(c, str) and c for c in self.skip_commands
        ):
            errors.append("history.skip_commands: expected list of non-empty strings")
        return errors


@dataclass
class SafetyConfig:
    """Danger classifier configuration."""
    enabled: bool = True
    extra_patterns: List[str] = field(default_factory=list)

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: List[str] = []
        if not isinstance(self.enabled, bool):
            errors.append(f"safety.enabled: expected bool, got {type(self.enabled).__name__}")
        if not isinstance(self.extra_patterns, list):
            errors.append("safety.extra_patterns: expected list of strings, "
                          f"got {type(self.extra_patterns).__name__}")
            return errors
        for i, pattern in enumerate(self.extra_patterns):
            if not isinstance(pattern, str):
                errors.append(f"safety.extra_patterns[{i}]: expected str, "
                              f"got {type(pattern).__name__}")
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(f"safety.extra_patterns[{i}]: invalid regex ({e})")
        return errors


@dataclass
class ClipboardConfig:
    """Clipboard program candidates (None = built-in probe order)."""
    candidates: Optional[List[Dict[str, Any]]] = None

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: List[str] = []
        if self.candidates is None:
            return errors
        if not isinstance(self.candidates, list):
            return ["clipboard.candidates: expected list or null"]
        for i, cand in enumerate(self.candidates):
            argv = cand.get("argv") if isinstance(cand, dict) else None
            if not argv or not isinstance(argv, list) or not all(
                isinstance(a, str) for a in argv
            ):
                errors.append(f"clipboard.candidates[{i}]: 'argv' must be a non-empty list of strings")
        return errors


@dataclass
class RunConfig:
    """Command execution configuration."""
    shell: str = "sh"

    def validate(self) -> List[str]:
        """Return list of validation error messages (empty = valid)."""
        if not isinstance(self.shell, str):
            return [f"run.shell: expected str, got {type(self.shell).__name__}"]
        if not self.shell:
            return ["run.shell: must not be empty"]
        return []


# ---------------------------------------------------------------------------
# Top-level
# ---------------------------------------------------------------------------


@dataclass
class MemoConfig:
    """Top-level memo configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    safety: SafetyConfig = field(default_factory=SafetyConfig)
    clipboard: ClipboardConfig = field(default_factory=ClipboardConfig)
    run: RunConfig = field(default_factory=RunConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> MemoConfig:
        """Build config from a nested dict (e.g. JSON)."""
        kwargs: Dict[str, Any] = {}
        if "store" in d:
            kwargs["store"] = StoreConfig(**d["store"])
        if "listing" in d:
            kwargs["listing"] = ListingConfig(**d["listing"])
        if "history" in d:
            kwargs["history"] = HistoryConfig(**d["history"])
        if "safety" in d:
            kwargs["safety"] = SafetyConfig(**d["safety"])
        if "clipboard" in d:
            kwargs["clipboard"] = ClipboardConfig(**d["clipboard"])
        if "run" in d:
            kwargs["run"] = RunConfig(**d["run"])
        return cls(**kwargs)

    def validate(self) -> List[str]:
        """Validate all config sections. Returns list of error messages."""
        errors: List[str] = []
        errors.extend(self.store.validate())
        errors.extend(self.listing.validate())
        errors.extend(self.history.validate())
        errors.extend(self.safety.validate())
        errors.extend(self.clipboard.validate())
        errors.extend(self.run.validate())
        return errors


def load_config(
    path: Optional[str] = None, *, strict: bool = False,
) -> MemoConfig:
    """Load config from a JSON file. Returns defaults if file missing/invalid.

    Args:
        path: Path to config.json. If None, returns compiled defaults.
        strict: If True, raise ValidationError on invalid config values.

    Returns:
        MemoConfig with values from file or defaults.

    Raises:
        ValidationError: If strict=True and config values are out of range.
    """
    if path is None:
        return MemoConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        cfg = MemoConfig.from_dict(data)
        errors = cfg.validate()
    except (OSError, ValueError, TypeError, KeyError, AttributeError):
        # Unreadable, undecodable or malformed files are never fatal.
        return MemoConfig()

    if errors:
        if strict:
            raise ValidationError(
                f"Config validation failed: {'; '.join(errors)}"
            )
        return MemoConfig()

    return cfg


# ---------------------------------------------------------------------------
# Environment overlay
# ---------------------------------------------------------------------------


def _env_int(name: str, default: int) -> int:
    """Parse integer env var with fallback. Never raises on bad input."""
    v = os.environ.get(name)
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def resolve_config(path: Optional[str] = None) -> MemoConfig:
    """Load the effective configuration for one CLI invocation.

    Config file: *path* > MEMO_CONFIG > <config-dir>/memo/config.json.
    Then MEMO_DB, MEMO_LIMIT and HISTFILE override the file values
    (HISTFILE only fills an unset history.histfile).
    """
    cfg_path = path or os.environ.get("MEMO_CONFIG") or default_config_path()
    cfg = load_config(cfg_path)

    db = os.environ.get("MEMO_DB")
    if db:
        cfg.store.db_path = db

    limit = _env_int("MEMO_LIMIT", cfg.listing.default_limit)
    if limit >= 1:
        cfg.listing.default_limit = limit

    if not cfg.history.histfile and os.environ.get("HISTFILE"):
        cfg.history.histfile = os.environ["HISTFILE"]

    return cfg
