"""
memo CLI — Recall Recently Typed Shell Commands

Commands:
    memo                      — save last history command, list recent
    memo <query...>           — list matches (case-insensitive substring)
    memo <N>                  — copy command N to the clipboard
    memo run <N>              — execute command N (asks first if dangerous)
    memo print <N>            — print command N
    memo list [query...]      — list recent, optionally filtered
    memo save [cmd...]        — save given text, or the last history command
    memo _list                — full log as "N<TAB>cmd" (shell integration)

Indexes count from the most recent entry (1) over the whole log, so the
number shown in a filtered listing is the one to pass to run/print/copy.

Environment variables:
    MEMO_DB       Path to SQLite database (default: <state-dir>/memo/memo.sqlite3)
    MEMO_LIMIT    Default listing size (default: 10)
    MEMO_CONFIG   Path to config.json (default: <config-dir>/memo/config.json)
    HISTFILE      Shell history file (default: ~/.zsh_history)

Exit codes:
    0  Success (including empty listings and skipped saves)
    1  Not found, declined, or storage unavailable
    2  Malformed arguments (missing or non-numeric index)
    run: the exit code of the executed command

Author: memo contributors
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, Dict, List, Optional

from memo.clipboard import ClipboardUnavailable, candidates_from_config, copy_to_clipboard
from memo.config import resolve_config
from memo.context import MemoContext, open_context
from memo.history import HistoryUnavailable
from memo.ingest import maybe_save, save_last_history
from memo.query import EntryNotFound, list_commands, require_entry
from memo.runner import EXIT_FAILURE, run_index, shell_executor
from memo.store import StorageError, StorageUnavailable
from memo.types import ListedCommand, MemoEntry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2

USAGE = """\
usage:
  memo                  save last command and list
  memo <query>          list filtered commands
  memo <N>              copy command N
  memo run <N>          execute command N
  memo print <N>        print command N
  memo list [query]     list commands
  memo save [cmd...]    save last or explicit command
"""


# ---------------------------------------------------------------------------
# Stderr helpers
# ---------------------------------------------------------------------------


def _warn(msg: str) -> None:
    """Print a diagnostic to stderr."""
    print(msg, file=sys.stderr)


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _is_index(value: str) -> bool:
    return value.isascii() and value.isdigit()


def _index_arg(value: str) -> int:
    """argparse type for a relative index: non-negative decimal integer."""
    if not _is_index(value):
        raise argparse.ArgumentTypeError(f"invalid index: {value!r}")
    return int(value)


def _parse_index(command: str, args: List[str]) -> int:
    """Parse ``memo <command> <N>``. Exits 2 (via argparse) on bad input."""
    parser = argparse.ArgumentParser(
        prog=f"memo {command}",
        description=f"{command} the command at relative index N",
    )
    parser.add_argument("index", type=_index_arg, metavar="N",
                        help="relative index (1 = most recent)")
    return parser.parse_args(args).index


def _lookup(ctx: MemoContext, index: int) -> MemoEntry:
    """Resolve index N; storage errors count as not found."""
    try:
        return require_entry(ctx.store, index)
    except StorageError as e:
        logger.warning("Lookup of [%d] failed: %s", index, e)
        raise EntryNotFound(index) from e


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def _safe_list(ctx: MemoContext, limit: int, query: Optional[str] = None) -> List[ListedCommand]:
    """list_commands() with storage errors degraded to an empty listing."""
    try:
        return list_commands(ctx.store, limit, query)
    except StorageError as e:
        logger.warning("Listing failed: %s", e)
        return []


def _print_rows(rows: List[ListedCommand]) -> None:
    if not rows:
        print("no entries")
        return
    for idx, cmd in rows:
        print(f"[{idx}] {cmd}")


def _join_query(words: List[str]) -> Optional[str]:
    return " ".join(words) if words else None


# ===========================================================================
# Commands
# ===========================================================================


def cmd_default(ctx: MemoContext, args: List[str]) -> int:
    """Bare ``memo``: auto-save the last typed command, then list."""
    try:
        save_last_history(ctx.store, ctx.config.history)
    except HistoryUnavailable as e:
        logger.debug("Auto-save skipped: %s", e)
    _print_rows(_safe_list(ctx, ctx.config.listing.default_limit))
    return EXIT_OK


def cmd_list(ctx: MemoContext, args: List[str]) -> int:
    """List recent commands, optionally filtered by the joined arguments."""
    rows = _safe_list(ctx, ctx.config.listing.default_limit, _join_query(args))
    _print_rows(rows)
    return EXIT_OK


def cmd_save(ctx: MemoContext, args: List[str]) -> int:
    """Save explicit text, or the last history command."""
    if args:
        maybe_save(ctx.store, " ".join(args))
        print("saved")
        return EXIT_OK
    try:
        save_last_history(ctx.store, ctx.config.history)
    except HistoryUnavailable as e:
        logger.debug("%s", e)
        print("no history command found")
        return EXIT_OK
    print("saved")
    return EXIT_OK


def cmd_print(ctx: MemoContext, args: List[str]) -> int:
    """Print the command at index N (stdout: command text only)."""
    index = _parse_index("print", args)
    try:
        entry = _lookup(ctx, index)
    except EntryNotFound:
        _warn("not found")
        return EXIT_FAILURE
    print(entry.cmd)
    return EXIT_OK


def cmd_run(ctx: MemoContext, args: List[str]) -> int:
    """Execute the command at index N and return its exit code."""
    index = _parse_index("run", args)
    try:
        outcome = run_index(
            ctx.store, index,
            policy=ctx.policy,
            execute=shell_executor(ctx.config.run.shell),
        )
    except StorageError as e:
        logger.warning("Lookup of [%d] failed: %s", index, e)
        _warn("not found")
        return EXIT_FAILURE
    if outcome.state == "not_found":
        _warn("not found")
    return outcome.exit_code


def cmd_copy(ctx: MemoContext, args: List[str]) -> int:
    """Copy the command at index N; print it when no clipboard is usable."""
    index = int(args[0])
    try:
        entry = _lookup(ctx, index)
    except EntryNotFound:
        _warn("not found")
        return EXIT_FAILURE
    try:
        copy_to_clipboard(entry.cmd, candidates_from_config(ctx.config.clipboard.candidates))
    except ClipboardUnavailable as e:
        logger.debug("Clipboard: %s", e)
        print(entry.cmd)
        _warn("warning: clipboard unavailable")
        return EXIT_OK
    print(f"copied [{index}]")
    return EXIT_OK


def cmd_dump(ctx: MemoContext, args: List[str]) -> int:
    """Internal: the whole log as ``N<TAB>cmd`` lines for shell widgets."""
    for idx, cmd in _safe_list(ctx, ctx.store.cap):
        print(f"{idx}\t{cmd}")
    return EXIT_OK


def cmd_query(ctx: MemoContext, args: List[str]) -> int:
    """``memo <query...>``: filtered listing."""
    return cmd_list(ctx, args)


_COMMANDS: Dict[str, Callable[[MemoContext, List[str]], int]] = {
    "list": cmd_list,
    "save": cmd_save,
    "print": cmd_print,
    "run": cmd_run,
    "_list": cmd_dump,
}


def dispatch(ctx: MemoContext, argv: List[str]) -> int:
    """Route argv (without the program name) to a command."""
    if not argv:
        return cmd_default(ctx, [])
    func = _COMMANDS.get(argv[0])
    if func is not None:
        return func(ctx, argv[1:])
    if len(argv) == 1 and _is_index(argv[0]):
        return cmd_copy(ctx, argv)
    return cmd_query(ctx, argv)


# ===========================================================================
# Entry point
# ===========================================================================


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point: memo [-v] [command] [args]."""
    argv = list(sys.argv[1:] if argv is None else argv)

    verbose = False
    while argv and argv[0] in ("-v", "--verbose"):
        verbose = True
        argv.pop(0)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s %(levelname)s %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING)

    if argv and argv[0] in ("-h", "--help"):
        print(USAGE, end="")
        return EXIT_OK

    try:
        config = resolve_config()
        with open_context(config) as ctx:
            return dispatch(ctx, argv)
    except SystemExit as e:
        # argparse usage errors (2) and -h inside a subcommand (0)
        return e.code if isinstance(e.code, int) else EXIT_USAGE
    except StorageUnavailable as e:
        _warn(f"db error: {e}")
        return EXIT_FAILURE
    except BrokenPipeError:
        # e.g. memo _list | head
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        _warn(f"Internal error: {e}")
        if verbose:
            import traceback
            traceback.print_exc(file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
