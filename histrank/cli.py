"""
cli.py - Rank a shell history file by usage and rewrite it after review.

**Pipeline**

1.  **Exclusion:** `--exclude` / `--exclude-regex` are compiled into one predicate
    before the file is even opened, so a bad pattern never starts a ranking.
2.  **Ranking:** `histrank.ranking.rank` folds the lines into a deduplicated list.
3.  **Review:** unless `--save` is given, the list is shown in an inline viewport
    (or full screen with `--fullscreen`) with Save/Discard buttons. Entries can be
    dropped or nudged before confirming.
4.  **Write:** confirmed entries replace the history file, after a timestamped
    backup. Excluded entries are not written back.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.errors import MarkupError
from rich.markup import escape
from rich.text import Text
from rich.theme import Theme

from histrank import __version__
from histrank.errors import HistoryFileError, HistrankError, InvalidPatternError
from histrank.ranking import Entry, ExclusionPredicate, RankedList, lines_to_write, rank
from histrank.review import POLL_INTERVAL, Buttons, ReviewResult, ReviewSession, confirm
from histrank.syntax import format_entry
from histrank.terminal import InlineTerminal

# ============================================================================
# CONFIGURATION & CONSTANTS
# ============================================================================

CUSTOM_THEME = Theme({
    "title": "bold #C678DD",
    "context": "#5C6370",
    "info": "#61AFEF",
    "success": "#98C379",
    "warning": "#E5C07B",
    "error": "#E06C75",
})

console = Console(stderr=True, theme=CUSTOM_THEME)

# zsh EXTENDED_HISTORY prefix: ": <epoch>:<duration>;"
HISTORY_ENTRY_RE = re.compile(r"^: \d+:\d+;")

# zsh metafies history, so files are not always valid UTF-8; round-trip the raw bytes
HISTORY_ERRORS = "surrogateescape"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class Config:
    """Defaults for the command line; every one of them can be overridden by a flag."""

    header = "Ranked History"
    confirm_label = "Save ranked history"
    cancel_label = "Discard"
    poll_interval = POLL_INTERVAL
    max_list_rows = 20

    @property
    def default_history_path(self) -> Path:
        """→ $HISTFILE if set, else ~/.zsh_history"""
        histfile = os.environ.get("HISTFILE")
        if histfile:
            return Path(histfile).expanduser()
        return Path.home() / ".zsh_history"

    @property
    def buttons(self) -> Buttons:
        return Buttons(self.confirm_label, self.cancel_label)


CONFIG = Config()

# ============================================================================
# PARSING & UTILITIES
# ============================================================================


def _console_print(string="", *args, **kwargs) -> None:
    """→ Console printing that degrades to plain text on broken markup"""
    try:
        console.print(string, *args, **kwargs)
    except MarkupError:
        console.print(string, *args, markup=False, **kwargs)


def build_exclusion_predicate(
    substrings: Sequence[str] = (), patterns: Sequence[str] = ()
) -> ExclusionPredicate | None:
    """→ One predicate out of substring and regex excludes; None when there are none"""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e

    substrings = [s for s in substrings if s]
    if not substrings and not compiled:
        return None

    def is_excluded(line: str) -> bool:
        return any(s in line for s in substrings) or any(p.search(line) for p in compiled)

    return is_excluded


def strip_timestamp(line: str) -> str:
    """→ Removes a zsh EXTENDED_HISTORY prefix, if present"""
    return HISTORY_ENTRY_RE.sub("", line, count=1)


def read_history_file(file_path: Path) -> list[str]:
    """→ File I/O: Reads the history file, keeping line terminators

    Lines end at `\\n` only; other Unicode line breaks stay inside the command.
    Bytes that are not UTF-8 are kept as surrogates so they can be written back as-is.
    """
    try:
        with file_path.open(encoding="utf-8", errors=HISTORY_ERRORS, newline="\n") as f:
            return list(f)
    except FileNotFoundError as e:
        raise HistoryFileError(file_path, "History file not found") from e
    except OSError as e:
        raise HistoryFileError(file_path, f"Could not read file: {e.strerror or e}") from e


def write_history_file(file_path: Path, commands: Sequence[str]) -> None:
    """→ File I/O: Overwrites `file_path` with one command per line"""
    try:
        with file_path.open("w", encoding="utf-8", errors=HISTORY_ERRORS, newline="\n") as f:
            for command in commands:
                f.write(f"{command}\n")
    except OSError as e:
        raise HistoryFileError(file_path, f"Could not write file: {e.strerror or e}") from e


def backup_history_file(file_path: Path) -> Path | None:
    """→ File I/O: Copies `file_path` to `<name>.rank.<timestamp>` next to it"""
    if not file_path.exists():
        return None
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    backup_path = file_path.parent / f"{file_path.name}.rank.{timestamp}"
    try:
        backup_path.write_bytes(file_path.read_bytes())
    except OSError as e:
        raise HistoryFileError(backup_path, f"Could not write backup: {e.strerror or e}") from e
    return backup_path


def save_history(target: Path, entries: Sequence[Entry], backup: bool, verbose: bool) -> int:
    """→ Backs up (optionally) and writes the persisted entries, returning how many were written"""
    commands = lines_to_write(entries)
    if backup:
        backup_path = backup_history_file(target)
        if backup_path is not None:
            _console_print(f"Backup saved to [info]{escape(str(backup_path))}[/info]")
    write_history_file(target, commands)
    if verbose:
        dropped = len(entries) - len(commands)
        _console_print(f"[context]{dropped} excluded entries not written[/context]")
    return len(commands)


# ============================================================================
# INTERACTIVE REVIEW
# ============================================================================


def review_ranked(ranked: RankedList, header: str, fullscreen: bool) -> ReviewResult[Entry]:
    """→ UI: Shows the ranked list with Save/Discard buttons and waits for a decision"""
    session: ReviewSession[Entry] = ReviewSession(
        list(ranked),
        header,
        display=format_entry,
        buttons=CONFIG.buttons,
        editable=True,
        poll_interval=CONFIG.poll_interval,
    )
    if fullscreen:
        # Imported lazily; textual is only needed for this front-end.
        from histrank.app import ReviewApp

        result = ReviewApp(session).run()
        return result or session.result()

    terminal = InlineTerminal(session.preferred_rows(CONFIG.max_list_rows), console=console)
    return session.run(terminal)


def confirm_overwrite(target: Path, count: int) -> bool:
    """→ UI: Yes/no gate before replacing a file that is not the source history"""
    lines = [
        Text.assemble("  Write ", (str(count), "bold"), " commands to ", (str(target), "bold #61AFEF")),
        Text("  The existing contents will be replaced.", style="#5C6370"),
    ]
    terminal = InlineTerminal(len(lines) + 4, console=console)
    return confirm(f"{target} already exists", lines, terminal)


# ============================================================================
# MAIN
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="histrank",
        description="Sort your command history by most to least used, dropping duplicates.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="History file to rank (default: $HISTFILE, then ~/.zsh_history)",
    )
    ap.add_argument(
        "--save",
        action="store_true",
        help="Write the ranked history without the interactive review",
    )
    ap.add_argument(
        "--exclude",
        metavar="TEXT",
        action="append",
        default=[],
        help="Remove commands containing TEXT from the rewritten history (repeatable)",
    )
    ap.add_argument(
        "--exclude-regex",
        metavar="PATTERN",
        action="append",
        default=[],
        help="Remove commands matching the regular expression PATTERN (repeatable)",
    )
    ap.add_argument(
        "--strip-timestamps",
        action="store_true",
        help="Drop zsh EXTENDED_HISTORY ': <epoch>:<duration>;' prefixes before ranking",
    )
    ap.add_argument(
        "-o",
        "--output",
        metavar="PATH",
        type=Path,
        help="Write to PATH instead of overwriting FILE",
    )
    ap.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not keep a timestamped copy of the file being overwritten",
    )
    ap.add_argument(
        "--fullscreen",
        action="store_true",
        help="Review in a full-screen application instead of inline",
    )
    ap.add_argument("--header", default=CONFIG.header, help="Title shown above the list")
    ap.add_argument("-v", "--verbose", action="store_true", help="Print extra diagnostics")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def run(args: argparse.Namespace) -> int:
    """→ Main: Orchestrates exclusion, ranking, review and writing"""
    source: Path = args.file or CONFIG.default_history_path
    target: Path = args.output or source

    is_excluded = build_exclusion_predicate(args.exclude, args.exclude_regex)

    lines = read_history_file(source)
    if args.strip_timestamps:
        lines = [strip_timestamp(line) for line in lines]

    ranked = rank(lines, is_excluded)
    kept, excluded = len(ranked.kept()), len(ranked.excluded())
    _console_print(
        f"Ranked [info]{len(lines)}[/info] lines into [info]{kept}[/info] unique commands"
        + (f" ([warning]{excluded}[/warning] excluded)" if excluded else "")
    )
    if args.verbose:
        _console_print(f"[context]Source: {escape(str(source))}  Target: {escape(str(target))}[/context]")
        _console_print(
            f"[context]Excludes: {len(args.exclude)} substring(s), "
            f"{len(args.exclude_regex)} pattern(s)[/context]"
        )

    if args.save:
        entries = list(ranked)
    else:
        result = review_ranked(ranked, args.header, args.fullscreen)
        if not result.confirmed:
            _console_print("[warning]Cancelled. History file unchanged.[/warning]")
            return EXIT_OK
        entries = result.items
        if target != source and target.exists():
            if not confirm_overwrite(target, len(lines_to_write(entries))):
                _console_print(f"[warning]Cancelled. {escape(str(target))} unchanged.[/warning]")
                return EXIT_OK

    written = save_history(target, entries, backup=not args.no_backup, verbose=args.verbose)
    _console_print(f"Ranked history ({written} commands) saved to [success]{escape(str(target))}[/success]")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except InvalidPatternError as e:
        _console_print(f"[error]Error: {escape(str(e))}[/error]")
        return EXIT_USAGE
    except HistrankError as e:
        _console_print(f"[error]Error: {escape(str(e))}[/error]")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        _console_print("[warning]Interrupted. History file unchanged.[/warning]")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
