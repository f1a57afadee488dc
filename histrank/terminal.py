"""
terminal.py - Inline raw-terminal handle for `ReviewSession`.

The viewport is drawn below the current prompt by a transient `rich.live.Live`,
so nothing is left on screen after the session. Keyboard input comes from
prompt_toolkit's input layer, which owns raw mode and escape-sequence parsing;
its key presses are mapped onto the key names `ReviewState.handle_key` expects.

`InlineTerminal` is a context manager; `close()` runs at most once, whichever
way the session ends.
"""

from __future__ import annotations

import select
import sys
from collections import deque
from contextlib import ExitStack
from types import TracebackType
from typing import TextIO

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console, Group
from rich.live import Live
from rich.text import Text

from histrank.errors import TerminalError

# prompt_toolkit key -> key name understood by ReviewState.handle_key
KEY_NAMES = {
    Keys.Up: "up",
    Keys.ControlUp: "up",
    Keys.ShiftUp: "up",
    Keys.Down: "down",
    Keys.ControlDown: "down",
    Keys.ShiftDown: "down",
    Keys.Left: "left",
    Keys.ControlLeft: "left",
    Keys.ShiftLeft: "left",
    Keys.Right: "right",
    Keys.ControlRight: "right",
    Keys.ShiftRight: "right",
    Keys.Home: "home",
    Keys.ControlHome: "home",
    Keys.End: "end",
    Keys.ControlEnd: "end",
    Keys.Delete: "delete",
    Keys.Escape: "escape",
    Keys.ControlM: "enter",
    Keys.ControlJ: "enter",
    Keys.ControlI: "tab",
    Keys.BackTab: "tab",
}


def key_name(key_press: KeyPress) -> str | None:
    """→ Key name for a prompt_toolkit key press; None for keys the review never binds"""
    key = key_press.key
    if key == Keys.ControlC:
        raise KeyboardInterrupt
    if isinstance(key, Keys):
        return KEY_NAMES.get(key)
    if len(key) == 1 and key.isprintable():
        return key
    return None


def fit_lines(lines: list[Text], rows: int) -> list[Text]:
    """→ Crops a frame to `rows`, always keeping its last line (the buttons or the hint)"""
    if len(lines) <= rows:
        return lines
    if rows <= 1:
        return lines[-1:]
    return lines[: rows - 1] + lines[-1:]


class InlineTerminal:
    def __init__(
        self,
        rows: int,
        console: Console | None = None,
        stdin: TextIO | None = None,
    ):
        self.console = console or Console(stderr=True)
        self.stdin = stdin or sys.stdin
        self.rows = min(rows, max(self.console.size.height - 1, 1))
        self._input: Input | None = None
        self._live: Live | None = None
        self._stack = ExitStack()
        self._pending: deque[str] = deque()
        self._opened = False
        self._cleaned_up = False

    def __enter__(self) -> InlineTerminal:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def open(self) -> None:
        if self._opened:
            raise TerminalError("Terminal is already open")
        self._opened = True
        if not self.stdin.isatty() or not self.console.is_terminal:
            raise TerminalError("Interactive review needs a terminal on stdin and stderr")
        try:
            self._input = create_input(self.stdin)
            self._stack.enter_context(self._input.raw_mode())
            self.console.show_cursor(False)
            self._live = Live(
                console=self.console,
                auto_refresh=False,
                transient=True,
                vertical_overflow="crop",
            )
            self._live.start()
        except OSError as e:
            self.close()
            raise TerminalError(f"Could not acquire terminal: {e}") from e

    def draw(self, lines: list[Text]) -> None:
        if self._live is None:
            raise TerminalError("Terminal is not open")
        visible = fit_lines(lines, self.rows)
        for line in visible:
            line.no_wrap = True
            line.overflow = "ellipsis"
        try:
            self._live.update(Group(*visible), refresh=True)
        except OSError as e:
            raise TerminalError(f"Could not draw to terminal: {e}") from e

    def poll(self, timeout: float) -> str | None:
        """Waits up to `timeout` for a key. A lone Esc is released once input goes quiet."""
        if self._pending:
            return self._pending.popleft()
        if self._input is None:
            raise TerminalError("Terminal is not open")
        try:
            readable, _, _ = select.select([self._input.fileno()], [], [], timeout)
            key_presses = self._input.read_keys() if readable else self._input.flush_keys()
        except OSError as e:
            raise TerminalError(f"Could not read from terminal: {e}") from e
        for key_press in key_presses:
            name = key_name(key_press)
            if name is not None:
                self._pending.append(name)
        return self._pending.popleft() if self._pending else None

    def close(self) -> None:
        """Stops the live display and restores terminal attributes. Safe to call repeatedly."""
        if self._cleaned_up:
            return
        self._cleaned_up = True

        errors: list[BaseException] = []
        if self._live is not None:
            try:
                self._live.stop()
            except OSError as e:
                errors.append(e)
            self._live = None
        try:
            # leaves raw mode
            self._stack.close()
        except OSError as e:
            errors.append(e)
        if self._input is not None:
            self._input.close()
        self.console.show_cursor(True)
        if errors:
            raise TerminalError(f"Could not restore terminal: {errors[0]}") from errors[0]
