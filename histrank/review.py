"""
review.py - Keyboard-driven review of a list, with an optional Confirm/Cancel control.

The module has three layers:

1.  `ReviewState` is the UI-agnostic state machine: a cursor over the items, which
    button is highlighted and the outcome. Every key goes through
    `ReviewState.handle_key`, whatever front-end produced it.
2.  `build_frame` turns a state into the styled lines of one frame.
3.  `ReviewSession.run` owns a terminal for the duration of the loop: draw, poll,
    handle, until the outcome is no longer pending.

A yes/no prompt is the same session with zero items (see `confirm`), so both share
one set of key bindings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import TracebackType
from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar

from rich.style import Style
from rich.text import Text

T = TypeVar("T")

DisplayFn = Callable[[Any], "str | Text"]

POLL_INTERVAL = 0.1

HEADER_STYLE = Style(color="#E5C07B", bold=True)
CURSOR_STYLE = Style(bgcolor="#3E4451", bold=True)
CONFIRM_STYLE = Style(color="#98C379", bgcolor="#3E4451", bold=True)
CANCEL_STYLE = Style(color="#E06C75", bgcolor="#3E4451", bold=True)
DIM_STYLE = Style(color="#5C6370")

CURSOR_SYMBOL = " > "
LIST_HINT = "  (↑↓ navigate, Enter confirm, Esc cancel)"
BUTTON_HINT = "  (← → select, Enter confirm)"
EDIT_HINT = "  (d drop, J/K move)"


class Outcome(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class Buttons:
    confirm_label: str = "Yes, confirm"
    cancel_label: str = "No, cancel"


# ============================================================================
# STATE MACHINE
# ============================================================================


@dataclass
class ReviewState(Generic[T]):
    """Cursor, button selection and outcome for one review.

    `cursor` is None exactly when there are no items. The cancel button is
    highlighted initially, so a stray Enter never confirms.
    """

    items: list[T] = field(default_factory=list)
    buttons: Buttons | None = None
    editable: bool = False
    cursor: int | None = None
    offset: int = 0
    confirm_selected: bool = False
    outcome: Outcome = Outcome.PENDING

    def __post_init__(self):
        if self.cursor is None and self.items:
            self.cursor = 0
        self._clamp()

    @property
    def has_buttons(self) -> bool:
        return self.buttons is not None

    @property
    def done(self) -> bool:
        return self.outcome is not Outcome.PENDING

    # --- Navigation ---

    def move_up(self) -> None:
        if self.cursor is not None and self.cursor > 0:
            self.cursor -= 1

    def move_down(self) -> None:
        if self.cursor is not None and self.cursor < len(self.items) - 1:
            self.cursor += 1

    def jump_first(self) -> None:
        if self.items:
            self.cursor = 0

    def jump_last(self) -> None:
        if self.items:
            self.cursor = len(self.items) - 1

    # --- Buttons ---

    def select_confirm(self) -> None:
        if self.has_buttons:
            self.confirm_selected = True

    def select_cancel(self) -> None:
        if self.has_buttons:
            self.confirm_selected = False

    def toggle_buttons(self) -> None:
        if self.has_buttons:
            self.confirm_selected = not self.confirm_selected

    # --- Termination ---

    def accept(self) -> None:
        if self.has_buttons:
            self.outcome = Outcome.CONFIRMED if self.confirm_selected else Outcome.CANCELLED
        elif self.items:
            self.outcome = Outcome.CONFIRMED

    def confirm(self) -> None:
        self.outcome = Outcome.CONFIRMED

    def cancel(self) -> None:
        self.outcome = Outcome.CANCELLED

    # --- Editing ---

    def remove_current(self) -> None:
        if not self.editable or self.cursor is None:
            return
        del self.items[self.cursor]
        self._clamp()

    def shift_current(self, direction: int) -> None:
        """Move the highlighted item one row, keeping the cursor on it."""
        if not self.editable or self.cursor is None:
            return
        target = self.cursor + direction
        if not 0 <= target < len(self.items):
            return
        self.items[self.cursor], self.items[target] = self.items[target], self.items[self.cursor]
        self.cursor = target

    # --- Dispatch ---

    def handle_key(self, key: str) -> bool:
        """Apply one key. Returns False when the key is not bound in this state."""
        if self.done:
            return False
        action = self._bindings().get(key)
        if action is None:
            return False
        action()
        return True

    def _bindings(self) -> dict[str, Callable[[], None]]:
        bindings: dict[str, Callable[[], None]] = {
            "q": self.cancel,
            "escape": self.cancel,
            "up": self.move_up,
            "k": self.move_up,
            "down": self.move_down,
            "j": self.move_down,
            "home": self.jump_first,
            "g": self.jump_first,
            "end": self.jump_last,
            "G": self.jump_last,
            "enter": self.accept,
        }
        if self.has_buttons:
            bindings.update({
                "left": self.select_confirm,
                "h": self.select_confirm,
                "right": self.select_cancel,
                "l": self.select_cancel,
                "tab": self.toggle_buttons,
                "y": self.confirm,
                "Y": self.confirm,
                "n": self.cancel,
                "N": self.cancel,
            })
        if self.editable:
            bindings.update({
                "d": self.remove_current,
                "delete": self.remove_current,
                "K": lambda: self.shift_current(-1),
                "J": lambda: self.shift_current(1),
            })
        return bindings

    # --- Viewport ---

    def scroll_into_view(self, rows: int) -> range:
        """Adjust `offset` so the cursor is visible in `rows` rows; returns the visible indices."""
        rows = max(rows, 1)
        if self.cursor is None:
            self.offset = 0
            return range(0)
        if self.cursor < self.offset:
            self.offset = self.cursor
        elif self.cursor >= self.offset + rows:
            self.offset = self.cursor - rows + 1
        self.offset = max(0, min(self.offset, max(len(self.items) - rows, 0)))
        return range(self.offset, min(self.offset + rows, len(self.items)))

    def _clamp(self) -> None:
        if not self.items:
            self.cursor = None
        elif self.cursor is not None:
            self.cursor = max(0, min(self.cursor, len(self.items) - 1))


# ============================================================================
# FRAME
# ============================================================================


def chrome_rows(state: ReviewState, body: Sequence[str | Text] = ()) -> int:
    """→ Rows used by everything except the list itself"""
    # header + blank, then either blank + buttons or the hint line
    rows = 2 + (2 if state.has_buttons else 1)
    if body:
        rows += len(body)
    return rows


def _button_line(buttons: Buttons, confirm_selected: bool) -> Text:
    line = Text("  ")
    line.append(f" {buttons.confirm_label} ", CONFIRM_STYLE if confirm_selected else DIM_STYLE)
    line.append("  ")
    line.append(f" {buttons.cancel_label} ", DIM_STYLE if confirm_selected else CANCEL_STYLE)
    line.append(BUTTON_HINT, DIM_STYLE)
    return line


def build_frame(
    state: ReviewState,
    header: str,
    display: DisplayFn = str,
    body: Sequence[str | Text] = (),
    rows: int | None = None,
) -> list[Text]:
    """→ Styled lines for one frame; `rows` is the viewport height, None for unbounded"""
    lines: list[Text] = [Text(header, style=HEADER_STYLE), Text("")]
    lines.extend(Text(b) if isinstance(b, str) else b for b in body)

    if rows is None:
        list_rows = max(len(state.items), 1)
    else:
        # list rows go first when space is short; header and buttons stay
        list_rows = max(rows - chrome_rows(state, body), 0)

    if state.items and list_rows:
        for i in state.scroll_into_view(list_rows):
            shown = display(state.items[i])
            row = Text(CURSOR_SYMBOL if i == state.cursor else " " * len(CURSOR_SYMBOL))
            row.append_text(shown if isinstance(shown, Text) else Text(shown))
            if i == state.cursor:
                row.stylize(CURSOR_STYLE)
            lines.append(row)
    elif not body:
        lines.append(Text("  (nothing to review)", style=DIM_STYLE))

    if state.buttons is not None:
        lines.append(Text(""))
        lines.append(_button_line(state.buttons, state.confirm_selected))
    else:
        hint = LIST_HINT + (EDIT_HINT if state.editable else "")
        lines.append(Text(hint, style=DIM_STYLE))
    return lines


# ============================================================================
# SESSION
# ============================================================================


class Terminal(Protocol):
    """Scoped drawing surface: entering acquires the terminal, leaving restores it."""

    rows: int

    def __enter__(self) -> Terminal: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    def draw(self, lines: list[Text]) -> None: ...

    def poll(self, timeout: float) -> str | None: ...


@dataclass
class ReviewResult(Generic[T]):
    outcome: Outcome
    items: list[T]

    @property
    def confirmed(self) -> bool:
        return self.outcome is Outcome.CONFIRMED


class ReviewSession(Generic[T]):
    def __init__(
        self,
        items: Sequence[T],
        header: str,
        display: DisplayFn = str,
        buttons: Buttons | None = None,
        body: Sequence[str | Text] = (),
        editable: bool = False,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.header = header
        self.display = display
        self.body = list(body)
        self.poll_interval = poll_interval
        self.state: ReviewState[T] = ReviewState(
            items=list(items), buttons=buttons, editable=editable
        )

    def preferred_rows(self, max_list_rows: int) -> int:
        """→ Viewport height that fits the whole list, up to `max_list_rows` list rows"""
        list_rows = min(max(len(self.state.items), 1), max_list_rows)
        if not self.state.items and self.body:
            list_rows = 0
        return chrome_rows(self.state, self.body) + list_rows

    def frame(self, rows: int | None = None) -> list[Text]:
        return build_frame(self.state, self.header, self.display, self.body, rows)

    def result(self) -> ReviewResult[T]:
        return ReviewResult(self.state.outcome, list(self.state.items))

    def run(self, terminal: Terminal) -> ReviewResult[T]:
        """Blocks until the user confirms or cancels. Terminal errors propagate."""
        with terminal:
            while not self.state.done:
                terminal.draw(self.frame(terminal.rows))
                key = terminal.poll(self.poll_interval)
                if key is not None:
                    self.state.handle_key(key)
        return self.result()


def confirm(
    header: str,
    lines: Sequence[str | Text],
    terminal: Terminal,
    buttons: Buttons | None = None,
) -> bool:
    """→ Yes/no gate: a zero-item review with buttons"""
    session: ReviewSession[Any] = ReviewSession(
        [], header, body=lines, buttons=buttons or Buttons()
    )
    return session.run(terminal).confirmed
