"""Full-screen review front-end. Textual owns the terminal; keys feed the same `ReviewState`."""

from __future__ import annotations

from typing import Any

from rich.console import Group
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from histrank.review import ReviewResult, ReviewSession

# Textual key -> key name understood by ReviewState.handle_key
KEY_NAMES = {
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "home": "home",
    "end": "end",
    "tab": "tab",
    "enter": "enter",
    "escape": "escape",
    "delete": "delete",
    **{c: c for c in "qkjgGhlyYnNdJK"},
}


class ReviewApp(App[ReviewResult]):
    CSS = """
    Screen {
        padding: 1 2;
    }
    #frame {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding(key, f"review_key({name!r})", show=False, priority=True)
        for key, name in KEY_NAMES.items()
    ]

    def __init__(self, session: ReviewSession[Any], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session = session
        self.frame_widget = Static(id="frame")

    def compose(self) -> ComposeResult:
        yield self.frame_widget

    def on_mount(self):
        self.redraw()
        self.set_interval(self.session.poll_interval, self.redraw)

    def redraw(self):
        rows = self.frame_widget.size.height or self.size.height
        self.frame_widget.update(Group(*self.session.frame(rows or None)))

    def action_review_key(self, key: str):
        state = self.session.state
        if state.handle_key(key) and state.done:
            self.exit(self.session.result())
            return
        self.redraw()
