"""Headless tests for the full-screen review application."""

import asyncio

from histrank.app import ReviewApp
from histrank.review import Buttons, Outcome, ReviewSession


def _run(session, *keys):
    app = ReviewApp(session)

    async def drive():
        async with app.run_test() as pilot:
            await pilot.press(*keys)
            await pilot.pause()

    asyncio.run(drive())
    return app.return_value


def test_confirm_accelerator():
    session = ReviewSession(["ls", "pwd"], "Ranked History", buttons=Buttons())
    result = _run(session, "y")
    assert result.outcome is Outcome.CONFIRMED
    assert result.items == ["ls", "pwd"]


def test_enter_defaults_to_cancel():
    session = ReviewSession(["ls"], "Ranked History", buttons=Buttons())
    result = _run(session, "enter")
    assert result.outcome is Outcome.CANCELLED


def test_tab_then_enter_confirms():
    session = ReviewSession(["ls"], "Ranked History", buttons=Buttons())
    result = _run(session, "tab", "enter")
    assert result.confirmed


def test_escape_cancels():
    session = ReviewSession(["ls"], "Ranked History", buttons=Buttons())
    result = _run(session, "escape")
    assert result.outcome is Outcome.CANCELLED


def test_edits_are_returned():
    session = ReviewSession(["ls", "pwd", "cd"], "H", buttons=Buttons(), editable=True)
    result = _run(session, "down", "d", "y")
    assert result.items == ["ls", "cd"]


def test_navigation_updates_state():
    session = ReviewSession(["ls", "pwd", "cd"], "H", buttons=Buttons())
    _run(session, "down", "down", "down", "up", "n")
    assert session.state.cursor == 1
