"""Typed failures surfaced to the command line."""

from __future__ import annotations

from pathlib import Path


class HistrankError(Exception):
    """Base class for every failure histrank reports to the user."""


class InvalidPatternError(HistrankError):
    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid exclude pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class TerminalError(HistrankError):
    """Raised when the terminal cannot be acquired, polled or drawn to."""


class HistoryFileError(HistrankError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
