"""histrank - rank shell history by usage, review it, rewrite it."""

from histrank.ranking import Entry, RankedList, Tag, rank
from histrank.review import Buttons, Outcome, ReviewResult, ReviewSession, ReviewState, confirm

__version__ = "0.1.0"

__all__ = [
    "Buttons",
    "Entry",
    "Outcome",
    "RankedList",
    "ReviewResult",
    "ReviewSession",
    "ReviewState",
    "Tag",
    "confirm",
    "rank",
]
