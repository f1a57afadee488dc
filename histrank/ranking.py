"""
ranking.py - Folds a raw history log into a deduplicated, roughly most-used-first list.

**How the ranking works**

Lines are consumed in order. A command seen for the first time is appended.
A command seen again is *promoted*: it swaps places with whatever sits at half
its current index. Frequent commands therefore climb towards the front
logarithmically in the number of repeats, without keeping a counter.

The swap is what defines the output order. The lookup that finds the previous
occurrence is a linear scan by default; `RankedList(indexed=True)` keeps a
position map instead, and must always produce the same list.

Lines matching the exclusion predicate are appended as `EXCLUDED` entries and
never take part in deduplication or promotion.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, overload

ExclusionPredicate = Callable[[str], bool]

LINE_TERMINATORS = "\r\n"


class Tag(Enum):
    KEEP = "keep"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class Entry:
    """One command line tracked by the ranking."""

    raw: str
    tag: Tag = Tag.KEEP

    @property
    def excluded(self) -> bool:
        return self.tag is Tag.EXCLUDED


class RankedList:
    """Ordered entries with at most one `KEEP` entry per raw value."""

    def __init__(self, entries: Iterable[Entry] = (), indexed: bool = False):
        self._entries: list[Entry] = []
        self._positions: dict[str, int] | None = {} if indexed else None
        for entry in entries:
            self.append(entry)

    @property
    def indexed(self) -> bool:
        return self._positions is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    @overload
    def __getitem__(self, index: int) -> Entry: ...

    @overload
    def __getitem__(self, index: slice) -> list[Entry]: ...

    def __getitem__(self, index):
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RankedList):
            return self._entries == other._entries
        if isinstance(other, list):
            return self._entries == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"RankedList({self._entries!r})"

    def find(self, raw: str) -> int | None:
        """→ Position of the `KEEP` entry holding `raw`, or None"""
        if self._positions is not None:
            return self._positions.get(raw)
        for i, entry in enumerate(self._entries):
            if entry.tag is Tag.KEEP and entry.raw == raw:
                return i
        return None

    def append(self, entry: Entry) -> None:
        if entry.tag is Tag.KEEP and self.find(entry.raw) is not None:
            raise ValueError(f"Duplicate entry {entry.raw!r}")
        self._push(entry)

    def _push(self, entry: Entry) -> None:
        """Appends without the duplicate check; the caller has already looked `entry` up."""
        if entry.tag is Tag.KEEP and self._positions is not None:
            self._positions[entry.raw] = len(self._entries)
        self._entries.append(entry)

    def promote(self, index: int) -> int:
        """→ Swaps the entry at `index` with the one at `index // 2`, returning the new index"""
        target = index // 2
        if target == index:
            return index
        entries = self._entries
        entries[index], entries[target] = entries[target], entries[index]
        if self._positions is not None:
            for i in (index, target):
                if entries[i].tag is Tag.KEEP:
                    self._positions[entries[i].raw] = i
        return target

    def kept(self) -> list[Entry]:
        return [e for e in self._entries if e.tag is Tag.KEEP]

    def excluded(self) -> list[Entry]:
        return [e for e in self._entries if e.tag is Tag.EXCLUDED]

    def lines_to_write(self) -> list[str]:
        return lines_to_write(self._entries)


def lines_to_write(entries: Iterable[Entry]) -> list[str]:
    """→ Raw values that are persisted; excluded entries are dropped"""
    return [entry.raw for entry in entries if entry.tag is Tag.KEEP]


def _exclude_nothing(line: str) -> bool:
    return False


def rank(
    lines: Iterable[str],
    is_excluded: ExclusionPredicate | None = None,
    indexed: bool = False,
) -> RankedList:
    """→ Builds the ranked list from raw lines, in input order

    `is_excluded` sees each line exactly as read (terminator included);
    deduplication and the stored raw value use the right-trimmed form.
    """
    predicate = is_excluded or _exclude_nothing
    ranked = RankedList(indexed=indexed)

    for line in lines:
        if predicate(line):
            ranked._push(Entry(line.rstrip(LINE_TERMINATORS), Tag.EXCLUDED))
            continue

        command = line.rstrip()
        # One lookup per line, linear unless indexed; the swap below must not change.
        position = ranked.find(command)
        if position is None:
            ranked._push(Entry(command))
        else:
            ranked.promote(position)

    return ranked
