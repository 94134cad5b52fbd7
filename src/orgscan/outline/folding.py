"""Visibility (folding) capability for outline documents.

The scan engine only talks to the Foldable protocol; FoldState is the
in-memory implementation used by the library and the CLI.
"""

import bisect
from typing import Protocol


class Foldable(Protocol):
    """Something that can hide and reveal char ranges of a document."""

    def fold(self, start: int, end: int) -> None:
        """Hide the half-open char range [start, end)."""
        ...

    def reveal(self, start: int, end: int) -> None:
        """Show the half-open char range [start, end)."""
        ...

    def is_folded(self, position: int) -> bool:
        """Check whether the char at ``position`` is hidden."""
        ...


class FoldState:
    """Hidden ranges kept as a sorted list of disjoint half-open intervals."""

    def __init__(self) -> None:
        self._starts: list[int] = []
        self._ends: list[int] = []

    @property
    def hidden_ranges(self) -> list[tuple[int, int]]:
        """The hidden intervals, sorted."""
        return list(zip(self._starts, self._ends))

    def fold(self, start: int, end: int) -> None:
        if start >= end:
            return
        # Merge with every interval that overlaps or touches [start, end).
        lo = bisect.bisect_left(self._ends, start)
        hi = bisect.bisect_right(self._starts, end)
        if lo < hi:
            start = min(start, self._starts[lo])
            end = max(end, self._ends[hi - 1])
        self._starts[lo:hi] = [start]
        self._ends[lo:hi] = [end]

    def reveal(self, start: int, end: int) -> None:
        if start >= end:
            return
        lo = bisect.bisect_right(self._ends, start)
        hi = bisect.bisect_left(self._starts, end)
        if lo >= hi:
            return
        new_starts: list[int] = []
        new_ends: list[int] = []
        if self._starts[lo] < start:
            new_starts.append(self._starts[lo])
            new_ends.append(start)
        if self._ends[hi - 1] > end:
            new_starts.append(end)
            new_ends.append(self._ends[hi - 1])
        self._starts[lo:hi] = new_starts
        self._ends[lo:hi] = new_ends

    def is_folded(self, position: int) -> bool:
        i = bisect.bisect_right(self._starts, position) - 1
        return i >= 0 and position < self._ends[i]

    def visible_lines(self, text: str) -> list[str]:
        """Render the visible lines of ``text``.

        A visible line followed by hidden content gets a trailing ``...``
        like a folded heading in an editor.

        Args:
            text: The document text the ranges refer to.

        Returns:
            Visible lines without line terminators.
        """
        lines: list[str] = []
        offset = 0
        for line in text.splitlines(keepends=True):
            line_end = offset + len(line)
            if not self.is_folded(offset):
                shown = line.rstrip("\r\n")
                if line_end < len(text) and self.is_folded(line_end):
                    shown += " ..."
                lines.append(shown)
            offset = line_end
        return lines
