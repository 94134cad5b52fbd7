"""Outline document data models."""

import bisect
import dataclasses
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from .tag_alist import GroupTable, TagAlistItem, tag_alist_to_groups


@dataclass
class Heading:
    """A single heading of an outline document.

    Attributes:
        level: Number of leading stars.
        title: Heading text without keyword, priority cookie and tags.
        todo: The TODO keyword, if the heading starts with one.
        priority: Priority cookie letter (e.g. "A" for ``[#A]``), if present.
        tags: Local tags in declaration order.
        properties: Local properties from the property drawer (upper-case keys).
        start: Char offset of the first char of the heading line.
        end: Char offset where the heading's own entry ends (the next heading).
        line_number: 1-based line number of the heading line.
        scheduled: Raw SCHEDULED timestamp from the planning line.
        deadline: Raw DEADLINE timestamp from the planning line.
        closed: Raw CLOSED timestamp from the planning line.
    """

    level: int
    title: str
    todo: str | None = None
    priority: str | None = None
    tags: list[str] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)
    start: int = 0
    end: int = 0
    line_number: int = 1
    scheduled: str | None = None
    deadline: str | None = None
    closed: str | None = None

    def is_commented(self, keyword: str = "COMMENT") -> bool:
        """Check whether the title starts with the COMMENT keyword."""
        return self.title == keyword or self.title.startswith(keyword + " ")


@dataclass
class DocumentSettings:
    """Document-wide declarations (``#+TODO``, ``#+TAGS``, ...).

    Attributes:
        todo_keywords: Not-done TODO keywords.
        done_keywords: Done TODO keywords.
        file_tags: Tags from ``#+FILETAGS``, inherited by every heading.
        tag_alist: Parsed ``#+TAGS`` declarations plus persistent tags.
        category: Value of ``#+CATEGORY``, if any.
        properties: Document-wide ``#+PROPERTY`` values (upper-case keys).
        odd_levels_only: True when ``#+STARTUP: odd`` is set.
    """

    todo_keywords: list[str] = field(default_factory=lambda: ["TODO"])
    done_keywords: list[str] = field(default_factory=lambda: ["DONE"])
    file_tags: list[str] = field(default_factory=list)
    tag_alist: list[TagAlistItem] = field(default_factory=list)
    category: str | None = None
    properties: dict[str, str] = field(default_factory=dict)
    odd_levels_only: bool = False

    @property
    def all_keywords(self) -> list[str]:
        """All TODO keywords, not-done first."""
        return self.todo_keywords + self.done_keywords

    @cached_property
    def tag_groups(self) -> GroupTable:
        """Group table derived from the tag alist (computed once)."""
        return tag_alist_to_groups(self.tag_alist)


@dataclass
class OutlineDocument:
    """An outline document: headings in document order plus settings.

    Attributes:
        name: Identifier of the document (usually its file path).
        text: The full document text.
        headings: Headings in document order.
        settings: Document-wide declarations.
    """

    name: str
    text: str
    headings: list[Heading]
    settings: DocumentSettings = field(default_factory=DocumentSettings)
    _starts: list[int] = field(init=False, repr=False)
    _subtree_ends: list[int] = field(init=False, repr=False)
    _parents: list[int | None] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._starts = [h.start for h in self.headings]
        # Index of the first heading after each heading's subtree.
        self._subtree_ends = [len(self.headings)] * len(self.headings)
        self._parents = [None] * len(self.headings)
        open_indices: list[int] = []
        for i, heading in enumerate(self.headings):
            while open_indices and self.headings[open_indices[-1]].level >= heading.level:
                self._subtree_ends[open_indices.pop()] = i
            if open_indices:
                self._parents[i] = open_indices[-1]
            open_indices.append(i)

    @property
    def stem(self) -> str:
        """File name without directory and extension."""
        return Path(self.name).stem

    def parent_index(self, index: int) -> int | None:
        """Index of the closest ancestor of heading ``index``, if any."""
        return self._parents[index]

    def ancestor_indices(self, index: int) -> list[int]:
        """Indices of all ancestors of heading ``index``, outermost first."""
        chain: list[int] = []
        parent = self._parents[index]
        while parent is not None:
            chain.append(parent)
            parent = self._parents[parent]
        chain.reverse()
        return chain

    def subtree_end_index(self, index: int) -> int:
        """Index of the first heading after the subtree of heading ``index``."""
        return self._subtree_ends[index]

    def subtree_end(self, index: int) -> int:
        """Char offset where the subtree of heading ``index`` ends."""
        end_index = self._subtree_ends[index]
        if end_index < len(self.headings):
            return self.headings[end_index].start
        return len(self.text)

    def heading_line_end(self, index: int) -> int:
        """Char offset just past the heading line of heading ``index``."""
        heading = self.headings[index]
        newline = self.text.find("\n", heading.start, heading.end)
        return heading.end if newline == -1 else newline + 1

    def index_at_or_after(self, position: int) -> int:
        """Index of the first heading starting at or after ``position``.

        Returns len(headings) when there is none.
        """
        return bisect.bisect_left(self._starts, position)

    def index_containing(self, position: int) -> int | None:
        """Index of the heading whose entry contains ``position``, if any."""
        index = bisect.bisect_right(self._starts, position) - 1
        return index if index >= 0 else None

    def set_tag_alist(self, alist: list[TagAlistItem]) -> None:
        """Replace the tag alist; the derived group table is recomputed lazily."""
        self.settings = dataclasses.replace(self.settings, tag_alist=list(alist))
