"""Per-scan cursor state: the current heading and what it inherits."""

from dataclasses import dataclass, field
from datetime import datetime

from ..config import ScanConfig
from ..errors import InheritanceError
from ..outline.models import Heading, OutlineDocument
from ..query.evaluator import HeadingContext

# Property names computed from the heading instead of its property drawer
SPECIAL_PROPERTIES = (
    "ALLTAGS",
    "CATEGORY",
    "CLOSED",
    "DEADLINE",
    "FILE",
    "ITEM",
    "LEVEL",
    "PRIORITY",
    "SCHEDULED",
    "TAGS",
    "TODO",
)


@dataclass
class _Frame:
    """Inherited state contributed by one open heading.

    Attributes:
        index: Heading index in the document.
        level: Raw heading level (number of stars).
        inherited_tags: Tags passed down to children, outermost first.
        category: Closest CATEGORY property on this heading or an ancestor.
        archived: True if this heading or an ancestor carries the archive tag.
        commented: True if this heading or an ancestor is commented out.
        properties: The heading's own properties.
    """

    index: int
    level: int
    inherited_tags: tuple[str, ...]
    category: str | None
    archived: bool
    commented: bool
    properties: dict[str, str] = field(default_factory=dict)


def _dedupe(tags: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(tags))


class ScanContext:
    """The cursor of one scan over one document.

    Holds the current heading and the stack of open ancestors, so effective
    tags, category and inherited properties are computed incrementally as
    the scan moves forward. A map callback receives the context and may set
    ``continue_from`` to a char offset where the scan should resume.
    """

    def __init__(
        self,
        document: OutlineDocument,
        config: ScanConfig | None = None,
        now: datetime | None = None,
    ) -> None:
        self.document = document
        self.config = config or ScanConfig()
        self.now = now or datetime.now()
        self.index: int | None = None
        self.continue_from: int | None = None
        self.not_done_keywords = frozenset(document.settings.todo_keywords)
        self._stack: list[_Frame] = []
        self._root_tags = tuple(
            tag for tag in document.settings.file_tags if self.config.tag_is_inherited(tag)
        )
        self._root_archived = self.config.archive_tag in document.settings.file_tags

    @property
    def heading(self) -> Heading:
        """The current heading."""
        if self.index is None:
            raise InheritanceError("Scan context is not positioned at a heading")
        return self.document.headings[self.index]

    @property
    def level(self) -> int:
        """Reduced level of the current heading."""
        level = self.heading.level
        if self.document.settings.odd_levels_only:
            return 1 + level // 2
        return level

    @property
    def tags(self) -> tuple[str, ...]:
        """Effective tags: inherited tags first, then local ones."""
        local = self.heading.tags
        if not self.config.use_tag_inheritance:
            return tuple(local)
        return _dedupe([*self._parent_tags(), *local])

    @property
    def category(self) -> str:
        """Category of the current heading.

        The closest CATEGORY property wins, then ``#+CATEGORY``, then the
        document's file name stem.
        """
        frame_category = self._stack[-1].category if self._stack else None
        return frame_category or self.document.settings.category or self.document.stem

    @property
    def in_archived(self) -> bool:
        """True if the current heading is inside an archived subtree."""
        return bool(self._stack) and self._stack[-1].archived

    @property
    def in_commented(self) -> bool:
        """True if the current heading is inside a commented subtree."""
        return bool(self._stack) and self._stack[-1].commented

    def _parent_tags(self) -> tuple[str, ...]:
        if len(self._stack) >= 2:
            return self._stack[-2].inherited_tags
        return self._root_tags

    def get_property(self, name: str) -> str | None:
        """Look up a property of the current heading.

        Special properties (``ITEM``, ``TAGS``, ``PRIORITY``, ...) are
        computed. Other properties are read from the property drawer, then,
        if the property is inherited, from ancestors and ``#+PROPERTY``.

        Args:
            name: Property name, case-insensitive.

        Returns:
            The value, or None if the heading does not have the property.
        """
        key = name.upper()
        heading = self.heading
        if key in SPECIAL_PROPERTIES:
            return self._special_property(key, heading)

        if key in heading.properties:
            return heading.properties[key]
        if not self.config.property_is_inherited(key):
            return None
        for frame in reversed(self._stack[:-1]):
            if key in frame.properties:
                return frame.properties[key]
        return self.document.settings.properties.get(key)

    def _special_property(self, key: str, heading: Heading) -> str | None:
        if key == "ITEM":
            return heading.title
        if key == "TODO":
            return heading.todo
        if key == "LEVEL":
            return str(self.level)
        if key == "CATEGORY":
            return self.category
        if key == "PRIORITY":
            return heading.priority or self.config.priority_default
        if key == "TAGS":
            return ":" + ":".join(heading.tags) + ":" if heading.tags else None
        if key == "ALLTAGS":
            tags = self.tags
            return ":" + ":".join(tags) + ":" if tags else None
        if key == "FILE":
            return self.document.name
        if key == "SCHEDULED":
            return heading.scheduled
        if key == "DEADLINE":
            return heading.deadline
        return heading.closed

    def heading_context(self) -> HeadingContext:
        """Snapshot of the current heading for match evaluation."""
        return HeadingContext(
            todo=self.heading.todo,
            tags=self.tags,
            level=self.level,
            category=self.category,
            not_done_keywords=self.not_done_keywords,
            get_property=self.get_property,
            now=self.now,
        )

    def _make_frame(self, index: int) -> _Frame:
        heading = self.document.headings[index]
        parent = self._stack[-1] if self._stack else None
        passed = parent.inherited_tags if parent else self._root_tags
        own = [tag for tag in heading.tags if self.config.tag_is_inherited(tag)]
        return _Frame(
            index=index,
            level=heading.level,
            inherited_tags=_dedupe([*passed, *own]),
            category=heading.properties.get("CATEGORY")
            or (parent.category if parent else None),
            archived=(parent.archived if parent else self._root_archived)
            or self.config.archive_tag in heading.tags,
            commented=(parent.commented if parent else False)
            or heading.is_commented(self.config.comment_keyword),
            properties=heading.properties,
        )

    def enter(self, index: int) -> None:
        """Move the cursor to heading ``index``.

        Frames of headings that are not ancestors are popped; after a jump
        (region start, continue-from) the ancestor chain is rebuilt.

        Raises:
            InheritanceError: If the frame stack ends up out of order.
        """
        heading = self.document.headings[index]
        while self._stack and self._stack[-1].level >= heading.level:
            self._stack.pop()

        parent = self.document.parent_index(index)
        top = self._stack[-1].index if self._stack else None
        if top != parent:
            self._stack = []
            for ancestor in self.document.ancestor_indices(index):
                self._stack.append(self._make_frame(ancestor))

        if self._stack and self._stack[-1].level >= heading.level:
            raise InheritanceError(
                f"Heading at {heading.start} is not below its parent frame"
            )
        self._stack.append(self._make_frame(index))
        self.index = index
        self.continue_from = None
