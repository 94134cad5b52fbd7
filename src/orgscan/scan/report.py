"""Report records produced by collecting matches."""

from collections.abc import Callable
from dataclasses import dataclass

from ..config import ScanConfig
from .context import ScanContext

RowFormatter = Callable[[ScanContext], str]


@dataclass(frozen=True)
class ReportRecord:
    """One matched heading, ready to be listed.

    Attributes:
        text: The formatted report row.
        document: Name of the document the heading belongs to.
        position: Char offset of the heading.
        todo: The TODO keyword, or None.
        tags: Effective tags of the heading.
        priority: Numeric priority; higher sorts first.
        category: Resolved category.
        level: Reduced heading level.
        heading: The heading title.
    """

    text: str
    document: str
    position: int
    todo: str | None
    tags: tuple[str, ...]
    priority: int
    category: str
    level: int
    heading: str


def priority_value(letter: str | None, config: ScanConfig) -> int:
    """Convert a priority cookie letter into a sortable number.

    The lowest priority maps to 0 and each step up adds 1000. Headings
    without a cookie get the default priority.
    """
    cookie = letter or config.priority_default
    return 1000 * (ord(config.priority_lowest) - ord(cookie))


def format_report_row(ctx: ScanContext, indented: bool = False) -> str:
    """Format a match as ``category: [TODO] [#P] title :tags:``.

    Args:
        ctx: Scan context positioned at the match.
        indented: Prefix the title with one dot per level below the top.
    """
    heading = ctx.heading
    parts = [f"{ctx.category}:"]
    if indented and ctx.level > 1:
        parts.append("." * (ctx.level - 1))
    if heading.todo:
        parts.append(heading.todo)
    if heading.priority:
        parts.append(f"[#{heading.priority}]")
    parts.append(heading.title)
    tags = ctx.tags
    if tags:
        parts.append(":" + ":".join(tags) + ":")
    return " ".join(part for part in parts if part)


def make_record(ctx: ScanContext, formatter: RowFormatter | None = None) -> ReportRecord:
    """Build the report record of the heading the context points at."""
    heading = ctx.heading
    return ReportRecord(
        text=(formatter or format_report_row)(ctx),
        document=ctx.document.name,
        position=heading.start,
        todo=heading.todo,
        tags=ctx.tags,
        priority=priority_value(heading.priority, ctx.config),
        category=ctx.category,
        level=ctx.level,
        heading=heading.title,
    )


def sort_records(records: list[ReportRecord]) -> list[ReportRecord]:
    """Sort records by priority, highest first, keeping category order."""
    return sorted(records, key=lambda record: -record.priority)
