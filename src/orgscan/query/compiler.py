"""Compile match queries into reusable matchers."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

from .evaluator import HeadingContext, evaluate
from .groups import expand_tag_groups
from .parser import parse_query
from .types import AndExpr, QueryExpr, TodoClassTest, to_canonical_string

logger = logging.getLogger(__name__)

_GroupsKey = tuple[tuple[str, tuple[str, ...]], ...]


@dataclass(frozen=True)
class CompiledMatcher:
    """An immutable, document-independent match query.

    Attributes:
        query: The query as given.
        normalized_query: The query after tag group expansion.
        tags_expr: Expression over tags and properties.
        todo_expr: Expression over the TODO keyword, or None.
        todo_only: True if matches must carry a not-done keyword.
        expr: The whole query as one expression.
    """

    query: str
    normalized_query: str
    tags_expr: QueryExpr
    todo_expr: QueryExpr | None
    todo_only: bool
    expr: QueryExpr

    def matches(self, ctx: HeadingContext) -> bool:
        """Check whether a heading matches the query."""
        return evaluate(self.expr, ctx)

    def predicate(
        self,
        todo: str | None,
        tags: Iterable[str],
        level: int,
        *,
        category: str | None = None,
        not_done_keywords: Iterable[str] = ("TODO",),
        get_property: Callable[[str], str | None] | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Check a heading given as plain values.

        Args:
            todo: The TODO keyword, or None.
            tags: Effective tags of the heading.
            level: Reduced heading level.
            category: Resolved category.
            not_done_keywords: Keywords that count as not done.
            get_property: Property lookup by upper-case name.
            now: Reference instant for relative time operands.

        Returns:
            True if the heading matches.
        """
        ctx = HeadingContext(
            todo=todo,
            tags=tuple(tags),
            level=level,
            category=category,
            not_done_keywords=frozenset(not_done_keywords),
            get_property=get_property or (lambda name: None),
            now=now or datetime.now(),
        )
        return self.matches(ctx)

    def canonical_query(self) -> str:
        """Render the parsed query back to query syntax with explicit signs."""
        text = to_canonical_string(self.tags_expr)
        if self.todo_expr is None and not self.todo_only:
            return text
        todo = "" if self.todo_expr is None else to_canonical_string(self.todo_expr)
        return f"{text}/{'!' if self.todo_only else ''}{todo}"


def _groups_key(groups: Mapping[str, Sequence[str]] | None) -> _GroupsKey:
    if not groups:
        return ()
    return tuple((name, tuple(members)) for name, members in groups.items())


@lru_cache(maxsize=256)
def _compile(query: str, groups_key: _GroupsKey) -> CompiledMatcher:
    normalized = query.strip()
    if normalized and groups_key:
        normalized = expand_tag_groups(normalized, dict(groups_key))

    parsed = parse_query(normalized)
    operands: list[QueryExpr] = [parsed.tags_expr]
    if parsed.todo_expr is not None:
        operands.append(parsed.todo_expr)
    if parsed.todo_only:
        operands.append(TodoClassTest(not_done_only=True))
    expr: QueryExpr = operands[0] if len(operands) == 1 else AndExpr(tuple(operands))

    logger.debug("Compiled match query %r as %r", query, normalized)
    return CompiledMatcher(
        query=query,
        normalized_query=normalized,
        tags_expr=parsed.tags_expr,
        todo_expr=parsed.todo_expr,
        todo_only=parsed.todo_only,
        expr=expr,
    )


def compile_matcher(
    query: str, groups: Mapping[str, Sequence[str]] | None = None
) -> CompiledMatcher:
    """Compile a match query.

    Tag groups are expanded first, then the query is split into its tags
    and TODO parts and parsed. Results are cached per (query, groups).

    Args:
        query: The match query, e.g. ``+work-boss+PRIORITY="A"/!TODO``.
        groups: Optional tag group table (group tag -> member tags).

    Returns:
        The compiled matcher. An empty query matches every heading.

    Raises:
        QuerySyntaxError: If the query is malformed.
        UnknownOperatorError: If an operator is not defined for its operand.

    Examples:
        >>> matcher = compile_matcher("+a-b")
        >>> matcher.predicate(None, ["a"], 1)
        True
        >>> matcher.predicate(None, ["a", "b"], 1)
        False
    """
    return _compile(query, _groups_key(groups))
