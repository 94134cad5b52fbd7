"""Evaluator for match query expressions against a heading."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .comparator import OperandKind, matcher_time, op_to_function, string_to_number
from .types import (
    AndExpr,
    NotExpr,
    OrExpr,
    PropertyAccessor,
    PropertyCompare,
    QueryExpr,
    TagMatch,
    TodoClassTest,
)


def _no_properties(name: str) -> str | None:
    return None


@dataclass(frozen=True)
class HeadingContext:
    """Everything a match query can look at for one heading.

    Attributes:
        todo: The TODO keyword, or None.
        tags: Effective tags (inherited first, then local).
        level: Reduced heading level.
        category: Resolved category, or None.
        not_done_keywords: Keywords that count as not done.
        get_property: Property lookup by upper-case name; None when missing.
        now: Reference instant for relative time operands.
    """

    todo: str | None
    tags: tuple[str, ...]
    level: int
    category: str | None = None
    not_done_keywords: frozenset[str] = frozenset()
    get_property: Callable[[str], str | None] = _no_properties
    now: datetime = field(default_factory=datetime.now)


def _live_value(expr: PropertyCompare, ctx: HeadingContext) -> object:
    """Read the value a comparison tests, None if the heading lacks it."""
    if expr.accessor is PropertyAccessor.LEVEL:
        return ctx.level
    if expr.accessor is PropertyAccessor.TODO:
        return ctx.todo
    if expr.accessor is PropertyAccessor.CATEGORY:
        return ctx.category
    return ctx.get_property(expr.name)


def _compare(expr: PropertyCompare, ctx: HeadingContext) -> bool:
    """Evaluate a property comparison.

    A starred comparison succeeds when the property is missing; otherwise a
    missing value compares as 0 (numbers, times) or "" (strings, regexes).
    """
    live = _live_value(expr, ctx)
    if live is None and expr.starred:
        return True

    fn = op_to_function(expr.op, expr.kind)
    if expr.kind is OperandKind.NUMBER:
        if isinstance(live, int):
            return fn(float(live), expr.value)
        return fn(string_to_number(live), expr.value)  # type: ignore[arg-type]
    if expr.kind is OperandKind.TIME:
        text = None if live is None else str(live)
        return fn(matcher_time(text, ctx.now), matcher_time(str(expr.value), ctx.now))
    text = "" if live is None else str(live)
    return fn(text, expr.value)


def _todo_test(expr: TodoClassTest, ctx: HeadingContext) -> bool:
    if expr.not_done_only and ctx.todo not in ctx.not_done_keywords:
        return False
    if expr.matcher is None:
        return True
    return expr.matcher.matches(ctx.todo)


def evaluate(expr: QueryExpr, ctx: HeadingContext) -> bool:
    """Recursively evaluate an expression against a heading.

    Args:
        expr: The query expression to evaluate.
        ctx: The heading to match.

    Returns:
        True if the heading matches the expression.

    Raises:
        TypeError: If the expression type is unknown.
    """
    if isinstance(expr, TagMatch):
        return expr.matcher.matches_any(ctx.tags)
    elif isinstance(expr, PropertyCompare):
        return _compare(expr, ctx)
    elif isinstance(expr, TodoClassTest):
        return _todo_test(expr, ctx)
    elif isinstance(expr, NotExpr):
        return not evaluate(expr.operand, ctx)
    elif isinstance(expr, AndExpr):
        return all(evaluate(op, ctx) for op in expr.operands)
    elif isinstance(expr, OrExpr):
        return any(evaluate(op, ctx) for op in expr.operands)
    else:
        raise TypeError(f"Unknown expression type: {type(expr)}")
