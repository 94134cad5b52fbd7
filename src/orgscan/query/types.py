"""AST types for the match query language."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from .comparator import OperandKind


@dataclass(frozen=True)
class TagMatcher:
    """An exact tag name or a compiled tag regex.

    Regexes are compiled once, when the query is parsed. Like exact tags
    they are case-sensitive.

    Attributes:
        value: The tag name, or the regex source for regex matchers.
        pattern: The compiled regex, or None for exact matchers.
    """

    value: str
    pattern: re.Pattern[str] | None = None

    @classmethod
    def exact(cls, tag: str) -> TagMatcher:
        return cls(value=tag)

    @classmethod
    def regex(cls, source: str) -> TagMatcher:
        return cls(value=source, pattern=re.compile(source))

    @property
    def is_regex(self) -> bool:
        return self.pattern is not None

    def matches(self, text: str | None) -> bool:
        """Check a single string (e.g. a TODO keyword)."""
        if text is None:
            return False
        if self.pattern is None:
            return text == self.value
        return self.pattern.search(text) is not None

    def matches_any(self, tags: Iterable[str]) -> bool:
        """Check whether any of ``tags`` matches."""
        if self.pattern is None:
            return self.value in tags
        return any(self.pattern.search(tag) for tag in tags)


class PropertyAccessor(Enum):
    """Where a property comparison reads its live value from."""

    LEVEL = auto()  # reduced heading level
    TODO = auto()  # TODO keyword
    CATEGORY = auto()  # resolved category
    ENTRY = auto()  # any other property, looked up on the heading


@dataclass(frozen=True)
class TagMatch:
    """Tag membership test against the heading's effective tags.

    Attributes:
        matcher: Exact tag or tag regex.
    """

    matcher: TagMatcher


@dataclass(frozen=True)
class PropertyCompare:
    """Property comparison ``NAME OP [*] OPERAND``.

    Attributes:
        name: Upper-case property name.
        op: The operator as written.
        operand: The operand as written (with quotes or braces).
        kind: How the operand is compared.
        accessor: Where the live value is read from.
        value: The compile-time operand value (float, str, or compiled regex).
        starred: If True, a missing property makes the comparison succeed.
    """

    name: str
    op: str
    operand: str
    kind: OperandKind
    accessor: PropertyAccessor
    value: object
    starred: bool = False


@dataclass(frozen=True)
class TodoClassTest:
    """Test of the heading's TODO keyword.

    Attributes:
        matcher: Keyword name or regex; None tests only the keyword class.
        not_done_only: If True, the keyword must be a not-done keyword.
    """

    matcher: TagMatcher | None = None
    not_done_only: bool = False


@dataclass(frozen=True)
class NotExpr:
    """Negation expression.

    Attributes:
        operand: The expression to negate.
    """

    operand: QueryExpr


@dataclass(frozen=True)
class AndExpr:
    """AND expression (conjunction). Empty operands match everything.

    Attributes:
        operands: Expressions that must all match.
    """

    operands: tuple[QueryExpr, ...]


@dataclass(frozen=True)
class OrExpr:
    """OR expression (disjunction).

    Attributes:
        operands: Expressions where at least one must match.
    """

    operands: tuple[QueryExpr, ...]


# Union of all expression types
QueryExpr = TagMatch | PropertyCompare | TodoClassTest | NotExpr | AndExpr | OrExpr


def _leaf_string(expr: QueryExpr) -> str:
    if isinstance(expr, TagMatch):
        matcher = expr.matcher
        return f"{{{matcher.value}}}" if matcher.is_regex else matcher.value
    if isinstance(expr, PropertyCompare):
        star = "*" if expr.starred else ""
        return f"{expr.name}{expr.op}{star}{expr.operand}"
    if isinstance(expr, TodoClassTest):
        if expr.matcher is None:
            return ""
        matcher = expr.matcher
        return f"{{{matcher.value}}}" if matcher.is_regex else matcher.value
    raise TypeError(f"Not a leaf expression: {type(expr)}")


def to_canonical_string(expr: QueryExpr) -> str:
    """Convert one part (tags or TODO) of a query back to query syntax.

    Every leaf gets an explicit sign, alternatives are joined with ``|``.

    Examples:
        >>> to_canonical_string(AndExpr((TagMatch(TagMatcher.exact("a")),)))
        '+a'
    """
    if isinstance(expr, OrExpr):
        return "|".join(to_canonical_string(op) for op in expr.operands)

    if isinstance(expr, AndExpr):
        parts = []
        for op in expr.operands:
            if isinstance(op, NotExpr):
                parts.append("-" + _leaf_string(op.operand))
            elif isinstance(op, (AndExpr, OrExpr)):
                raise TypeError("Nested boolean expressions have no query syntax")
            else:
                parts.append("+" + _leaf_string(op))
        return "".join(parts)

    if isinstance(expr, NotExpr):
        return "-" + _leaf_string(expr.operand)

    return "+" + _leaf_string(expr)
