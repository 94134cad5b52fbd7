"""Parser for the match query language.

Grammar (EBNF):
    query      = tags_part, [ "/", [ "!" ], todo_part ] ;
    tags_part  = alternative, { "|", alternative } ;
    todo_part  = alternative, { "|", alternative } ;
    alternative = { [ "&" ], leaf } ;
    leaf       = [ "+" | "-" ], ( regex | property | tag ) ;
    regex      = "{", regex_source, "}" ;
    property   = name, op, [ "*" ], ( regex | string | number ) ;
    op         = "<" | ">" | "<=" | ">=" | "=" | "==" | "<>" | "!=" | "/=" ;

Precedence (tightest to loosest):
    1. +/- (sign of a single leaf)
    2. AND (juxtaposition or explicit &)
    3. OR

Shorthands:
    - a leaf without a sign is required, like "+"
    - empty alternatives ("a||b") are ignored; an empty part matches everything
    - in the TODO part, leaves are keywords or keyword regexes; property
      comparisons are not allowed there
    - "/!" restricts matches to headings with a not-done keyword
"""

import re
from dataclasses import dataclass

from ..errors import QuerySyntaxError, UnknownOperatorError
from .comparator import OperandKind, op_to_function, operand_kind
from .tokenizer import Token, TokenType, tokenize
from .types import (
    AndExpr,
    NotExpr,
    OrExpr,
    PropertyAccessor,
    PropertyCompare,
    QueryExpr,
    TagMatch,
    TagMatcher,
    TodoClassTest,
)

# Property names read from the heading itself rather than its properties
_SPECIAL_ACCESSORS = {
    "LEVEL": PropertyAccessor.LEVEL,
    "TODO": PropertyAccessor.TODO,
    "CATEGORY": PropertyAccessor.CATEGORY,
}


@dataclass(frozen=True)
class ParsedQuery:
    """A match query split into its parts and parsed.

    Attributes:
        tags_expr: Expression over tags and properties.
        todo_expr: Expression over the TODO keyword, or None if absent.
        todo_only: True if matches must carry a not-done keyword.
        tags_text: Source text of the tags part.
        todo_text: Source text of the TODO part (without ``!``), or None.
    """

    tags_expr: QueryExpr
    todo_expr: QueryExpr | None
    todo_only: bool
    tags_text: str
    todo_text: str | None


def _find_todo_separator(query: str) -> int | None:
    """Return the index of the last ``/`` that starts the TODO part."""
    separator = None
    i = 0
    while i < len(query):
        char = query[i]
        if char == "\\":
            i += 2
            continue
        if char == '"':
            end = query.find('"', i + 1)
            if end == -1:
                break
            i = end + 1
            continue
        if char == "{":
            depth = 0
            while i < len(query):
                if query[i] == "\\":
                    i += 2
                    continue
                if query[i] == "{":
                    depth += 1
                elif query[i] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                i += 1
            i += 1
            continue
        if char == "/" and not query.startswith("/=", i):
            separator = i
        i += 1
    return separator


def split_todo_part(query: str) -> tuple[str, str | None, bool, int]:
    """Split a match query into its tags part and its TODO part.

    The TODO part follows the last ``/`` that is neither inside a ``"..."``
    string or a ``{...}`` regex nor part of the ``/=`` operator. A run of
    slashes counts as a single separator.

    Args:
        query: The (group-expanded) match query.

    Returns:
        Tuple of (tags part, TODO part or None, todo_only flag, offset of the
        TODO part in ``query``).

    Examples:
        >>> split_todo_part("work/!TODO|WAIT")
        ('work', 'TODO|WAIT', True, 6)
        >>> split_todo_part('AUTHOR/="bob"')
        ('AUTHOR/="bob"', None, False, 0)
    """
    separator = _find_todo_separator(query)
    if separator is None:
        return query, None, False, 0

    run_start = separator
    while run_start > 0 and query[run_start - 1] == "/":
        run_start -= 1

    tags_text = query[:run_start]
    offset = separator + 1
    todo_text = query[offset:]

    stripped = todo_text.lstrip()
    offset += len(todo_text) - len(stripped)
    todo_only = stripped.startswith("!")
    if todo_only:
        stripped = stripped[1:]
        offset += 1

    if not stripped.strip():
        return tags_text, None, todo_only, offset
    return tags_text, stripped, todo_only, offset


def _regex_error(e: re.error, source: str, token: Token) -> QuerySyntaxError:
    return QuerySyntaxError(
        f"Invalid regular expression: {e}", token.position, "{" + source + "}"
    )


def _compile_regex(source: str, token: Token) -> re.Pattern[str]:
    """Compile a property value regex; these match ignoring case."""
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as e:
        raise _regex_error(e, source, token) from e


def _tag_regex(token: Token) -> TagMatcher:
    """Compile a tag or keyword regex, reporting errors at the literal."""
    try:
        return TagMatcher.regex(token.value)
    except re.error as e:
        raise _regex_error(e, token.value, token) from e


def _build_property_compare(token: Token) -> PropertyCompare:
    """Turn a PROPERTY token into a comparison leaf."""
    assert token.property_key is not None
    assert token.operator is not None
    raw = token.value
    star = "*" if token.starred else ""
    fragment = f"{token.property_key}{token.operator}{star}{raw}"

    kind = operand_kind(raw)
    try:
        op_to_function(token.operator, kind)
    except UnknownOperatorError as e:
        raise UnknownOperatorError(
            f"Operator {token.operator!r} is not defined for "
            f"{kind.name.lower()} operands",
            token.position,
            fragment,
        ) from e

    value: object
    if kind is OperandKind.REGEX:
        value = _compile_regex(raw[1:-1], token)
    elif kind is OperandKind.NUMBER:
        try:
            value = float(raw)
        except ValueError as e:
            raise QuerySyntaxError("Invalid number", token.position, fragment) from e
    else:
        # Strings compare as written; times are resolved at evaluation time.
        value = raw[1:-1]

    return PropertyCompare(
        name=token.property_key,
        op=token.operator,
        operand=raw,
        kind=kind,
        accessor=_SPECIAL_ACCESSORS.get(token.property_key, PropertyAccessor.ENTRY),
        value=value,
        starred=token.starred,
    )


class _Parser:
    """Recursive descent parser for one part of a match query."""

    def __init__(self, text: str, offset: int = 0, todo_part: bool = False) -> None:
        self.todo_part = todo_part
        self.tokens = list(tokenize(text, offset))
        self.pos = 0

    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        """Advance to the next token and return the previous one."""
        token = self._current()
        self.pos += 1
        return token

    def _check(self, *token_types: TokenType) -> bool:
        """Check if current token is of one of the given types."""
        return self._current().type in token_types

    def parse(self) -> QueryExpr:
        """Parse the part and return the AST."""
        alternatives = [self._parse_alternative()]
        while self._check(TokenType.OR):
            self._advance()  # consume |
            alternatives.append(self._parse_alternative())

        if not self._check(TokenType.EOF):
            token = self._current()
            raise QuerySyntaxError(
                f"Unexpected token: {token.value or token.type.name}", token.position
            )

        non_empty = [alt for alt in alternatives if alt.operands]
        if not non_empty:
            return AndExpr(operands=())
        if len(non_empty) == 1:
            return non_empty[0]
        return OrExpr(operands=tuple(non_empty))

    def _parse_alternative(self) -> AndExpr:
        """Parse an alternative: { [&] leaf }."""
        leaves: list[QueryExpr] = []
        while not self._check(TokenType.OR, TokenType.EOF):
            if self._check(TokenType.AND):
                self._advance()  # consume explicit &
                continue
            leaves.append(self._parse_leaf())
        return AndExpr(operands=tuple(leaves))

    def _parse_leaf(self) -> QueryExpr:
        """Parse a leaf: [+|-] (regex | property | tag)."""
        negated = False
        if self._check(TokenType.PLUS, TokenType.MINUS):
            negated = self._advance().type == TokenType.MINUS

        expr = self._parse_primary()
        return NotExpr(operand=expr) if negated else expr

    def _parse_primary(self) -> QueryExpr:
        """Parse the term of a leaf."""
        token = self._current()

        if token.type == TokenType.TAG:
            self._advance()
            matcher = TagMatcher.exact(token.value)
            if self.todo_part:
                return TodoClassTest(matcher=matcher)
            return TagMatch(matcher=matcher)

        if token.type == TokenType.REGEX:
            self._advance()
            matcher = _tag_regex(token)
            if self.todo_part:
                return TodoClassTest(matcher=matcher)
            return TagMatch(matcher=matcher)

        if token.type == TokenType.PROPERTY:
            if self.todo_part:
                raise QuerySyntaxError(
                    "Property comparisons are not allowed in the TODO part",
                    token.position,
                    token.property_key or "",
                )
            self._advance()
            return _build_property_compare(token)

        raise QuerySyntaxError(
            f"Expected a tag, regex or property after sign, got "
            f"{token.value or token.type.name}",
            token.position,
        )


def parse_query(query: str) -> ParsedQuery:
    """Parse a (group-expanded) match query.

    Args:
        query: The query string to parse.

    Returns:
        The parsed parts of the query.

    Raises:
        QuerySyntaxError: If the query is malformed.
        UnknownOperatorError: If an operator is used with an operand kind it
            is not defined for.

    Examples:
        >>> parse_query("+work-boss").tags_expr
        AndExpr(operands=(TagMatch(...), NotExpr(operand=TagMatch(...))))
    """
    tags_text, todo_text, todo_only, todo_offset = split_todo_part(query)
    tags_expr = _Parser(tags_text).parse()
    todo_expr = None
    if todo_text is not None:
        todo_expr = _Parser(todo_text, todo_offset, todo_part=True).parse()
    return ParsedQuery(
        tags_expr=tags_expr,
        todo_expr=todo_expr,
        todo_only=todo_only,
        tags_text=tags_text,
        todo_text=todo_text,
    )
