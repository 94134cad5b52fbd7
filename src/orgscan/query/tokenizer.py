"""Tokenizer for the match query language."""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from ..errors import QuerySyntaxError
from .comparator import OPERATORS


class TokenType(Enum):
    """Token types for the match query language."""

    TAG = auto()  # Bare tag name (or TODO keyword in the TODO part)
    REGEX = auto()  # {regex} literal
    PROPERTY = auto()  # Property comparison: NAME OP [*] OPERAND
    PLUS = auto()  # + (require)
    MINUS = auto()  # - (exclude)
    AND = auto()  # & (explicit conjunction)
    OR = auto()  # |
    EOF = auto()  # End of input


@dataclass
class Token:
    """A token from the match query language.

    Attributes:
        type: The type of token.
        value: Tag name for TAG tokens, regex source for REGEX tokens, the
            operand as written for PROPERTY tokens.
        position: Position in input for error messages.
        property_key: For PROPERTY tokens, the unescaped property name.
        operator: For PROPERTY tokens, the comparison operator.
        starred: For PROPERTY tokens, whether the operator carried a ``*``.
    """

    type: TokenType
    value: str
    position: int = 0
    property_key: str | None = None
    operator: str | None = None
    starred: bool = False


_NUMBER_RE = re.compile(r"-?[.0-9]+(?:[eE][-+]?[0-9]+)?")
_TAG_NAME_RE = re.compile(r"[\w@#%]+")
_PROPERTY_NAME_RE = re.compile(r"(?:\w|\\\S)+")
_TERM_END_CHARS = " \t\r\n|&"


def _skip_whitespace(query: str, pos: int) -> int:
    """Skip whitespace characters and return new position."""
    while pos < len(query) and query[pos] in " \t\r\n":
        pos += 1
    return pos


def _is_name_char(char: str) -> bool:
    """Check if a character can start a tag or property name."""
    return char.isalnum() or char in "_@#%\\"


def _fragment(query: str, start: int) -> str:
    """Return the term starting at ``start``, for error messages."""
    end = start
    while end < len(query) and query[end] not in _TERM_END_CHARS:
        end += 1
    return query[start:end] or query[start:]


def read_braced(query: str, pos: int, offset: int = 0) -> tuple[str, int]:
    """Read a ``{...}`` literal starting at ``pos``.

    Nested braces are balanced and backslash escapes are skipped, so
    quantifiers like ``a{2}`` are allowed inside the literal.

    Args:
        query: The query string.
        pos: Position of the opening brace.
        offset: Offset of ``query`` in the full query, for error positions.

    Returns:
        Tuple of (inner text, position after the closing brace).

    Raises:
        QuerySyntaxError: If the literal is empty or not terminated.
    """
    depth = 0
    i = pos
    while i < len(query):
        char = query[i]
        if char == "\\":
            i += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                inner = query[pos + 1 : i]
                if not inner:
                    raise QuerySyntaxError(
                        "Empty regular expression", offset + pos, "{}"
                    )
                return inner, i + 1
        i += 1
    raise QuerySyntaxError(
        "Unterminated regular expression", offset + pos, query[pos:]
    )


def _read_name(query: str, pos: int) -> tuple[str, int]:
    """Read a run of tag characters and backslash escapes."""
    start = pos
    while pos < len(query):
        char = query[pos]
        if char == "\\" and pos + 1 < len(query) and not query[pos + 1].isspace():
            pos += 2
        elif char.isalnum() or char in "_@#%":
            pos += 1
        else:
            break
    return query[start:pos], pos


def _match_operator(query: str, pos: int) -> str | None:
    """Return the comparison operator starting at ``pos``, if any."""
    for op in OPERATORS:
        if query.startswith(op, pos):
            return op
    return None


def _read_operand(
    query: str, pos: int, term_start: int, offset: int
) -> tuple[str, int]:
    """Read a comparison operand: ``{regex}``, ``"string"`` or a number.

    Returns:
        Tuple of (operand as written, new_position).

    Raises:
        QuerySyntaxError: If no valid operand starts at ``pos``.
    """
    if pos < len(query) and query[pos] == "{":
        inner, end = read_braced(query, pos, offset)
        return "{" + inner + "}", end

    if pos < len(query) and query[pos] == '"':
        end = query.find('"', pos + 1)
        if end == -1:
            raise QuerySyntaxError(
                "Unterminated string", offset + term_start, query[term_start:]
            )
        return query[pos : end + 1], end + 1

    number = _NUMBER_RE.match(query, pos)
    if number:
        return number.group(0), number.end()

    raise QuerySyntaxError(
        "Invalid operand in property comparison",
        offset + term_start,
        _fragment(query, term_start),
    )


def _unescape(name: str) -> str:
    """Remove backslash escapes from a property name."""
    return re.sub(r"\\(.)", r"\1", name)


def tokenize(query: str, offset: int = 0) -> Iterator[Token]:
    """Tokenize one part of a match query into tokens.

    Args:
        query: The query text to tokenize.
        offset: Offset of ``query`` in the full query, added to positions.

    Yields:
        Token objects, ending with an EOF token.

    Raises:
        QuerySyntaxError: If tokenization fails.
    """
    pos = 0
    length = len(query)

    while pos < length:
        pos = _skip_whitespace(query, pos)
        if pos >= length:
            break

        char = query[pos]

        if char == "|":
            yield Token(type=TokenType.OR, value="|", position=offset + pos)
            pos += 1
        elif char == "&":
            yield Token(type=TokenType.AND, value="&", position=offset + pos)
            pos += 1
        elif char == "+":
            yield Token(type=TokenType.PLUS, value="+", position=offset + pos)
            pos += 1
        elif char == "-":
            yield Token(type=TokenType.MINUS, value="-", position=offset + pos)
            pos += 1
        elif char == "{":
            inner, end = read_braced(query, pos, offset)
            yield Token(type=TokenType.REGEX, value=inner, position=offset + pos)
            pos = end
        elif _is_name_char(char):
            start = pos
            name, pos = _read_name(query, pos)
            if not name:
                raise QuerySyntaxError(
                    "Invalid escape", offset + start, _fragment(query, start)
                )
            op = _match_operator(query, pos)
            if op is not None:
                if not _PROPERTY_NAME_RE.fullmatch(name):
                    raise QuerySyntaxError(
                        "Invalid property name",
                        offset + start,
                        _fragment(query, start),
                    )
                pos += len(op)
                starred = query.startswith("*", pos)
                if starred:
                    pos += 1
                operand, pos = _read_operand(query, pos, start, offset)
                yield Token(
                    type=TokenType.PROPERTY,
                    value=operand,
                    position=offset + start,
                    property_key=_unescape(name).upper(),
                    operator=op,
                    starred=starred,
                )
            elif _TAG_NAME_RE.fullmatch(name):
                yield Token(type=TokenType.TAG, value=name, position=offset + start)
            else:
                raise QuerySyntaxError(
                    "Escapes are only allowed in property names",
                    offset + start,
                    _fragment(query, start),
                )
        else:
            raise QuerySyntaxError(
                f"Unexpected character {char!r}", offset + pos, _fragment(query, pos)
            )

    yield Token(type=TokenType.EOF, value="", position=offset + pos)
