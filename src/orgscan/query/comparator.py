"""Property comparison operators and operand coercion.

How an operand is written decides how it is compared:

    PRIORITY<5              - numeric comparison
    AUTHOR<>"bob"           - lexicographic string comparison
    DEADLINE<"<2024-01-01>" - chronological comparison
    OWNER={^b.*}            - regular expression match
"""

import operator
import re
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum, auto
from typing import Any

from ..errors import UnknownOperatorError

BinaryPredicate = Callable[[Any, Any], bool]

# Longest operators first so that "<=" is not read as "<".
OPERATORS = ("<=", ">=", "==", "<>", "!=", "/=", "<", ">", "=")

# Operator aliases, mapped to their canonical spelling
_ALIASES = {"==": "=", "!=": "<>", "/=": "<>"}

_ORDERING_FUNCTIONS: dict[str, BinaryPredicate] = {
    "<": operator.lt,
    "<=": operator.le,
    "=": operator.eq,
    ">=": operator.ge,
    ">": operator.gt,
    "<>": operator.ne,
}

_NUMBER_PREFIX_RE = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_TIME_OPERAND_RE = re.compile(
    r"^[<\[]?(?:\d{4}-\d{1,2}-\d{1,2}.*|now|today|tomorrow|yesterday"
    r"|[-+]\d+[hdwmy])[>\]]?$"
)
_RELATIVE_TIME_RE = re.compile(r"^([-+]\d+)([hdwmy])$")
_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[^\d>\]]*?(\d{1,2}):(\d{2}))?"
)

# Seconds per relative time unit
_TIME_UNITS = {
    "h": 3600.0,
    "d": 86400.0,
    "w": 604800.0,
    "m": 2678400.0,
    "y": 31557600.0,
}


class OperandKind(Enum):
    """How a property comparison operand is interpreted."""

    REGEX = auto()  # {regex}
    TIME = auto()  # "<2024-01-01>", "today", "+3d", ...
    STRING = auto()  # "text"
    NUMBER = auto()  # 42, -1.5, 1e3


def operand_kind(raw: str) -> OperandKind:
    """Decide the operand kind from the operand's literal syntax.

    Args:
        raw: The operand exactly as written in the query.

    Returns:
        The operand kind.
    """
    if len(raw) >= 2 and raw.startswith("{") and raw.endswith("}"):
        return OperandKind.REGEX
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        if _TIME_OPERAND_RE.match(raw[1:-1]):
            return OperandKind.TIME
        return OperandKind.STRING
    return OperandKind.NUMBER


def normalize_operator(op: str) -> str:
    """Return the canonical spelling of a comparison operator."""
    return _ALIASES.get(op, op)


def op_to_function(op: str, kind: OperandKind) -> BinaryPredicate:
    """Return the binary predicate for an operator and operand kind.

    The predicate is called as ``fn(live_value, operand)``.

    Args:
        op: The operator token (``<``, ``>=``, ``!=``, ...).
        kind: The operand kind.

    Returns:
        The comparison function.

    Raises:
        UnknownOperatorError: If the operator is not defined for the kind.
    """
    canonical = normalize_operator(op)
    if canonical not in _ORDERING_FUNCTIONS:
        raise UnknownOperatorError(f"Unknown comparison operator {op!r}", 0, op)

    if kind is OperandKind.REGEX:
        if canonical == "=":
            return lambda value, pattern: pattern.search(value) is not None
        if canonical == "<>":
            return lambda value, pattern: pattern.search(value) is None
        raise UnknownOperatorError(
            f"Operator {op!r} cannot be used with a regular expression", 0, op
        )

    return _ORDERING_FUNCTIONS[canonical]


def string_to_number(text: str | None) -> float:
    """Parse the leading number of a property value, 0 when there is none."""
    if not text:
        return 0.0
    match = _NUMBER_PREFIX_RE.match(text)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def matcher_time(text: str | None, now: datetime) -> float:
    """Interpret a time comparison value as seconds since the epoch.

    Accepts timestamps (``<2024-01-01 Mon 10:00>``, ``[2024-01-01]``,
    ``2024-01-01``), the words ``now``, ``today``, ``tomorrow`` and
    ``yesterday``, and offsets like ``+3d`` or ``-2w``, with or without
    angle/square brackets.

    Args:
        text: The value to interpret.
        now: The reference instant for relative values.

    Returns:
        The instant as a float, or 0.0 when the value is not recognized.
    """
    if not text:
        return 0.0
    value = text.strip()
    if len(value) >= 2 and value[0] in "<[" and value[-1] in ">]":
        value = value[1:-1].strip()

    today = _start_of_day(now)
    if value == "now":
        return now.timestamp()
    if value == "today":
        return today.timestamp()
    if value == "tomorrow":
        return (today + timedelta(days=1)).timestamp()
    if value == "yesterday":
        return (today - timedelta(days=1)).timestamp()

    relative = _RELATIVE_TIME_RE.match(value)
    if relative:
        amount, unit = int(relative.group(1)), relative.group(2)
        base = now if unit == "h" else today
        return base.timestamp() + amount * _TIME_UNITS[unit]

    stamp = _TIMESTAMP_RE.match(value)
    if stamp:
        year, month, day = (int(stamp.group(i)) for i in (1, 2, 3))
        hour = int(stamp.group(4)) if stamp.group(4) else 0
        minute = int(stamp.group(5)) if stamp.group(5) else 0
        try:
            return datetime(year, month, day, hour, minute).timestamp()
        except ValueError:
            return 0.0

    return 0.0
