"""Match query language for selecting outline headings.

Query Language Examples:
    work                       - Headings tagged "work"
    +work-boss                 - Tagged "work" but not "boss"
    work|laptop                - Tagged "work" or "laptop"
    {^proj@}                   - Some tag matches the regex
    work+PRIORITY="A"          - Also compare a property
    LEVEL=2                    - Headings at reduced level 2
    DEADLINE<"<today>"         - Time comparison
    work/TODO|WAIT             - Tagged "work" with keyword TODO or WAIT
    work/!                     - Tagged "work" with any not-done keyword

Operand syntax decides the comparison:
    AGE<5                      - Numeric
    AUTHOR<>"bob"              - String (lexicographic)
    OWNER={^b}                 - Regular expression
    SCHEDULED>"+2d"            - Chronological

Precedence (tightest to loosest):
    1. +/- (sign)
    2. AND (juxtaposition or &)
    3. OR (|)
"""

from .comparator import OperandKind, matcher_time, op_to_function, operand_kind
from .compiler import CompiledMatcher, compile_matcher
from .evaluator import HeadingContext, evaluate
from .groups import expand_group_to_list, expand_tag_groups
from .parser import ParsedQuery, parse_query, split_todo_part
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
    to_canonical_string,
)

__all__ = [
    # Compiler
    "compile_matcher",
    "CompiledMatcher",
    # Groups
    "expand_tag_groups",
    "expand_group_to_list",
    # Parser
    "parse_query",
    "split_todo_part",
    "ParsedQuery",
    # Evaluator
    "evaluate",
    "HeadingContext",
    # Comparator
    "OperandKind",
    "operand_kind",
    "op_to_function",
    "matcher_time",
    # Types
    "QueryExpr",
    "TagMatch",
    "TagMatcher",
    "PropertyCompare",
    "PropertyAccessor",
    "TodoClassTest",
    "NotExpr",
    "AndExpr",
    "OrExpr",
    # Utilities
    "to_canonical_string",
]
