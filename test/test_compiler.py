"""Tests for compiled matchers and expression evaluation."""

from datetime import datetime
from itertools import chain, combinations

import pytest
from orgscan.errors import QuerySyntaxError, UnknownOperatorError
from orgscan.query import (
    HeadingContext,
    compile_matcher,
    evaluate,
    expand_tag_groups,
)

TAG_SETS = [
    tuple(combo)
    for combo in chain.from_iterable(
        combinations(["a", "b", "c"], n) for n in range(4)
    )
]


def _props(**values: str):  # type: ignore[no-untyped-def]
    return lambda name: values.get(name)


def test_require_exclude_truth_table() -> None:
    """Test that +a-b holds exactly when a is present and b is absent."""
    matcher = compile_matcher("+a-b")
    for tags in TAG_SETS:
        expected = "a" in tags and "b" not in tags
        assert matcher.predicate(None, tags, 1) is expected, tags


def test_or_is_union_of_alternatives() -> None:
    """Test that an OR query matches when any alternative matches."""
    whole = compile_matcher("a b|c")
    left = compile_matcher("a b")
    right = compile_matcher("c")
    for tags in TAG_SETS:
        assert whole.predicate(None, tags, 1) == (
            left.predicate(None, tags, 1) or right.predicate(None, tags, 1)
        )


def test_and_is_commutative() -> None:
    """Test that term order inside an alternative does not matter."""
    queries = ["a-b|c", "-b+a|c", "c|-b a"]
    matchers = [compile_matcher(q) for q in queries]
    for tags in TAG_SETS:
        results = {m.predicate(None, tags, 1) for m in matchers}
        assert len(results) == 1, tags


def test_empty_query_matches_everything() -> None:
    """Test that an empty query matches any heading."""
    matcher = compile_matcher("")
    assert matcher.predicate(None, (), 1) is True
    assert matcher.predicate("DONE", ("x",), 3) is True


def test_numeric_vs_string_operand() -> None:
    """Test that operand syntax, not the live value, picks the comparison."""
    get_property = _props(AGE="10")
    assert (
        compile_matcher("AGE<5").predicate(None, (), 1, get_property=get_property)
        is False
    )
    assert (
        compile_matcher('AGE<"5"').predicate(None, (), 1, get_property=get_property)
        is True
    )


def test_numeric_value_parsed_leniently() -> None:
    """Test that non-numeric property values compare as 0."""
    get_property = _props(EFFORT="n/a")
    assert compile_matcher("EFFORT=0").predicate(None, (), 1, get_property=get_property)


def test_missing_property_defaults() -> None:
    """Test that missing properties compare as 0 or the empty string."""
    assert compile_matcher("AGE>5").predicate(None, (), 1) is False
    assert compile_matcher("AGE<5").predicate(None, (), 1) is True
    assert compile_matcher('OWNER=""').predicate(None, (), 1) is True


def test_starred_missing_property_matches() -> None:
    """Test that a starred comparison succeeds when the property is missing."""
    matcher = compile_matcher("AGE>*5")
    assert matcher.predicate(None, (), 1) is True
    assert matcher.predicate(None, (), 1, get_property=_props(AGE="3")) is False
    assert matcher.predicate(None, (), 1, get_property=_props(AGE="7")) is True


def test_regex_property() -> None:
    """Test regex property comparisons, case-insensitively."""
    matcher = compile_matcher("OWNER={^b}")
    assert matcher.predicate(None, (), 1, get_property=_props(OWNER="bob"))
    assert matcher.predicate(None, (), 1, get_property=_props(OWNER="Bob"))
    assert not matcher.predicate(None, (), 1, get_property=_props(OWNER="alice"))
    negated = compile_matcher("OWNER<>{^b}")
    assert negated.predicate(None, (), 1, get_property=_props(OWNER="alice"))


def test_time_property() -> None:
    """Test that time operands compare chronologically against now."""
    now = datetime(2024, 5, 10, 12, 0)
    matcher = compile_matcher('DEADLINE<"<today>"')
    past = _props(DEADLINE="<2020-01-01 Wed>")
    future = _props(DEADLINE="<2030-01-01 Tue>")
    assert matcher.predicate(None, (), 1, get_property=past, now=now) is True
    assert matcher.predicate(None, (), 1, get_property=future, now=now) is False


def test_level_comparison() -> None:
    """Test that LEVEL compares the level argument."""
    matcher = compile_matcher("LEVEL=2")
    assert matcher.predicate(None, (), 2) is True
    assert matcher.predicate(None, (), 3) is False
    assert compile_matcher("LEVEL>1").predicate(None, (), 3) is True


def test_todo_and_category_accessors() -> None:
    """Test that TODO and CATEGORY read from the heading."""
    assert compile_matcher('TODO="WAIT"').predicate("WAIT", (), 1) is True
    assert compile_matcher('TODO="WAIT"').predicate(None, (), 1) is False
    assert (
        compile_matcher('CATEGORY="work"').predicate(None, (), 1, category="work")
        is True
    )


def test_todo_part() -> None:
    """Test keyword tests in the TODO part."""
    matcher = compile_matcher("work/TODO|WAIT")
    assert matcher.predicate("TODO", ("work",), 1) is True
    assert matcher.predicate("WAIT", ("work",), 1) is True
    assert matcher.predicate("DONE", ("work",), 1) is False
    assert matcher.predicate("TODO", ("home",), 1) is False


def test_todo_part_regex() -> None:
    """Test a regex keyword test."""
    matcher = compile_matcher("/{^W}")
    assert matcher.predicate("WAIT", (), 1) is True
    assert matcher.predicate("TODO", (), 1) is False
    assert matcher.predicate(None, (), 1) is False


def test_todo_only() -> None:
    """Test that /! requires a not-done keyword."""
    matcher = compile_matcher("work/!")
    assert matcher.todo_only is True
    keywords = ("TODO", "WAIT")
    assert matcher.predicate("TODO", ("work",), 1, not_done_keywords=keywords)
    assert matcher.predicate("WAIT", ("work",), 1, not_done_keywords=keywords)
    assert not matcher.predicate("DONE", ("work",), 1, not_done_keywords=keywords)
    assert not matcher.predicate(None, ("work",), 1, not_done_keywords=keywords)


def test_regex_tag() -> None:
    """Test that regex tags match any tag."""
    matcher = compile_matcher("{^pro}")
    assert matcher.predicate(None, ("x", "project"), 1) is True
    assert matcher.predicate(None, ("x",), 1) is False


def test_group_expansion() -> None:
    """Test that a group tag matches any of its members."""
    groups = {"A": ["B", "C"]}
    matcher = compile_matcher("A", groups)
    assert matcher.normalized_query == expand_tag_groups("A", groups)
    assert matcher.predicate(None, ("B",), 1) is True
    assert matcher.predicate(None, ("C",), 1) is True
    assert matcher.predicate(None, ("A",), 1) is True
    assert matcher.predicate(None, ("D",), 1) is False
    assert matcher.predicate(None, ("BC",), 1) is False


def test_matchers_are_cached() -> None:
    """Test that compiling the same query twice reuses the matcher."""
    assert compile_matcher("a b") is compile_matcher("a b")
    assert compile_matcher("A", {"A": ["B"]}) is compile_matcher("A", {"A": ["B"]})
    assert compile_matcher("A", {"A": ["B"]}) is not compile_matcher("A")


def test_canonical_query() -> None:
    """Test rendering a compiled query with explicit signs."""
    assert compile_matcher("a -b|c/!TODO").canonical_query() == "+a-b|+c/!+TODO"
    assert compile_matcher("a").canonical_query() == "+a"


def test_matches_heading_context() -> None:
    """Test evaluating against a HeadingContext directly."""
    matcher = compile_matcher("+a+PRIORITY=\"A\"")
    ctx = HeadingContext(
        todo=None,
        tags=("a",),
        level=1,
        get_property=_props(PRIORITY="A"),
    )
    assert matcher.matches(ctx) is True
    assert evaluate(matcher.expr, ctx) is True


def test_invalid_query_raises() -> None:
    """Test that malformed queries raise at compile time."""
    with pytest.raises(QuerySyntaxError):
        compile_matcher("a<")
    with pytest.raises(UnknownOperatorError):
        compile_matcher("P>{x}")


def test_tag_regex_is_case_sensitive() -> None:
    """Test that regex tags follow the case of exact tags."""
    assert compile_matcher("{^Work$}").predicate(None, ("work",), 1) is False
    assert compile_matcher("{^Work$}").predicate(None, ("Work",), 1) is True
    assert compile_matcher("B").predicate(None, ("b",), 1) is False


def test_group_expansion_is_case_sensitive() -> None:
    """Test that a group tag matches its members with their exact case."""
    matcher = compile_matcher("A", {"A": ["B", "C"]})
    assert matcher.predicate(None, ("b",), 1) is False
    assert matcher.predicate(None, ("a",), 1) is False
    assert matcher.predicate(None, ("B",), 1) is True


def test_todo_regex_is_case_sensitive() -> None:
    """Test that keyword regexes in the TODO part are case-sensitive."""
    matcher = compile_matcher("/{^todo$}")
    assert matcher.predicate("TODO", (), 1) is False
    assert matcher.predicate("todo", (), 1, not_done_keywords=("todo",)) is True
