"""Tests for the outline document reader."""

from pathlib import Path
from typing import Any

import pytest
from orgscan.config import ScanConfig
from orgscan.errors import OutlineParseError
from orgscan.outline import parse_outline, read_outline_file

DOCUMENT = """
#+TODO: TODO(t) NEXT(n!) | DONE(d) CANCELLED
#+FILETAGS: :team:
#+CATEGORY: ops
#+PROPERTY: OWNER alice
#+TAGS: { @work @home } [ Proj : alpha beta ]
* TODO [#A] Fix the build :ci:urgent:
DEADLINE: <2024-06-01 Sat> SCHEDULED: <2024-05-30 Thu>
:PROPERTIES:
:EFFORT: 2h
:owner: bob
:END:
Body text.
** NEXT Write tests
*** CANCELLED Old idea
* Plain heading
"""


@pytest.fixture
def document(make_outline: Any) -> Any:
    return make_outline.create(DOCUMENT, name="ops.org")


def test_settings(document: Any) -> None:
    """Test the document-wide declarations."""
    settings = document.settings
    assert settings.todo_keywords == ["TODO", "NEXT"]
    assert settings.done_keywords == ["DONE", "CANCELLED"]
    assert settings.file_tags == ["team"]
    assert settings.category == "ops"
    assert settings.properties == {"OWNER": "alice"}
    assert settings.tag_groups == {"Proj": ["alpha", "beta"]}


def test_heading_fields(document: Any) -> None:
    """Test keyword, priority, title and tags of headings."""
    first, second, third, fourth = document.headings
    assert (first.level, first.todo, first.priority) == (1, "TODO", "A")
    assert first.title == "Fix the build"
    assert first.tags == ["ci", "urgent"]
    assert (second.level, second.todo, second.title) == (2, "NEXT", "Write tests")
    assert (third.level, third.todo) == (3, "CANCELLED")
    assert (fourth.todo, fourth.priority, fourth.tags) == (None, None, [])
    assert fourth.title == "Plain heading"


def test_planning_and_properties(document: Any) -> None:
    """Test planning timestamps and property drawers."""
    first = document.headings[0]
    assert first.deadline == "<2024-06-01 Sat>"
    assert first.scheduled == "<2024-05-30 Thu>"
    assert first.closed is None
    assert first.properties == {"EFFORT": "2h", "OWNER": "bob"}
    assert document.headings[1].properties == {}


def test_positions(document: Any) -> None:
    """Test char offsets, line numbers and subtree helpers."""
    headings = document.headings
    assert document.text[headings[0].start :].startswith("* TODO [#A] Fix")
    assert headings[0].line_number == 6
    assert headings[0].end == headings[1].start
    assert headings[-1].end == len(document.text)

    assert document.parent_index(0) is None
    assert document.parent_index(2) == 1
    assert document.ancestor_indices(2) == [0, 1]
    assert document.subtree_end_index(0) == 3
    assert document.subtree_end(0) == headings[3].start
    assert document.subtree_end(3) == len(document.text)
    assert document.text[headings[0].start : document.heading_line_end(0)] == (
        "* TODO [#A] Fix the build :ci:urgent:\n"
    )

    assert document.index_at_or_after(0) == 0
    assert document.index_at_or_after(headings[0].start + 1) == 1
    assert document.index_at_or_after(len(document.text)) == 4
    assert document.index_containing(headings[0].start + 40) == 0
    assert document.index_containing(0) is None


def test_default_keywords_from_config(make_outline: Any) -> None:
    """Test that configured keywords apply without #+TODO lines."""
    config = ScanConfig(todo_keywords=["TODO", "WAIT"], done_keywords=["DONE"])
    document = make_outline.create("* WAIT thing\n* Other\n", config=config)
    assert document.headings[0].todo == "WAIT"
    assert document.headings[0].title == "thing"
    assert document.settings.todo_keywords == ["TODO", "WAIT"]


def test_todo_sequence_without_separator(make_outline: Any) -> None:
    """Test that the last keyword is the done state without a bar."""
    document = make_outline.create("#+TODO: OPEN REVIEW CLOSED\n* CLOSED x\n")
    assert document.settings.todo_keywords == ["OPEN", "REVIEW"]
    assert document.settings.done_keywords == ["CLOSED"]
    assert document.headings[0].todo == "CLOSED"


def test_odd_levels_startup(make_outline: Any) -> None:
    """Test that #+STARTUP: odd is recorded."""
    document = make_outline.create("#+STARTUP: overview odd\n* a\n")
    assert document.settings.odd_levels_only is True


def test_keyword_needs_word_boundary(make_outline: Any) -> None:
    """Test that a keyword prefix of a word is not a keyword."""
    document = make_outline.create("* TODOS list\n* TODO\n")
    assert document.headings[0].todo is None
    assert document.headings[0].title == "TODOS list"
    assert document.headings[1].todo == "TODO"
    assert document.headings[1].title == ""


def test_persistent_tags_from_config(make_outline: Any) -> None:
    """Test that persistent tag declarations join the document's groups."""
    config = ScanConfig(tag_persistent_alist="[ Proj : alpha beta ]")
    document = make_outline.create("* a\n", config=config)
    assert document.settings.tag_groups == {"Proj": ["alpha", "beta"]}


def test_read_outline_file(tmp_path: Path) -> None:
    """Test reading an outline from disk."""
    path = tmp_path / "notes.org"
    path.write_text("* TODO one :x:\n")
    document = read_outline_file(str(path))
    assert document.name == str(path)
    assert document.stem == "notes"
    assert document.headings[0].tags == ["x"]


def test_read_missing_file_raises(tmp_path: Path) -> None:
    """Test that unreadable files raise OutlineParseError."""
    with pytest.raises(OutlineParseError):
        read_outline_file(str(tmp_path / "missing.org"))


def test_parse_outline_without_headings() -> None:
    """Test parsing text that has no headings."""
    document = parse_outline("just text\n")
    assert document.headings == []
    assert document.index_at_or_after(0) == 0
