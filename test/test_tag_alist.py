"""Tests for tag alist parsing and group table derivation."""

from orgscan.outline import (
    TagEntry,
    TagMarker,
    alist_tags,
    parse_tag_string,
    tag_alist_to_groups,
)


def test_parse_plain_tags_with_keys() -> None:
    """Test parsing tags with fast-selection keys."""
    alist = parse_tag_string("@work(w) @home(h) laptop")
    assert alist == [
        TagEntry("@work", "w"),
        TagEntry("@home", "h"),
        TagEntry("laptop"),
    ]


def test_parse_exclusive_group() -> None:
    """Test that braces produce group markers."""
    alist = parse_tag_string("{ @work @home } laptop")
    assert alist == [
        TagMarker.START_GROUP,
        TagEntry("@work"),
        TagEntry("@home"),
        TagMarker.END_GROUP,
        TagEntry("laptop"),
    ]


def test_parse_glued_brackets() -> None:
    """Test that brackets glued to tag names are split off."""
    alist = parse_tag_string("{A B} [C D]")
    assert alist == [
        TagMarker.START_GROUP,
        TagEntry("A"),
        TagEntry("B"),
        TagMarker.END_GROUP,
        TagMarker.START_GROUP_TAG,
        TagEntry("C"),
        TagEntry("D"),
        TagMarker.END_GROUP_TAG,
    ]


def test_groups_need_separator() -> None:
    """Test that groups without ':' define no group tag."""
    assert tag_alist_to_groups(parse_tag_string("{A B} [C D]")) == {}


def test_group_tag_definition() -> None:
    """Test deriving a group tag with a regex member."""
    alist = parse_tag_string("[ Project : proj_a proj_b {P@.+} ]")
    assert TagMarker.GROUP_TAGS_SEPARATOR in alist
    assert tag_alist_to_groups(alist) == {
        "Project": ["proj_a", "proj_b", "{P@.+}"],
    }


def test_exclusive_group_tag_definition() -> None:
    """Test that braces with ':' also define a group tag."""
    alist = parse_tag_string("{ Context : @work @home }")
    assert tag_alist_to_groups(alist) == {"Context": ["@work", "@home"]}


def test_duplicate_group_definitions_merge() -> None:
    """Test that a group defined twice accumulates members in order."""
    alist = parse_tag_string("[ G : a b ]\n[ G : b c ]")
    assert tag_alist_to_groups(alist) == {"G": ["a", "b", "c"]}


def test_lines_are_separated_by_newline_marker() -> None:
    """Test that each declaration line is separated by a NEWLINE marker."""
    alist = parse_tag_string("a b\nc")
    assert alist == [
        TagEntry("a"),
        TagEntry("b"),
        TagMarker.NEWLINE,
        TagEntry("c"),
    ]


def test_duplicate_plain_tags_kept_once() -> None:
    """Test that a tag listed twice outside groups is kept once."""
    assert alist_tags(parse_tag_string("a b a")) == ["a", "b"]


def test_alist_tags_skips_markers() -> None:
    """Test listing tag names without markers."""
    alist = parse_tag_string("{ x y } z")
    assert alist_tags(alist) == ["x", "y", "z"]


def test_empty_string() -> None:
    """Test that an empty declaration gives an empty alist."""
    assert parse_tag_string("") == []
    assert tag_alist_to_groups([]) == {}
