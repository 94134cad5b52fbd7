"""Tag alist parsing and tag group table derivation.

A tag alist is the parsed form of one or more ``#+TAGS:`` lines, e.g.::

    #+TAGS: { @work(w) @home(h) } laptop
    #+TAGS: [ Project : proj_a proj_b {P@.+} ]

Braces delimit mutually exclusive groups, brackets delimit plain group tags,
and a ``:`` after the first tag of either makes that tag a *group tag* whose
members are the tags that follow it.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto

TAG_CHARS = r"[\w@#%]"
_TAG_TOKEN_RE = re.compile(rf"^({TAG_CHARS}+|{{.+?}})(?:\((.)\))?$")


class TagMarker(Enum):
    """Structural markers in a tag alist."""

    START_GROUP = auto()  # {
    END_GROUP = auto()  # }
    START_GROUP_TAG = auto()  # [
    END_GROUP_TAG = auto()  # ]
    GROUP_TAGS_SEPARATOR = auto()  # :
    NEWLINE = auto()  # line break between #+TAGS lines


@dataclass(frozen=True)
class TagEntry:
    """A plain tag in a tag alist.

    Attributes:
        tag: The tag name, or a ``{regex}`` tag inside a group.
        key: Optional fast-selection key character.
    """

    tag: str
    key: str | None = None


TagAlistItem = TagEntry | TagMarker

# Maps a group tag to its member tags, in declaration order.
GroupTable = dict[str, list[str]]

_MARKER_TOKENS = {
    "{": TagMarker.START_GROUP,
    "}": TagMarker.END_GROUP,
    "[": TagMarker.START_GROUP_TAG,
    "]": TagMarker.END_GROUP_TAG,
    ":": TagMarker.GROUP_TAGS_SEPARATOR,
}
_START_MARKERS = (TagMarker.START_GROUP, TagMarker.START_GROUP_TAG)
_END_MARKERS = (TagMarker.END_GROUP, TagMarker.END_GROUP_TAG)


def _split_line(line: str) -> list[str]:
    """Split one tags line into tokens, detaching brackets glued to tags."""
    tokens: list[str] = []
    for word in line.split():
        if word in _MARKER_TOKENS or re.fullmatch(r"{[^\s{}]+}(?:\(.\))?", word):
            tokens.append(word)
            continue
        head: list[str] = []
        tail: list[str] = []
        while word and word[0] in "{[":
            head.append(word[0])
            word = word[1:]
        while word and word[-1] in "}]":
            tail.insert(0, word[-1])
            word = word[:-1]
        tokens.extend(head)
        if word:
            tokens.append(word)
        tokens.extend(tail)
    return tokens


def parse_tag_string(text: str) -> list[TagAlistItem]:
    """Parse the value of one or more ``#+TAGS:`` lines into a tag alist.

    Lines are separated by ``NEWLINE`` markers. A tag listed twice is kept
    once unless it appears inside a group definition.

    Args:
        text: The tags declaration; multiple lines are allowed.

    Returns:
        The ordered tag alist.
    """
    alist: list[TagAlistItem] = []
    seen: set[str] = set()
    group_flag = False

    for line in (ln for ln in text.splitlines() if ln.strip()):
        if alist:
            alist.append(TagMarker.NEWLINE)
        tokens = _split_line(line)
        for i, token in enumerate(tokens):
            marker = _MARKER_TOKENS.get(token)
            if marker in _START_MARKERS:
                alist.append(marker)
                if i + 2 < len(tokens) and tokens[i + 2] == ":":
                    group_flag = True
            elif marker in _END_MARKERS:
                alist.append(marker)
                group_flag = False
            elif marker is TagMarker.GROUP_TAGS_SEPARATOR:
                alist.append(marker)
            else:
                match = _TAG_TOKEN_RE.match(token)
                if not match:
                    continue
                tag = match.group(1)
                if group_flag or tag not in seen:
                    alist.append(TagEntry(tag=tag, key=match.group(2)))
                    seen.add(tag)

    return alist


def tag_alist_to_groups(alist: list[TagAlistItem]) -> GroupTable:
    """Derive the group table from a tag alist.

    Only groups written with a ``:`` separator define a group tag. A group
    tag defined more than once accumulates the members of every definition.

    Args:
        alist: A tag alist as returned by parse_tag_string().

    Returns:
        Mapping from group tag to member tags.
    """
    groups: GroupTable = {}
    status: str | None = None
    current: list[str] = []

    for item in alist:
        if item in _START_MARKERS:
            status = "start"
            current = []
        elif item in _END_MARKERS:
            if status == "append" and current:
                name, members = current[0], current[1:]
                existing = groups.setdefault(name, [])
                existing.extend(m for m in members if m not in existing)
            status = None
        elif item is TagMarker.GROUP_TAGS_SEPARATOR:
            if status is not None:
                status = "append"
        elif isinstance(item, TagEntry) and status is not None:
            if status == "append":
                current.append(item.tag)
            else:
                current = [item.tag]

    return groups


def alist_tags(alist: list[TagAlistItem]) -> list[str]:
    """Return the plain tag names of a tag alist, without markers."""
    return [item.tag for item in alist if isinstance(item, TagEntry)]
