"""Tag group expansion.

Every group tag referenced in a match query is replaced by a regex literal
over the group's (recursively expanded) members. With a group ``Work``
defined as ``[ Work : Lab Conf ]``::

    Work       =>  {B(?:Conf|Lab|Work)E}
    -Work      =>  -{B(?:Conf|Lab|Work)E}
    Work|Home  =>  {B(?:Conf|Lab|Work)E}|Home

where ``B`` and ``E`` are tag boundaries. Members written as ``{regex}`` are
appended as alternatives: ``Proj`` defined as ``[ Proj : {P@.+} ]`` expands
to ``{B(?:Proj)E|P@.+}``.
"""

import re
from collections.abc import Mapping, Sequence

from ..errors import GroupExpansionError

# Tag boundaries: like \b, but @, # and % count as tag characters too.
TAG_START = r"(?<![\w@#%])"
TAG_END = r"(?![\w@#%])"

_NAME_RE = re.compile(r"(?<![\w@#%\\])[\w@#%]+(?![\w@#%])")
_OPERATOR_PREFIXES = ("<", ">", "=", "!=", "/=")


def _protected_spans(query: str) -> list[tuple[int, int]]:
    """Find the ``{...}`` and ``"..."`` spans that must not be rewritten."""
    spans: list[tuple[int, int]] = []
    i = 0
    while i < len(query):
        char = query[i]
        if char == '"':
            end = query.find('"', i + 1)
            end = len(query) if end == -1 else end + 1
            spans.append((i, end))
            i = end
        elif char == "{":
            depth = 0
            j = i
            while j < len(query):
                if query[j] == "\\":
                    j += 2
                    continue
                if query[j] == "{":
                    depth += 1
                elif query[j] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            end = min(j + 1, len(query))
            spans.append((i, end))
            i = end
        else:
            i += 1
    return spans


def _expand_group(
    tags: Sequence[str], groups: Mapping[str, Sequence[str]], expanded: list[str]
) -> list[str]:
    """Recursively collect ``tags`` and the members of any group among them.

    Each tag is expanded at most once, so cyclic definitions terminate.
    """
    for tag in tags:
        if tag in expanded:
            continue
        expanded.append(tag)
        members = groups.get(tag)
        if members:
            _expand_group(members, groups, expanded)
    return expanded


def _group_regex(members: list[str]) -> str:
    """Build the ``{...}`` literal that replaces a group reference."""
    regex_tags = [m[1:-1] for m in members if m.startswith("{") and m.endswith("}")]
    plain_tags = sorted({m for m in members if not (m.startswith("{") and m.endswith("}"))})

    alternation = "|".join(re.escape(tag) for tag in plain_tags)
    plain = f"{TAG_START}(?:{alternation}){TAG_END}"
    if not regex_tags:
        return f"{{{plain}}}"
    if not plain_tags:
        return "{" + "|".join(regex_tags) + "}"
    return "{" + "|".join([plain, *regex_tags]) + "}"


def expand_group_to_list(name: str, groups: Mapping[str, Sequence[str]]) -> list[str]:
    """Return the flat list of tags a single group tag stands for.

    The group tag itself comes first. A name that is not a group returns
    just itself.

    Raises:
        GroupExpansionError: If ``name`` is blank.
    """
    if not name or not name.strip():
        raise GroupExpansionError(f"Invalid match tag: {name!r}")
    return _expand_group([name.strip()], groups, [])


def expand_tag_groups(query: str, groups: Mapping[str, Sequence[str]]) -> str:
    """Replace every group tag referenced in ``query`` by a tag regex.

    Group names are matched as whole tag words, case-insensitively; a
    preceding ``+``/``-`` sign is kept. Text inside ``{...}`` regex literals
    and ``"..."`` strings is left untouched, as is a name used as a
    property name (directly followed by a comparison operator).

    Args:
        query: The raw match query.
        groups: Mapping from group tag to member tags.

    Returns:
        The expanded query. Expanding it again returns it unchanged.

    Raises:
        GroupExpansionError: If ``query`` is blank.
    """
    if not query or not query.strip():
        raise GroupExpansionError(f"Invalid match tag: {query!r}")
    if not groups:
        return query

    names_by_key: dict[str, str] = {}
    for group_name in groups:
        names_by_key.setdefault(group_name.lower(), group_name)

    spans = _protected_spans(query)
    pieces: list[str] = []
    last = 0
    for match in _NAME_RE.finditer(query):
        start, end = match.span()
        group_name = names_by_key.get(match.group(0).lower())
        if group_name is None:
            continue
        if any(s <= start < e for s, e in spans):
            continue
        if query.startswith(_OPERATOR_PREFIXES, end):
            continue
        pieces.append(query[last:start])
        pieces.append(_group_regex(_expand_group([group_name], groups, [])))
        last = end
    pieces.append(query[last:])
    return "".join(pieces)
