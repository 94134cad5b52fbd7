"""Outline document reader.

Reads the subset of Org syntax the matcher needs: headings (stars, TODO
keyword, priority cookie, title, tags), planning lines, property drawers and
the document-wide ``#+KEYWORD:`` settings.
"""

import logging
import re
from pathlib import Path

from ..config import ScanConfig
from ..errors import OutlineParseError
from .models import DocumentSettings, Heading, OutlineDocument
from .tag_alist import parse_tag_string

logger = logging.getLogger(__name__)

_HEADING_RE = re.compile(r"^(\*+)(?:[ \t]+(.*?))?[ \t]*$")
_PRIORITY_RE = re.compile(r"^\[#([A-Z0-9])\][ \t]*")
_TAGS_RE = re.compile(r"(?:^|[ \t]+)(:[\w@#%:]+:)$")
_SETTING_RE = re.compile(r"^#\+([A-Za-z_]+):[ \t]*(.*?)[ \t]*$")
_PLANNING_RE = re.compile(
    r"(SCHEDULED|DEADLINE|CLOSED):[ \t]*([<\[][^>\]]+[>\]])"
)
_PLANNING_LINE_RE = re.compile(r"^[ \t]*(?:SCHEDULED|DEADLINE|CLOSED):")
_DRAWER_START_RE = re.compile(r"^[ \t]*:PROPERTIES:[ \t]*$", re.IGNORECASE)
_DRAWER_END_RE = re.compile(r"^[ \t]*:END:[ \t]*$", re.IGNORECASE)
_PROPERTY_RE = re.compile(r"^[ \t]*:([^:\s]+):(?:[ \t]+(.*?))?[ \t]*$")

_TODO_SETTINGS = ("TODO", "SEQ_TODO", "TYP_TODO")


def _split_tags(text: str) -> list[str]:
    """Split a ``:a:b:`` tag string into its tags."""
    return [tag for tag in text.split(":") if tag]


def _parse_todo_sequence(value: str) -> tuple[list[str], list[str]]:
    """Parse one ``#+TODO:`` value into (not-done, done) keywords.

    Fast-access keys and logging options like ``TODO(t)`` or ``DONE(d!)`` are
    stripped. Without a ``|`` separator the last keyword is the done state.
    """
    words = [re.sub(r"\(.*\)$", "", word) for word in value.split()]
    words = [word for word in words if word]
    if "|" in words:
        split = words.index("|")
        return words[:split], [w for w in words[split + 1 :] if w != "|"]
    if not words:
        return [], []
    return words[:-1], words[-1:]


class _ParserState:
    """Accumulates document settings and the heading under construction."""

    def __init__(self, config: ScanConfig) -> None:
        self.todo_keywords: list[str] = []
        self.done_keywords: list[str] = []
        self.file_tags: list[str] = []
        self.tags_lines: list[str] = []
        self.category: str | None = None
        self.properties: dict[str, str] = {}
        self.odd_levels_only = config.odd_levels_only
        self.config = config

    def read_setting(self, key: str, value: str) -> None:
        """Record a ``#+KEY: value`` line."""
        key = key.upper()
        if key in _TODO_SETTINGS:
            todo, done = _parse_todo_sequence(value)
            self.todo_keywords.extend(k for k in todo if k not in self.todo_keywords)
            self.done_keywords.extend(k for k in done if k not in self.done_keywords)
        elif key == "FILETAGS":
            self.file_tags.extend(
                t for t in _split_tags(value) if t not in self.file_tags
            )
        elif key == "TAGS":
            self.tags_lines.append(value)
        elif key == "CATEGORY":
            self.category = value or None
        elif key == "PROPERTY":
            name, _, prop_value = value.partition(" ")
            if name:
                self.properties[name.upper()] = prop_value.strip()
        elif key == "STARTUP":
            options = value.split()
            if "odd" in options:
                self.odd_levels_only = True
            elif "oddeven" in options:
                self.odd_levels_only = False

    def build_settings(self) -> DocumentSettings:
        """Build the document settings, falling back to configured keywords."""
        todo_keywords = self.todo_keywords
        done_keywords = self.done_keywords
        if not todo_keywords and not done_keywords:
            todo_keywords = list(self.config.todo_keywords)
            done_keywords = list(self.config.done_keywords)

        tags_text = "\n".join(self.tags_lines)
        if self.config.tag_persistent_alist:
            tags_text = "\n".join(
                part for part in (tags_text, self.config.tag_persistent_alist) if part
            )

        return DocumentSettings(
            todo_keywords=todo_keywords,
            done_keywords=done_keywords,
            file_tags=self.file_tags,
            tag_alist=parse_tag_string(tags_text),
            category=self.category,
            properties=self.properties,
            odd_levels_only=self.odd_levels_only,
        )


def _parse_heading_line(
    rest: str, keywords: list[str]
) -> tuple[str | None, str | None, str, list[str]]:
    """Split the text after the stars into (todo, priority, title, tags)."""
    todo: str | None = None
    priority: str | None = None
    tags: list[str] = []

    tags_match = _TAGS_RE.search(rest)
    if tags_match:
        tags = _split_tags(tags_match.group(1))
        rest = rest[: tags_match.start()]

    first, _, remainder = rest.partition(" ")
    if first in keywords:
        todo = first
        rest = remainder.lstrip()

    priority_match = _PRIORITY_RE.match(rest)
    if priority_match:
        priority = priority_match.group(1)
        rest = rest[priority_match.end() :]

    return todo, priority, rest.strip(), tags


def _read_entry_metadata(heading: Heading, lines: list[str]) -> None:
    """Fill planning timestamps and properties from the lines after a heading.

    Args:
        heading: The heading to update.
        lines: The entry's body lines, heading line excluded.
    """
    i = 0
    if i < len(lines) and _PLANNING_LINE_RE.match(lines[i]):
        for keyword, stamp in _PLANNING_RE.findall(lines[i]):
            setattr(heading, keyword.lower(), stamp)
        i += 1

    if i < len(lines) and _DRAWER_START_RE.match(lines[i]):
        for line in lines[i + 1 :]:
            if _DRAWER_END_RE.match(line):
                return
            prop_match = _PROPERTY_RE.match(line)
            if prop_match:
                heading.properties[prop_match.group(1).upper()] = (
                    prop_match.group(2) or ""
                )
        logger.debug("Unterminated property drawer at line %d", heading.line_number)


def parse_outline(
    text: str, name: str = "<string>", config: ScanConfig | None = None
) -> OutlineDocument:
    """Parse outline text into an OutlineDocument.

    Args:
        text: The document text.
        name: Identifier of the document (file path or label).
        config: Scan configuration (defaults used when None).

    Returns:
        The parsed document.
    """
    state = _ParserState(config or ScanConfig())
    lines = text.splitlines(keepends=True)

    for line in lines:
        setting_match = _SETTING_RE.match(line.rstrip("\r\n"))
        if setting_match:
            state.read_setting(setting_match.group(1), setting_match.group(2))

    settings = state.build_settings()
    keywords = settings.all_keywords

    headings: list[Heading] = []
    bodies: list[list[str]] = []
    offset = 0
    for line_number, line in enumerate(lines, start=1):
        heading_match = _HEADING_RE.match(line.rstrip("\r\n"))
        if heading_match:
            if headings:
                headings[-1].end = offset
            todo, priority, title, tags = _parse_heading_line(
                heading_match.group(2) or "", keywords
            )
            headings.append(
                Heading(
                    level=len(heading_match.group(1)),
                    title=title,
                    todo=todo,
                    priority=priority,
                    tags=tags,
                    start=offset,
                    line_number=line_number,
                )
            )
            bodies.append([])
        elif bodies:
            bodies[-1].append(line.rstrip("\r\n"))
        offset += len(line)

    if headings:
        headings[-1].end = len(text)
    for heading, body in zip(headings, bodies):
        _read_entry_metadata(heading, body)

    logger.debug("Parsed %d headings from %s", len(headings), name)
    return OutlineDocument(name=name, text=text, headings=headings, settings=settings)


def read_outline_file(path: str, config: ScanConfig | None = None) -> OutlineDocument:
    """Read and parse an outline file.

    Args:
        path: Path to the file.
        config: Scan configuration (defaults used when None).

    Returns:
        The parsed document, named after ``path``.

    Raises:
        OutlineParseError: If the file cannot be read.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise OutlineParseError(f"Cannot read outline file {path}: {e}") from e
    return parse_outline(text, name=path, config=config)
