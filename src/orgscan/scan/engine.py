"""The heading scan loop shared by every action.

The engine walks the headings of a document in order, keeps the inherited
state of the current heading up to date, evaluates the matcher and hands
each match to an action. It never changes the document.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any, Literal

from ..config import ScanConfig
from ..errors import ScanCallbackError, StopScan
from ..outline.models import OutlineDocument
from ..query.compiler import CompiledMatcher, compile_matcher
from .context import ScanContext

logger = logging.getLogger(__name__)

# A compiled query, a query string (compiled per document with its tag
# groups), or True to match every heading.
Matcher = CompiledMatcher | str | Literal[True]
SkipFunction = Callable[[ScanContext], int | None]
Action = Callable[[ScanContext], Any]


class ScanMode(Enum):
    """What the engine does with a match."""

    EXPOSE = auto()  # action reveals the match; results are heading offsets
    COLLECT = auto()  # results are the action's return values (report rows)
    INVOKE = auto()  # results are callback return values; errors are wrapped


@dataclass
class ScanOptions:
    """Traversal options for one scan.

    Attributes:
        todo_only: Only match headings with a not-done keyword.
        list_sublevels: Also visit the descendants of a match.
        start_level: Only match headings with exactly this many stars.
        skip_archived: Skip subtrees carrying the archive tag.
        skip_commented: Skip commented subtrees.
        skip_function: Called at each match; a returned offset skips the
            heading and resumes the scan there.
        continue_on_error: Log callback errors and go on instead of raising.
        start: Char offset where the scan starts.
        end: Char offset before which headings must start (None: end of text).
        now: Reference instant for relative time comparisons.
    """

    todo_only: bool = False
    list_sublevels: bool = False
    start_level: int | None = None
    skip_archived: bool = False
    skip_commented: bool = False
    skip_function: SkipFunction | None = None
    continue_on_error: bool = False
    start: int = 0
    end: int | None = None
    now: datetime | None = None


def resolve_matcher(
    matcher: Matcher, document: OutlineDocument
) -> CompiledMatcher | Literal[True]:
    """Compile a query string against the tag groups of ``document``."""
    if isinstance(matcher, str):
        return compile_matcher(matcher, document.settings.tag_groups)
    return matcher


def _next_index(document: OutlineDocument, position: int, index: int) -> int:
    """Heading index to resume at ``position``, always past ``index``."""
    return max(document.index_at_or_after(position), index + 1)


def _scan_into(
    results: list[Any],
    document: OutlineDocument,
    compiled: CompiledMatcher | Literal[True],
    mode: ScanMode,
    action: Action,
    options: ScanOptions,
    config: ScanConfig | None,
) -> bool:
    """Scan one document, appending one result per handled match.

    Returns:
        True if the action ended the scan with StopScan.
    """
    ctx = ScanContext(document, config, options.now)
    headings = document.headings
    end = len(document.text) if options.end is None else options.end
    todo_only = options.todo_only or (compiled is not True and compiled.todo_only)

    stopped = False
    found = 0
    visited = 0
    i = document.index_at_or_after(options.start)
    while i < len(headings) and headings[i].start < end:
        heading = headings[i]
        ctx.enter(i)
        visited += 1

        if (options.skip_archived and ctx.in_archived) or (
            options.skip_commented and ctx.in_commented
        ):
            i = document.subtree_end_index(i)
            continue

        if options.start_level is not None and heading.level != options.start_level:
            i += 1
            continue

        matched = compiled is True or compiled.matches(ctx.heading_context())
        if matched and todo_only:
            matched = heading.todo in ctx.not_done_keywords
        if not matched:
            i += 1
            continue

        if options.skip_function is not None:
            resume = options.skip_function(ctx)
            if resume is not None:
                i = _next_index(document, resume, i)
                continue

        try:
            result = action(ctx)
        except StopScan:
            logger.debug("Scan of %s stopped at %d", document.name, heading.start)
            stopped = True
            break
        except Exception as e:
            if mode is not ScanMode.INVOKE:
                raise
            if not options.continue_on_error:
                raise ScanCallbackError(document.name, heading.start, e) from e
            logger.warning(
                "Skipping heading at %s:%d: %s: %s",
                document.name,
                heading.line_number,
                type(e).__name__,
                e,
            )
            i += 1
            continue

        results.append(heading.start if mode is ScanMode.EXPOSE else result)
        found += 1

        if mode is ScanMode.INVOKE and ctx.continue_from is not None:
            i = _next_index(document, ctx.continue_from, i)
        elif options.list_sublevels:
            i += 1
        else:
            i = document.subtree_end_index(i)

    logger.debug("Scanned %d headings of %s, %d matches", visited, document.name, found)
    return stopped


def scan_document(
    document: OutlineDocument,
    matcher: Matcher,
    mode: ScanMode,
    action: Action,
    options: ScanOptions | None = None,
    config: ScanConfig | None = None,
) -> list[Any]:
    """Scan one document and apply ``action`` to every match.

    Args:
        document: The document to scan.
        matcher: Compiled query, query string, or True to match everything.
        mode: How matches and action results are handled.
        action: Called with the scan context at each match.
        options: Traversal options.
        config: Scan configuration (defaults used when None).

    Returns:
        One result per handled match, in document order. EXPOSE scans return
        the char offsets of the matched headings.

    Raises:
        QuerySyntaxError: If ``matcher`` is an invalid query string.
        ScanCallbackError: If an INVOKE callback fails and
            ``continue_on_error`` is not set.
    """
    return scan([document], matcher, mode, action, options, config)


def scan(
    documents: Sequence[OutlineDocument],
    matcher: Matcher,
    mode: ScanMode,
    action: Action,
    options: ScanOptions | None = None,
    config: ScanConfig | None = None,
) -> list[Any]:
    """Scan several documents in order and concatenate the results.

    Query strings are compiled for every document before the first heading
    is visited, so an invalid query never produces partial results. A
    StopScan raised by the action ends the whole scan.

    Args:
        documents: The documents to scan.
        matcher: Compiled query, query string, or True to match everything.
        mode: How matches and action results are handled.
        action: Called with the scan context at each match.
        options: Traversal options.
        config: Scan configuration (defaults used when None).

    Returns:
        The results of every document, in order.
    """
    options = options or ScanOptions()
    matchers = [resolve_matcher(matcher, document) for document in documents]
    results: list[Any] = []
    for document, compiled in zip(documents, matchers):
        if _scan_into(results, document, compiled, mode, action, options, config):
            break
    return results
