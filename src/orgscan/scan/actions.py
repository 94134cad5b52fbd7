"""The three public scan actions: sparse trees, reports and entry mapping."""

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import Enum, auto
from typing import Any

from ..config import ScanConfig
from ..outline.folding import Foldable, FoldState
from ..outline.models import OutlineDocument
from .context import ScanContext
from .engine import (
    Matcher,
    ScanMode,
    ScanOptions,
    SkipFunction,
    resolve_matcher,
    scan,
    scan_document,
)
from .report import ReportRecord, RowFormatter, make_record, sort_records

logger = logging.getLogger(__name__)


class Scope(Enum):
    """Which part of a document a scan covers."""

    FILE = auto()  # the whole document
    TREE = auto()  # the subtree containing the point
    REGION = auto()  # headings starting inside the region
    REGION_START_LEVEL = auto()  # like REGION, first heading's level only


class SkipFlag(Enum):
    """Subtrees map_entries can skip."""

    ARCHIVE = auto()
    COMMENT = auto()


def _as_documents(
    documents: OutlineDocument | Sequence[OutlineDocument],
) -> list[OutlineDocument]:
    if isinstance(documents, OutlineDocument):
        return [documents]
    return list(documents)


def _scope_options(
    documents: list[OutlineDocument],
    scope: Scope,
    point: int | None,
    region: tuple[int, int] | None,
) -> ScanOptions:
    """Translate a scope into start/end/start_level options.

    Raises:
        ValueError: If the scope needs a point or region that is missing, or
            a narrowed scope is requested over several documents.
    """
    if scope is Scope.FILE:
        return ScanOptions()
    if len(documents) != 1:
        raise ValueError(f"Scope {scope.name} needs exactly one document")
    document = documents[0]

    if scope is Scope.TREE:
        index = None if point is None else document.index_containing(point)
        if index is None:
            raise ValueError("Scope TREE needs a point inside a heading")
        return ScanOptions(
            start=document.headings[index].start, end=document.subtree_end(index)
        )

    if region is None:
        raise ValueError(f"Scope {scope.name} needs a region")
    start, end = region
    options = ScanOptions(start=start, end=end)
    if scope is Scope.REGION_START_LEVEL:
        first = document.index_at_or_after(start)
        if first < len(document.headings):
            options.start_level = document.headings[first].level
    return options


def _combine_skip_functions(functions: list[SkipFunction]) -> SkipFunction | None:
    if not functions:
        return None
    if len(functions) == 1:
        return functions[0]

    def skip(ctx: ScanContext) -> int | None:
        for function in functions:
            resume = function(ctx)
            if resume is not None:
                return resume
        return None

    return skip


def sparse_tree(
    document: OutlineDocument,
    match: Matcher,
    todo_only: bool = False,
    view: Foldable | None = None,
    config: ScanConfig | None = None,
) -> Foldable:
    """Fold ``document`` so that only matches and their ancestors show.

    Every top-level subtree is folded to its heading line, then the heading
    line of each match and of its ancestors is revealed. Archived subtrees
    are skipped and folded again unless ``open_archived_trees`` is set.

    Args:
        document: The document to fold.
        match: Compiled query, query string, or True.
        todo_only: Only match headings with a not-done keyword.
        view: Visibility to update (a new FoldState when None).
        config: Scan configuration.

    Returns:
        The updated view.
    """
    config = config or ScanConfig()
    view = view if view is not None else FoldState()

    def reveal(ctx: ScanContext) -> None:
        assert ctx.index is not None
        for index in [*document.ancestor_indices(ctx.index), ctx.index]:
            heading = document.headings[index]
            view.reveal(heading.start, document.heading_line_end(index))

    options = ScanOptions(
        todo_only=todo_only,
        list_sublevels=config.tags_match_list_sublevels,
        skip_archived=not config.open_archived_trees,
    )
    # Compile first so an invalid query leaves the view untouched.
    compiled = resolve_matcher(match, document)

    for i in range(len(document.headings)):
        if document.parent_index(i) is None:
            view.fold(document.heading_line_end(i), document.subtree_end(i))

    positions = scan_document(
        document, compiled, ScanMode.EXPOSE, reveal, options, config
    )

    if not config.open_archived_trees:
        for i, heading in enumerate(document.headings):
            if config.archive_tag in heading.tags:
                view.fold(document.heading_line_end(i), document.subtree_end(i))

    logger.debug("Sparse tree of %s shows %d matches", document.name, len(positions))
    return view


def collect_for_report(
    documents: OutlineDocument | Sequence[OutlineDocument],
    match: Matcher,
    todo_only: bool = False,
    scope: Scope = Scope.FILE,
    point: int | None = None,
    region: tuple[int, int] | None = None,
    formatter: RowFormatter | None = None,
    config: ScanConfig | None = None,
) -> list[ReportRecord]:
    """Collect one report record per match, sorted by priority.

    Archived and commented subtrees are skipped. Descendants of a match are
    listed only when ``tags_match_list_sublevels`` is set.

    Args:
        documents: Document or documents to scan.
        match: Compiled query, query string, or True.
        todo_only: Only match headings with a not-done keyword.
        scope: Part of the document to scan.
        point: Char offset for the TREE scope.
        region: (start, end) char offsets for the REGION scopes.
        formatter: Builds the record text (default: format_report_row).
        config: Scan configuration.

    Returns:
        The records, highest priority first.
    """
    config = config or ScanConfig()
    docs = _as_documents(documents)
    options = _scope_options(docs, scope, point, region)
    options.todo_only = todo_only
    options.list_sublevels = config.tags_match_list_sublevels
    options.skip_archived = True
    options.skip_commented = True

    records = scan(
        docs,
        match,
        ScanMode.COLLECT,
        lambda ctx: make_record(ctx, formatter),
        options,
        config,
    )
    return sort_records(records)


def map_entries(
    documents: OutlineDocument | Sequence[OutlineDocument],
    func: Callable[[ScanContext], Any],
    match: Matcher | None = None,
    scope: Scope = Scope.FILE,
    skip: Iterable[SkipFlag | SkipFunction] = (),
    point: int | None = None,
    region: tuple[int, int] | None = None,
    config: ScanConfig | None = None,
    continue_on_error: bool = False,
) -> list[Any]:
    """Call ``func`` at every matching heading and collect its results.

    Descendants of a match are always visited. ``func`` may set
    ``ctx.continue_from`` to resume the scan at another char offset, or
    raise StopScan to end it.

    Args:
        documents: Document or documents to scan.
        func: Called with the scan context at each match.
        match: Compiled query, query string, or None/True for every heading.
        scope: Part of the document to scan.
        skip: SkipFlag values and skip functions; a skip function returning
            a char offset skips the heading and resumes there.
        point: Char offset for the TREE scope.
        region: (start, end) char offsets for the REGION scopes.
        config: Scan configuration.
        continue_on_error: Log errors raised by ``func`` and go on.

    Returns:
        The return values of ``func``, in document order.

    Raises:
        ScanCallbackError: If ``func`` raises and ``continue_on_error`` is
            not set.
    """
    docs = _as_documents(documents)
    options = _scope_options(docs, scope, point, region)
    options.list_sublevels = True
    options.continue_on_error = continue_on_error

    functions: list[SkipFunction] = []
    for item in skip:
        if item is SkipFlag.ARCHIVE:
            options.skip_archived = True
        elif item is SkipFlag.COMMENT:
            options.skip_commented = True
        elif callable(item):
            functions.append(item)
        else:
            raise ValueError(f"Unknown skip option: {item!r}")
    options.skip_function = _combine_skip_functions(functions)

    return scan(
        docs,
        True if match is None else match,
        ScanMode.INVOKE,
        func,
        options,
        config,
    )
