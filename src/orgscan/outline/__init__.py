"""Outline document model, reader and folding capability."""

from .folding import Foldable, FoldState
from .models import DocumentSettings, Heading, OutlineDocument
from .parser import parse_outline, read_outline_file
from .tag_alist import (
    GroupTable,
    TagAlistItem,
    TagEntry,
    TagMarker,
    alist_tags,
    parse_tag_string,
    tag_alist_to_groups,
)

__all__ = [
    # Models
    "DocumentSettings",
    "Heading",
    "OutlineDocument",
    # Reader
    "parse_outline",
    "read_outline_file",
    # Tag alist
    "GroupTable",
    "TagAlistItem",
    "TagEntry",
    "TagMarker",
    "alist_tags",
    "parse_tag_string",
    "tag_alist_to_groups",
    # Folding
    "Foldable",
    "FoldState",
]
