"""Main entry point for the orgscan CLI tool."""

import argparse
import logging
import sys
from typing import NoReturn

from ..config import load_scan_config
from ..errors import OrgScanError
from ..outline import FoldState, read_outline_file
from ..query import expand_group_to_list, expand_tag_groups
from ..rich_utils import print_records_table, print_sparse_tree, print_status
from ..scan import collect_for_report, sparse_tree
from .parser import create_parser


def _handle_expand(args: argparse.Namespace) -> int:
    config = load_scan_config(args.config_path)
    document = read_outline_file(args.file, config)
    groups = document.settings.tag_groups
    if args.as_list:
        for tag in expand_group_to_list(args.query, groups):
            print(tag)
    else:
        print(expand_tag_groups(args.query, groups))
    return 0


def _handle_sparse(args: argparse.Namespace) -> int:
    config = load_scan_config(args.config_path)
    document = read_outline_file(args.file, config)
    view = FoldState()
    sparse_tree(document, args.query, todo_only=args.todo_only, view=view, config=config)
    print_sparse_tree(view.visible_lines(document.text), f"{args.file}: {args.query}")
    return 0


def _handle_tags(args: argparse.Namespace) -> int:
    config = load_scan_config(args.config_path)
    documents = [read_outline_file(path, config) for path in args.files]
    records = collect_for_report(
        documents, args.query, todo_only=args.todo_only, config=config
    )

    if not records:
        print("No headings match the query.")
        return 0

    if args.format == "rich":
        print_records_table(records, f"Headings matching {args.query}")
        print_status(f"Found {len(records)} heading(s)", "success")
    else:
        for record in records:
            print(f"{record.document}:{record.position}: {record.text}")
    return 0


def main() -> NoReturn:
    """Main entry point for the orgscan CLI tool."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # =========================================================================
    # COMMAND HANDLERS (keep sorted alphabetically to match parser order)
    # =========================================================================
    handlers = {
        "expand": _handle_expand,
        "sparse": _handle_sparse,
        "tags": _handle_tags,
    }

    try:
        sys.exit(handlers[args.command](args))
    except (OrgScanError, ValueError) as e:
        print_status(f"{type(e).__name__}: {e}", "error")
        sys.exit(1)
