"""Argument parser creation for the orgscan CLI tool."""

import argparse


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand (keep sorted by long option name)."""
    parser.add_argument(
        "-c",
        "--config",
        dest="config_path",
        help="Path to the YAML config file (default: ~/.config/orgscan/orgscan.yml).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug messages (compiled queries, scan summaries).",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        description="Match outline headings by tags, properties and TODO state",
        prog="orgscan",
    )

    top_level_subparsers = parser.add_subparsers(
        dest="command", help="Available commands", required=True
    )

    # =========================================================================
    # TOP-LEVEL SUBCOMMANDS (keep sorted alphabetically)
    # =========================================================================

    # --- expand ---
    expand_parser = top_level_subparsers.add_parser(
        "expand",
        help="Show a query with the tag groups of a file expanded",
    )
    expand_parser.add_argument("query", help="Match query, e.g. 'Work-boss'")
    expand_parser.add_argument("file", help="Outline file whose #+TAGS define groups")
    expand_parser.add_argument(
        "-l",
        "--list",
        dest="as_list",
        action="store_true",
        help="Treat the query as a single group tag and list its member tags.",
    )
    _add_common_options(expand_parser)

    # --- sparse ---
    sparse_parser = top_level_subparsers.add_parser(
        "sparse",
        help="Print the outline folded to the matching headings",
    )
    sparse_parser.add_argument("query", help="Match query")
    sparse_parser.add_argument("file", help="Outline file to fold")
    sparse_parser.add_argument(
        "-t",
        "--todo-only",
        action="store_true",
        help="Only match headings with a not-done TODO keyword.",
    )
    _add_common_options(sparse_parser)

    # --- tags ---
    tags_parser = top_level_subparsers.add_parser(
        "tags",
        help="List the headings matching a query",
    )
    tags_parser.add_argument(
        "query",
        help="Match query. Examples: 'work-boss', '+PRIORITY=\"A\"/!', "
        "'LEVEL=2|{^proj}'",
    )
    tags_parser.add_argument("files", nargs="+", help="Outline files to scan")
    tags_parser.add_argument(
        "-f",
        "--format",
        choices=["plain", "rich"],
        default="rich",
        help="Output format (default: rich).",
    )
    tags_parser.add_argument(
        "-t",
        "--todo-only",
        action="store_true",
        help="Only match headings with a not-done TODO keyword.",
    )
    _add_common_options(tags_parser)

    return parser
