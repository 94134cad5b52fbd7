"""
Rich formatting utilities for the orgscan CLI.

This module renders report records, sparse trees and status messages using
the Rich library.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .scan.report import ReportRecord

# Global console instance for consistent styling
console = Console()


def print_status(message: str, status_type: str = "info") -> None:
    """Print a status message with appropriate styling."""
    icons = {
        "info": "ℹ️",
        "success": "✅",
        "warning": "⚠️",
        "error": "❌",
    }

    styles = {
        "info": "blue",
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }

    icon = icons.get(status_type, "ℹ️")
    style = styles.get(status_type, "white")

    console.print(f"[{style}]{icon} {escape(message)}[/{style}]")


def print_records_table(records: list[ReportRecord], title: str) -> None:
    """Print report records as a table, one row per match."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("TODO", style="bold yellow")
    table.add_column("Pri", justify="center")
    table.add_column("Heading", style="white")
    table.add_column("Tags", style="green")
    table.add_column("Location", style="dim")

    for record in records:
        table.add_row(
            escape(record.category),
            escape(record.todo or ""),
            str(record.priority),
            escape(("." * (record.level - 1)) + record.heading),
            escape(":" + ":".join(record.tags) + ":" if record.tags else ""),
            escape(f"{record.document}:{record.position}"),
        )

    console.print(table)


def print_sparse_tree(lines: list[str], title: str) -> None:
    """Print the visible lines of a folded document in a panel."""
    console.print(
        Panel(
            escape("\n".join(lines)),
            title=escape(title),
            border_style="blue",
            padding=(0, 1),
        )
    )
