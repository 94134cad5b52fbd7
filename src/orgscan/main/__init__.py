"""Command line interface for orgscan."""

from .entry import main
from .parser import create_parser

__all__ = ["create_parser", "main"]
