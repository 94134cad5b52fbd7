"""Pytest configuration for orgscan tests."""

import sys
import textwrap
from pathlib import Path

import pytest

# Add the src directory to path so we can import orgscan without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from orgscan.config import ScanConfig  # noqa: E402
from orgscan.outline import OutlineDocument, parse_outline  # noqa: E402


@pytest.fixture
def make_outline() -> "type[_OutlineFactory]":  # Return a callable factory class
    """Fixture that provides a factory for creating outline documents for testing."""
    return _OutlineFactory


class _OutlineFactory:
    """Factory class for creating OutlineDocument objects in tests."""

    @staticmethod
    def create(
        text: str,
        name: str = "test.org",
        config: ScanConfig | None = None,
    ) -> OutlineDocument:
        """Create an OutlineDocument from dedented text."""
        return parse_outline(
            textwrap.dedent(text).lstrip("\n"), name=name, config=config
        )

