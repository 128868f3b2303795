"""
Pytest configuration and fixtures.
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from textwrap import dedent

import pytest


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Write config text to a file and return its path."""

    def _write(text: str, name: str = "test.conf") -> Path:
        path = tmp_path / name
        path.write_bytes(dedent(text).encode("utf-8"))
        return path

    return _write


@pytest.fixture
def example_config_path() -> Path:
    """Path to the example config shipped with the repository."""
    return Path(__file__).parent.parent / "config.example.conf"


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by setup_logging() during a test."""
    yield
    root = logging.getLogger("lineconf")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
