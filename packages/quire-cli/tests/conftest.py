"""Shared test fixtures for quire-cli tests.

Provides CliRunner fixtures and a small project tree to bundle.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo the logging setup performed by each command invocation."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner.

    Returns:
        CliRunner instance for testing CLI commands.
    """
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Create a Click test runner with an isolated filesystem.

    This fixture creates a temporary directory and changes to it
    for the duration of the test.

    Yields:
        CliRunner instance with isolated filesystem.
    """
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Write a two-module application and return its root.

    Layout:
        app/main.py   - entry, imports .greeting
        app/greeting.py
    """
    root = tmp_path / "sample"
    (root / "app").mkdir(parents=True)
    (root / "app" / "main.py").write_text(
        "from .greeting import greet\n\nprint(greet('cli'))\n", encoding="utf-8"
    )
    (root / "app" / "greeting.py").write_text(
        "def greet(name):\n    return 'hello, ' + name\n", encoding="utf-8"
    )
    return root.resolve()
