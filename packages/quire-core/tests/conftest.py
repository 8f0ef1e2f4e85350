"""Shared pytest fixtures for quire-core tests.

This module provides common fixtures used across unit and integration
tests: structlog configuration, temporary project trees and a helper that
executes generated bundles.
"""

from __future__ import annotations

import subprocess
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

ProjectFactory = Callable[[dict[str, str]], Path]
BundleRunner = Callable[..., subprocess.CompletedProcess[str]]


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture.

    Without this, structlog may use different processors depending on
    test execution order.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def make_project(tmp_path: Path) -> ProjectFactory:
    """Return a factory that writes a module tree under tmp_path.

    The factory takes a mapping of relative path -> source text (dedented)
    and returns the project root.

    Example:
        >>> root = make_project({"app/main.py": "from . import util\\n"})
    """

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root.resolve()

    return _make


@pytest.fixture
def run_bundle(tmp_path: Path) -> BundleRunner:
    """Return a helper that executes a bundle with the current interpreter.

    The bundle runs from an empty directory so it cannot fall back to the
    original sources.
    """
    workdir = tmp_path / "run"
    workdir.mkdir(exist_ok=True)

    def _run(bundle_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [sys.executable, str(bundle_path), *args],
            cwd=workdir,
            capture_output=True,
            text=True,
            timeout=60,
            check=False,
        )

    return _run
