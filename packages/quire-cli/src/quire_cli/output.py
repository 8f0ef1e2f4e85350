"""Rich console output utilities for quire-cli.

This module provides formatted console output with Rich,
supporting colored success/error/warning messages, module tables
and respecting the NO_COLOR environment variable.
"""

from __future__ import annotations

import json
import os
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Rich respects NO_COLOR on its own; --no-color is handled by set_no_color
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


# Default console instance
console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Bundled 3 modules into dist/bundle.py")
        ✓ Bundled 3 modules into dist/bundle.py
    """
    console.print(f"[green]✓[/green] {message}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X.

    Example:
        >>> error("Cannot resolve '.missing' imported from /src/app/main.py")
        ✗ Cannot resolve '.missing' imported from /src/app/main.py
    """
    console.print(f"[red]✗[/red] {escape(message)}", highlight=False, **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle."""
    console.print(f"[yellow]⚠[/yellow] {message}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message."""
    console.print(message, **kwargs)


def print_json(data: dict[str, Any], **kwargs: Any) -> None:
    """Print JSON data with syntax highlighting.

    Args:
        data: Dictionary to print as JSON.
        **kwargs: Additional arguments passed to console.print_json().
    """
    console.print_json(json.dumps(data), **kwargs)


def print_table(
    title: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[str]],
) -> None:
    """Print rows as a Rich table.

    Args:
        title: Table title.
        columns: Column headers.
        rows: Cell values, one sequence per row.
    """
    table = Table(title=title, show_lines=False)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*row)
    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors.

    Note:
        This updates the module-level console instance.
    """
    global console
    console = create_console(no_color=no_color)
