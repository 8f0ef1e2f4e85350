"""CLI error handling for quire-cli.

This module provides CLI-specific error handling that wraps
quire-core exceptions and provides user-friendly messages
with appropriate exit codes.
"""

from __future__ import annotations

from typing import NoReturn

import click

from quire_cli.output import error
from quire_core.errors import QuireError, ReadError, WriteError

# Exit codes following sysexits.h convention
EXIT_USER_ERROR = 1  # User error (resolution, transform, configuration)
EXIT_SYSTEM_ERROR = 2  # System error (unreadable module, write failure)


class CLIError(click.ClickException):
    """CLI-specific exception with exit code support.

    Attributes:
        message: User-facing error message.
        exit_code: Exit code for the CLI (default: 1).
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        """Initialize CLIError.

        Args:
            message: User-facing error message.
            exit_code: Exit code for the CLI.
        """
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Display the error message using Rich formatting.

        Args:
            file: Output file (unused, for Click compatibility).
        """
        error(self.format_message())


def exit_code_for(err: QuireError) -> int:
    """Map a quire-core exception to a CLI exit code.

    Args:
        err: Exception raised by the bundler.

    Returns:
        EXIT_SYSTEM_ERROR for read and write failures, EXIT_USER_ERROR otherwise.

    Example:
        >>> exit_code_for(WriteError("dist/bundle.py"))
        2
    """
    if isinstance(err, (ReadError, WriteError)):
        return EXIT_SYSTEM_ERROR
    return EXIT_USER_ERROR


def handle_quire_error(err: QuireError) -> NoReturn:
    """Re-raise a quire-core exception as a CLIError.

    Args:
        err: Exception raised by the bundler or configuration loader.

    Raises:
        CLIError: Always raises with the user message and mapped exit code.
    """
    raise CLIError(err.user_message, exit_code=exit_code_for(err)) from err
