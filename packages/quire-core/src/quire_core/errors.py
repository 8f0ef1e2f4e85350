"""Custom exception hierarchy for quire-core.

This module defines the exception classes raised during a build:
- QuireError: Base exception for all quire errors
- ConfigurationError: quire.yaml cannot be parsed or validated
- BundleError: Base for failures that abort a build
- ReadError, TransformError, ResolutionError, WriteError

Design:
- User-facing messages name the offending module and specifier
- Technical details (OS error text, plugin tracebacks) logged via structlog
- Nothing is retried; the first error aborts the whole build
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class QuireError(Exception):
    """Base exception for quire.

    All quire exceptions inherit from this class. User-facing messages
    are safe to display; technical details are logged internally.

    Args:
        user_message: Message to display to the user.
        internal_details: Optional technical details for logging. This is
            logged internally but not part of the exception message.

    Example:
        >>> raise QuireError(
        ...     "Bundle failed",
        ...     internal_details="OSError(28, 'No space left on device')",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize QuireError with user message and optional internal details.

        Args:
            user_message: Message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "quire_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class ConfigurationError(QuireError):
    """Raised when quire.yaml parsing or validation fails.

    Provides file path and field context for actionable error messages.

    Attributes:
        file_path: Path to the configuration file (if known).
        field_path: Dot-separated path to the invalid field (e.g., "plugins.0.name").
        line_number: Line number in the file where the error occurred (if available).

    Example:
        >>> raise ConfigurationError(
        ...     "Unknown preset 'prod'",
        ...     file_path="quire.yaml",
        ...     field_path="presets.0",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        file_path: str | None = None,
        field_path: str | None = None,
        line_number: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize ConfigurationError with context.

        Args:
            user_message: Message to display to the user.
            file_path: Path to the configuration file (optional).
            field_path: Dot-separated path to the field (optional).
            line_number: Line number in the file (optional).
            internal_details: Technical details for internal logging only.
        """
        context_parts: list[str] = []
        if file_path:
            context_parts.append(f"in {file_path}")
        if line_number:
            context_parts.append(f"line {line_number}")
        if field_path:
            context_parts.append(f"field '{field_path}'")

        if context_parts:
            full_message = f"{user_message} ({', '.join(context_parts)})"
        else:
            full_message = user_message

        super().__init__(full_message, internal_details=internal_details)

        self.file_path = file_path
        self.field_path = field_path
        self.line_number = line_number


class BundleError(QuireError):
    """Base class for errors that abort a build.

    No output file is written once a BundleError is raised.
    """

    pass


class ReadError(BundleError):
    """Raised when a source module is missing or unreadable.

    Attributes:
        path: Path of the module that could not be read.
    """

    def __init__(self, path: Path | str, *, internal_details: str | None = None) -> None:
        """Initialize ReadError.

        Args:
            path: Path of the module that could not be read.
            internal_details: Underlying OS error, for internal logging only.
        """
        super().__init__(f"Cannot read module {path}", internal_details=internal_details)
        self.path = Path(path)


class TransformError(BundleError):
    """Raised when the transformer rejects a module.

    Covers syntax errors, unsupported import forms and failing plugins.

    Attributes:
        path: Path (or display name) of the module.
        reason: What went wrong.
        line_number: Line of the offending construct, if known.

    Example:
        >>> raise TransformError("app/main.py", "invalid syntax", line_number=3)
        # User sees: "Cannot transform app/main.py:3: invalid syntax"
    """

    def __init__(
        self,
        path: Path | str,
        reason: str,
        *,
        line_number: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize TransformError.

        Args:
            path: Path (or display name) of the module.
            reason: What went wrong.
            line_number: Line of the offending construct (optional).
            internal_details: Technical details for internal logging only.
        """
        location = f"{path}:{line_number}" if line_number else str(path)
        super().__init__(
            f"Cannot transform {location}: {reason}",
            internal_details=internal_details,
        )
        self.path = str(path)
        self.reason = reason
        self.line_number = line_number


class ResolutionError(BundleError):
    """Raised when a specifier cannot be mapped to a module file.

    Always names the specifier; names the importing module once the
    graph builder attaches it.

    Attributes:
        specifier: The raw specifier as written in the source.
        base_dir: Directory the lookup started from.
        importer: Module containing the import (None for entry lookups).
        searched: Candidate files that were tried, in order.

    Example:
        >>> raise ResolutionError(".missing", Path("/src/app"), importer=Path("/src/app/main.py"))
        # User sees: "Cannot resolve '.missing' imported from /src/app/main.py"
    """

    def __init__(
        self,
        specifier: str,
        base_dir: Path | str,
        *,
        importer: Path | str | None = None,
        searched: Sequence[Path] = (),
        internal_details: str | None = None,
    ) -> None:
        """Initialize ResolutionError.

        Args:
            specifier: The raw specifier.
            base_dir: Directory the lookup started from.
            importer: Module containing the import (optional).
            searched: Candidate files that were tried.
            internal_details: Technical details for internal logging only.
        """
        if importer is not None:
            user_message = f"Cannot resolve '{specifier}' imported from {importer}"
        else:
            user_message = f"Cannot resolve '{specifier}' from {base_dir}"
        if searched:
            tried = ", ".join(str(path) for path in searched)
            user_message = f"{user_message} (tried: {tried})"

        super().__init__(user_message, internal_details=internal_details)

        self.specifier = specifier
        self.base_dir = Path(base_dir)
        self.importer = Path(importer) if importer is not None else None
        self.searched = tuple(searched)

    def with_importer(self, importer: Path) -> ResolutionError:
        """Return a copy of this error that names the importing module.

        Args:
            importer: Canonical path of the module containing the import.

        Returns:
            New ResolutionError with the same specifier and search list.
        """
        return ResolutionError(
            self.specifier,
            self.base_dir,
            importer=importer,
            searched=self.searched,
        )


class WriteError(BundleError):
    """Raised when the bundle cannot be written.

    Attributes:
        path: Output path that could not be written.
    """

    def __init__(self, path: Path | str, *, internal_details: str | None = None) -> None:
        """Initialize WriteError.

        Args:
            path: Output path that could not be written.
            internal_details: Underlying OS error, for internal logging only.
        """
        super().__init__(f"Cannot write bundle to {path}", internal_details=internal_details)
        self.path = Path(path)
