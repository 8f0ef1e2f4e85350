"""Module specifier resolution for quire.

This module maps raw import specifiers to canonical module files using
Python's package layout:

- ``.util`` from ``app/`` -> ``app/util.py`` or ``app/util/__init__.py``
- ``..shared.db`` from ``app/api/`` -> ``app/shared/db.py`` (or package)
- ``.`` from ``app/`` -> ``app/__init__.py``
- ``models.user`` -> ``<root>/models/user.py`` for each search root

Canonical paths are absolute with symlinks resolved, so one file always
maps to one asset.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from quire_core.errors import ResolutionError

logger = logging.getLogger(__name__)

# Suffix of module source files
MODULE_SUFFIX = ".py"

# File that makes a directory a package
PACKAGE_INIT = "__init__.py"


def split_specifier(specifier: str) -> tuple[int, list[str]]:
    """Split a specifier into its relative level and dotted name parts.

    Args:
        specifier: Raw specifier (e.g., "..models.user", "app", ".").

    Returns:
        Tuple of (number of leading dots, name parts). Parts is empty for
        a bare package reference such as ".".

    Raises:
        ValueError: If the specifier is empty or a part is not an identifier.

    Example:
        >>> split_specifier("..models.user")
        (2, ['models', 'user'])
    """
    level = len(specifier) - len(specifier.lstrip("."))
    remainder = specifier[level:]
    if not remainder:
        if level == 0:
            raise ValueError("empty specifier")
        return level, []
    parts = remainder.split(".")
    for part in parts:
        if not part.isidentifier():
            raise ValueError(f"'{part}' is not a valid module name")
    return level, parts


def module_candidates(base: Path, parts: Sequence[str]) -> list[Path]:
    """List the files a dotted name may live in under a base directory.

    Args:
        base: Directory the dotted name is relative to.
        parts: Dotted name parts (may be empty).

    Returns:
        Candidate paths in lookup order: module file first, then package.
    """
    if not parts:
        return [base / PACKAGE_INIT]
    target = base.joinpath(*parts)
    return [target.with_name(target.name + MODULE_SUFFIX), target / PACKAGE_INIT]


class ModuleResolver:
    """Resolve specifiers to canonical module paths.

    Relative specifiers are resolved against the importing module's
    directory. Absolute specifiers are looked up in the search roots,
    first match wins.

    Attributes:
        roots: Search roots for absolute specifiers, in lookup order.

    Example:
        >>> resolver = ModuleResolver(roots=[Path("src")])
        >>> resolver.resolve(".util", Path("src/app"))
        PosixPath('/work/src/app/util.py')
        >>> resolver.resolve("app.util", Path("src/other"))
        PosixPath('/work/src/app/util.py')
    """

    def __init__(self, roots: Iterable[Path] = ()) -> None:
        """Initialize the ModuleResolver.

        Args:
            roots: Search roots for absolute specifiers. Duplicates are
                dropped, keeping the first occurrence.
        """
        unique: dict[Path, None] = {}
        for root in roots:
            unique.setdefault(Path(root).resolve(), None)
        self.roots: tuple[Path, ...] = tuple(unique)

    def resolve(self, specifier: str, base_dir: Path) -> Path:
        """Resolve a specifier to a canonical module path.

        Args:
            specifier: Raw specifier as written in the importing module.
            base_dir: Directory of the importing module.

        Returns:
            Absolute, symlink-resolved path of the module file.

        Raises:
            ResolutionError: If the specifier is malformed or matches no file.
        """
        try:
            level, parts = split_specifier(specifier)
        except ValueError as e:
            raise ResolutionError(specifier, base_dir, internal_details=str(e)) from None

        if level:
            base = Path(base_dir)
            for _ in range(level - 1):
                base = base.parent
            candidates = module_candidates(base, parts)
        else:
            candidates = [
                candidate for root in self.roots for candidate in module_candidates(root, parts)
            ]

        for candidate in candidates:
            if candidate.is_file():
                resolved = candidate.resolve()
                logger.debug("Resolved %r from %s to %s", specifier, base_dir, resolved)
                return resolved

        raise ResolutionError(specifier, base_dir, searched=candidates)

    def module_name(self, path: Path) -> str | None:
        """Compute the dotted module name of a file under the search roots.

        The innermost root containing the file wins.

        Args:
            path: Canonical module path.

        Returns:
            Dotted name (e.g., "app.util", "app" for app/__init__.py), or None
            if the file is not under any root.
        """
        containing = [root for root in self.roots if path.is_relative_to(root)]
        if not containing:
            return None
        root = max(containing, key=lambda candidate: len(candidate.parts))
        return dotted_name(path.relative_to(root))


def dotted_name(relative_path: Path) -> str:
    """Convert a root-relative module path to a dotted module name.

    Args:
        relative_path: Path such as ``app/util.py`` or ``app/__init__.py``.

    Returns:
        Dotted name such as ``app.util`` or ``app``.

    Example:
        >>> dotted_name(Path("app/models/__init__.py"))
        'app.models'
    """
    parts = list(relative_path.parts)
    if parts and parts[-1] == PACKAGE_INIT:
        parts.pop()
    elif parts:
        parts[-1] = Path(parts[-1]).stem
    return ".".join(parts) or "__init__"
