"""Collaborator interfaces used by the graph builder.

The default implementations are ModuleResolver and PythonTransformer; tests
and embedders may pass anything with the same shape.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from quire_core.transformer import TransformResult


class Resolver(Protocol):
    """Maps a raw specifier and base directory to a canonical module path.

    Implementations raise ResolutionError when nothing matches.
    """

    def resolve(self, specifier: str, base_dir: Path) -> Path: ...


class Transformer(Protocol):
    """Compiles module text and reports its raw import specifiers.

    Implementations raise TransformError on malformed source.
    """

    def transform(self, source: str | bytes, filename: str = ...) -> TransformResult: ...
