"""Bundler class for quire.

This module implements the Bundler that turns entry modules into one
self-executing script:

1. Load quire.yaml (or the built-in defaults)
2. Build the asset graph (resolve, read, transform, link)
3. Package the graph with the runtime loader
4. Write the script to the output target

Each call to ``bundle()`` builds from scratch; nothing is shared between
builds except the loaded configuration.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from quire_core.bundler.config_resolver import ConfigResolver
from quire_core.bundler.graph import GraphBuilder
from quire_core.bundler.models import AssetGraph, BundleResult
from quire_core.bundler.module_resolver import ModuleResolver
from quire_core.bundler.packager import Packager
from quire_core.errors import BundleError
from quire_core.observability import get_logger, span
from quire_core.schemas import BundleConfig
from quire_core.transformer import PythonTransformer

# Output used when neither the caller nor quire.yaml names one
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_BUNDLE_NAME = "bundle.py"

# Targets with these suffixes are output files; anything else is a directory
SCRIPT_SUFFIXES = (".py", ".pyw")


def resolve_output_path(target: str | Path | None, base_dir: Path | None = None) -> Path:
    """Turn an output target into the bundle file path.

    Args:
        target: File ending in .py/.pyw (used verbatim), directory (receives
            bundle.py), or None (dist/bundle.py).
        base_dir: Directory relative targets are anchored to. Defaults to the
            current working directory.

    Returns:
        Absolute path of the bundle file.

    Example:
        >>> resolve_output_path("build/app.py")
        PosixPath('/work/build/app.py')
        >>> resolve_output_path("build")
        PosixPath('/work/build/bundle.py')
    """
    base = base_dir or Path.cwd()
    if target is None:
        return (base / DEFAULT_OUTPUT_DIR / DEFAULT_BUNDLE_NAME).resolve()
    path = base / Path(target)
    if path.suffix in SCRIPT_SUFFIXES:
        return path.resolve()
    return (path / DEFAULT_BUNDLE_NAME).resolve()


class Bundler:
    """Bundle Python modules into a single self-executing script.

    Attributes:
        config: Bundle configuration used for every build.

    Example:
        >>> bundler = Bundler()
        >>> result = bundler.bundle([Path("app/main.py")], target="dist")
        >>> result.output_path
        PosixPath('/work/dist/bundle.py')

        >>> # Inspect the graph without writing anything
        >>> graph, entries = bundler.build_graph([Path("app/main.py")])
    """

    def __init__(self, config: BundleConfig | None = None) -> None:
        """Initialize the Bundler.

        Args:
            config: Bundle configuration. If omitted, quire.yaml is discovered
                by walking up from the working directory.

        Raises:
            ConfigurationError: If the configuration or its plugins are invalid.
        """
        self.config = config if config is not None else ConfigResolver().load()
        self.transformer = PythonTransformer(self.config)
        self._log = get_logger().bind(component="bundler")

    def search_roots(self, entries: Sequence[Path]) -> list[Path]:
        """Search roots for a build: configured paths, then entry directories."""
        roots = self.config.search_roots()
        roots.extend(Path(entry).resolve().parent for entry in entries)
        return roots

    def build_graph(self, entries: Sequence[Path]) -> tuple[AssetGraph, list[Path]]:
        """Build and link the module graph for the given entries.

        Args:
            entries: Entry module files, in execution order.

        Returns:
            Tuple of (linked AssetGraph, canonical entry list).

        Raises:
            BundleError: If no entries are given, or any module cannot be
                read, transformed or resolved.
        """
        if not entries:
            raise BundleError("At least one entry module is required")

        resolver = ModuleResolver(self.search_roots(entries))
        builder = GraphBuilder(resolver, self.transformer)
        with span("build_graph", attributes={"entries": len(entries)}):
            return asyncio.run(builder.build(list(entries)))

    def bundle(
        self,
        entries: Sequence[Path],
        target: str | Path | None = None,
    ) -> BundleResult:
        """Build, package and write a bundle.

        Args:
            entries: Entry module files, in execution order.
            target: Output file or directory. Defaults to the configured
                ``output``, else dist/bundle.py.

        Returns:
            BundleResult with the output path and packaged bundle.

        Raises:
            BundleError: Any read, transform, resolution or write failure.
                Nothing is written unless the whole graph resolves.
        """
        if target is not None:
            output_path = resolve_output_path(target)
        elif self.config.output is not None:
            output_path = resolve_output_path(self.config.output, self.config.base_dir)
        else:
            output_path = resolve_output_path(None)

        self._log.info("bundle_started", entries=[str(entry) for entry in entries])

        graph, canonical_entries = self.build_graph(entries)

        packager = Packager(self.search_roots(entries))
        with span("package"):
            bundle = packager.package(graph, canonical_entries)
        with span("write_bundle", attributes={"path": str(output_path)}):
            packager.write(bundle, output_path, executable=self.config.executable)

        return BundleResult(output_path=output_path, bundle=bundle)
