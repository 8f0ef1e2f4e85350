"""Dependency graph construction for quire.

GraphBuilder walks the module graph breadth-first from the entry modules.
Each popped asset has all of its specifiers resolved concurrently and all
of its dependencies obtained from the AssetStore concurrently; recording
the dependency map and enqueueing unvisited dependencies then happens
synchronously, in specifier order, so every canonical path is enqueued at
most once and the discovery order is reproducible.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from quire_core.bundler.asset_store import AssetStore
from quire_core.bundler.models import Asset, AssetGraph
from quire_core.errors import ResolutionError
from quire_core.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from quire_core.bundler.adapters import Resolver, Transformer


@dataclass
class BuildContext:
    """State owned by one graph build.

    Attributes:
        store: Asset store (and through it, the AssetGraph) for this build.
        worklist: FIFO of assets whose specifiers still need linking.
        visited: Canonical paths already enqueued.
    """

    store: AssetStore
    worklist: deque[Asset] = field(default_factory=deque)
    visited: set[Path] = field(default_factory=set)

    @property
    def graph(self) -> AssetGraph:
        return self.store.graph

    def enqueue(self, asset: Asset) -> bool:
        """Enqueue an asset unless its path was already visited.

        Must not await between the membership test and the insertion.

        Returns:
            True if the asset was enqueued.
        """
        if asset.id in self.visited:
            return False
        self.visited.add(asset.id)
        self.graph.record_discovery(asset.id)
        self.worklist.append(asset)
        return True


class GraphBuilder:
    """Build the asset graph reachable from a set of entry modules.

    Attributes:
        resolver: Resolver adapter for specifiers.
        transformer: Transformer adapter used by the per-build AssetStore.

    Example:
        >>> builder = GraphBuilder(ModuleResolver(roots=[src]), PythonTransformer())
        >>> graph, entries = asyncio.run(builder.build([src / "app" / "main.py"]))
        >>> [asset.id.name for asset in graph]
        ['main.py', 'util.py']
    """

    def __init__(self, resolver: Resolver, transformer: Transformer) -> None:
        self.resolver = resolver
        self.transformer = transformer
        self._log = get_logger().bind(component="graph_builder")

    async def build(self, entry_paths: Sequence[Path]) -> tuple[AssetGraph, list[Path]]:
        """Discover, compile and link every module reachable from the entries.

        Args:
            entry_paths: Entry module files, in execution order. Paths are
                made canonical; repeated entries keep their first position.

        Returns:
            Tuple of (AssetGraph with every dependency map filled in,
            canonical entry list).

        Raises:
            ReadError: If a module cannot be read.
            TransformError: If a module cannot be compiled.
            ResolutionError: If any specifier cannot be resolved.
        """
        context = BuildContext(store=AssetStore(self.transformer))

        entries = list(dict.fromkeys(Path(path).resolve() for path in entry_paths))
        if len(entries) != len(entry_paths):
            self._log.warning("duplicate_entries_dropped", requested=len(entry_paths))

        entry_assets = await asyncio.gather(
            *(context.store.get_or_create(path) for path in entries)
        )
        for asset in entry_assets:
            context.enqueue(asset)

        while context.worklist:
            asset = context.worklist.popleft()
            await self._link(asset, context)

        self._log.info(
            "graph_built",
            entries=len(entries),
            modules=len(context.graph),
            transforms=context.store.transform_count,
        )
        return context.graph, entries

    async def _link(self, asset: Asset, context: BuildContext) -> None:
        """Resolve an asset's specifiers and enqueue its new dependencies."""
        paths = await asyncio.gather(
            *(self._resolve(specifier, asset) for specifier in asset.specifiers)
        )
        dependencies = await asyncio.gather(
            *(context.store.get_or_create(path) for path in paths)
        )

        for specifier, dependency in zip(asset.specifiers, dependencies):
            asset.dependency_map[specifier] = dependency.id
            context.enqueue(dependency)

    async def _resolve(self, specifier: str, asset: Asset) -> Path:
        try:
            return await asyncio.to_thread(self.resolver.resolve, specifier, asset.directory)
        except ResolutionError as e:
            if specifier in asset.package_imports:
                package = await self._resolve_package(specifier, asset)
                if package is not None:
                    return package
            raise e.with_importer(asset.id) from None

    async def _resolve_package(self, specifier: str, asset: Asset) -> Path | None:
        """Resolve the package of ``from <dots> import NAME`` when NAME is no submodule."""
        package_specifier = specifier[: len(specifier) - len(specifier.lstrip("."))]
        try:
            path = await asyncio.to_thread(
                self.resolver.resolve, package_specifier, asset.directory
            )
        except ResolutionError:
            return None
        self._log.debug(
            "package_attribute_import", module=str(asset.id), specifier=specifier
        )
        return path
