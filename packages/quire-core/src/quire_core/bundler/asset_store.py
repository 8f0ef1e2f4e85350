"""Asset store for quire.

Creates each asset at most once per canonical path. The first request for
a path registers an ``asyncio.Task`` before anything is awaited; every
other request for that path, including ones issued while the first is
still reading or transforming, awaits the same task.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from quire_core.bundler.models import Asset, AssetGraph
from quire_core.errors import ReadError
from quire_core.observability import get_logger

if TYPE_CHECKING:
    from quire_core.bundler.adapters import Transformer


class AssetStore:
    """Memoizing asset registry for one build.

    Attributes:
        graph: AssetGraph every created asset is registered in.
        transform_count: Number of times the transformer has been invoked.

    Example:
        >>> store = AssetStore(PythonTransformer())
        >>> first, second = await asyncio.gather(
        ...     store.get_or_create(path), store.get_or_create(path)
        ... )
        >>> first is second
        True
    """

    def __init__(self, transformer: Transformer, graph: AssetGraph | None = None) -> None:
        """Initialize the AssetStore.

        Args:
            transformer: Transformer adapter used to compile module text.
            graph: Graph to register assets in. A new one is created if omitted.
        """
        self.transformer = transformer
        self.graph = graph if graph is not None else AssetGraph()
        self.transform_count = 0
        self._tasks: dict[Path, asyncio.Task[Asset]] = {}
        self._log = get_logger().bind(component="asset_store")

    async def get_or_create(self, path: Path) -> Asset:
        """Return the asset for a canonical path, creating it on first request.

        Args:
            path: Canonical module path.

        Returns:
            The single Asset instance for this path.

        Raises:
            ReadError: If the module cannot be read.
            TransformError: If the transformer rejects the module.
        """
        task = self._tasks.get(path)
        if task is None:
            task = asyncio.ensure_future(self._create(path))
            self._tasks[path] = task
        return await task

    async def _create(self, path: Path) -> Asset:
        try:
            source = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ReadError(path, internal_details=repr(e)) from e

        self.transform_count += 1
        result = self.transformer.transform(source, str(path))

        asset = self.graph.add(
            Asset(
                id=path,
                code=result.code,
                specifiers=result.specifiers,
                package_imports=result.package_imports,
            )
        )
        self._log.debug("asset_created", module=str(path), specifiers=len(asset.specifiers))
        return asset
