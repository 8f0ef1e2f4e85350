"""Bundle packager for quire.

Serializes a fully linked AssetGraph into a single Python script:
- Module table in first-discovery order
- Bundle-relative module ids (POSIX paths under the assets' common directory)
- Entry list in the requested order
- Runtime loader rendered from a fixed template

Compiled code is embedded as an opaque string; it is never parsed or
modified here.

Example:
    >>> packager = Packager(roots=[src])
    >>> bundle = packager.package(graph, entries)
    >>> packager.write(bundle, Path("dist/bundle.py"))
"""

from __future__ import annotations

import hashlib
import json
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from quire_core.bundler.models import Asset, AssetGraph, Bundle, BundleMetadata, ModuleRecord
from quire_core.bundler.module_resolver import ModuleResolver, dotted_name
from quire_core.bundler.runtime import BUNDLE_TEMPLATE, create_environment
from quire_core.errors import BundleError, WriteError
from quire_core.observability import get_logger

# Package version - kept in sync with pyproject.toml
QUIRE_CORE_VERSION = "0.1.0"

# Module name given to entry modules at runtime
ENTRY_MODULE_NAME = "__main__"

# Permissions of the written bundle
EXECUTABLE_MODE = 0o755
REGULAR_MODE = 0o644


class Packager:
    """Package an asset graph into a self-executing script.

    Attributes:
        naming: Resolver whose search roots determine runtime module names.

    Example:
        >>> packager = Packager(roots=[Path("src")])
        >>> bundle = packager.package(graph, entries)
        >>> bundle.entries
        ('app/main.py',)
    """

    def __init__(self, roots: Iterable[Path] = ()) -> None:
        """Initialize the Packager.

        Args:
            roots: Search roots used to give modules dotted runtime names.
                Modules outside every root are named relative to the
                bundle's common directory.
        """
        self.naming = ModuleResolver(roots)
        self._env = create_environment()
        self._template = self._env.from_string(BUNDLE_TEMPLATE)
        self._log = get_logger().bind(component="packager")

    def package(self, graph: AssetGraph, entries: Sequence[Path]) -> Bundle:
        """Build the bundle for a linked graph.

        Args:
            graph: AssetGraph whose assets all have complete dependency maps.
            entries: Canonical entry paths in execution order.

        Returns:
            Immutable Bundle including the rendered script.

        Raises:
            BundleError: If the graph is empty, an entry is missing, or any
                asset is not fully linked.
        """
        assets = list(graph)
        if not assets:
            raise BundleError("Nothing to bundle: the module graph is empty")
        for entry in entries:
            if entry not in graph:
                raise BundleError(f"Entry module {entry} is not part of the module graph")
        for asset in assets:
            self._check_linked(asset, graph)

        ids = self._module_ids(assets)
        entry_paths = set(entries)

        records = tuple(
            ModuleRecord(
                id=ids[asset.id],
                name=(
                    ENTRY_MODULE_NAME
                    if asset.id in entry_paths
                    else self._module_name(asset.id, ids[asset.id])
                ),
                code=asset.code,
                dependencies={
                    specifier: ids[asset.dependency_map[specifier]]
                    for specifier in asset.specifiers
                },
            )
            for asset in assets
        )
        entry_ids = tuple(ids[entry] for entry in entries)

        metadata = BundleMetadata(
            quire_version=QUIRE_CORE_VERSION,
            source_hash=self._compute_hash(records, entry_ids),
        )
        source = self._template.render(
            quire_version=metadata.quire_version,
            source_hash=metadata.source_hash,
            modules=[record.model_dump() for record in records],
            entries=list(entry_ids),
        )

        self._log.info("bundle_packaged", modules=len(records), entries=len(entry_ids))
        return Bundle(metadata=metadata, modules=records, entries=entry_ids, source=source)

    def write(self, bundle: Bundle, output_path: Path, *, executable: bool = True) -> Path:
        """Write a bundle, creating parent directories as needed.

        The script is written to a temporary file next to the target and
        moved into place, so a failed write never leaves a partial bundle.

        Args:
            bundle: Bundle to write.
            output_path: Target file.
            executable: Set the executable bit.

        Returns:
            The output path.

        Raises:
            WriteError: If the directory or file cannot be written.
        """
        output_path = Path(output_path)
        temp_path: Path | None = None
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = output_path.with_name(f".{output_path.name}.{os.getpid()}.tmp")
            with temp_path.open("w", encoding="utf-8", newline="\n") as f:
                f.write(bundle.source)
            temp_path.chmod(EXECUTABLE_MODE if executable else REGULAR_MODE)
            os.replace(temp_path, output_path)
        except OSError as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise WriteError(output_path, internal_details=repr(e)) from e

        self._log.info("bundle_written", path=str(output_path), bytes=len(bundle.source))
        return output_path

    def _check_linked(self, asset: Asset, graph: AssetGraph) -> None:
        if not asset.is_linked:
            missing = sorted(set(asset.specifiers) - set(asset.dependency_map))
            raise BundleError(
                f"Module {asset.id} is not fully linked",
                internal_details=f"unlinked specifiers: {missing}",
            )
        for dependency in asset.dependency_map.values():
            if dependency not in graph:
                raise BundleError(
                    f"Module {asset.id} depends on {dependency}, which is not in the graph"
                )

    def _module_ids(self, assets: Sequence[Asset]) -> dict[Path, str]:
        common = Path(os.path.commonpath([str(asset.id.parent) for asset in assets]))
        return {asset.id: asset.id.relative_to(common).as_posix() for asset in assets}

    def _module_name(self, path: Path, module_id: str) -> str:
        name = self.naming.module_name(path)
        if name is None:
            name = dotted_name(Path(module_id))
        return name

    def _compute_hash(self, records: Sequence[ModuleRecord], entry_ids: Sequence[str]) -> str:
        """Compute SHA-256 over the module table and entry list.

        Args:
            records: Module records in bundle order.
            entry_ids: Entry ids in execution order.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        payload: dict[str, Any] = {
            "modules": [record.model_dump() for record in records],
            "entries": list(entry_ids),
        }
        content = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        return hashlib.sha256(content.encode("utf-8")).hexdigest()
