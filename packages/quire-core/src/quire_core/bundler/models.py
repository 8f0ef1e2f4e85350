"""Bundler models for quire.

This module defines the data passed between build phases:
- Asset: One compiled module plus its specifier map (mutable during linking)
- AssetGraph: Canonical path -> Asset registry with first-discovery order
- ModuleRecord / BundleMetadata / Bundle: The packaged, immutable output
- BundleResult: What a completed build reports back to its caller
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Asset(BaseModel):
    """Compiled representation of one module.

    ``dependency_map`` starts empty and is filled by the graph builder; once
    linked, its key set equals the set of ``specifiers``.

    Attributes:
        id: Canonical path of the module file.
        code: Compiled (lowered) module source.
        specifiers: Raw import specifiers in first-appearance order.
        dependency_map: Raw specifier -> canonical path of the dependency.
        package_imports: Specifiers that may resolve to the importing
            package itself when no such submodule exists.
    """

    model_config = ConfigDict(extra="forbid")

    id: Path = Field(..., description="Canonical path of the module file")
    code: str = Field(..., description="Compiled module source")
    specifiers: tuple[str, ...] = Field(
        default=(),
        description="Raw import specifiers, in order, without duplicates",
    )
    dependency_map: dict[str, Path] = Field(
        default_factory=dict,
        description="Raw specifier -> canonical dependency path",
    )
    package_imports: tuple[str, ...] = Field(
        default=(),
        description="Specifiers imported as from <dots> import NAME only",
    )

    @property
    def directory(self) -> Path:
        """Base directory for resolving this module's specifiers."""
        return self.id.parent

    @property
    def is_linked(self) -> bool:
        """True once every specifier has a dependency recorded."""
        return set(self.dependency_map) == set(self.specifiers)


class AssetGraph:
    """Registry of assets created during one build.

    Insertion is idempotent: adding a second asset for a path that is
    already registered returns the registered one. Iteration follows
    first-discovery order as recorded by the graph builder.

    Example:
        >>> graph = AssetGraph()
        >>> graph.add(asset) is graph.add(asset)
        True
    """

    def __init__(self) -> None:
        self._assets: dict[Path, Asset] = {}
        self._discovery_order: list[Path] = []

    def add(self, asset: Asset) -> Asset:
        """Register an asset, returning the one registered for its path."""
        return self._assets.setdefault(asset.id, asset)

    def record_discovery(self, path: Path) -> None:
        """Append a path to the first-discovery order.

        Raises:
            KeyError: If no asset is registered for the path.
        """
        if path not in self._assets:
            raise KeyError(f"No asset registered for {path}")
        self._discovery_order.append(path)

    @property
    def discovery_order(self) -> tuple[Path, ...]:
        return tuple(self._discovery_order)

    def __contains__(self, path: object) -> bool:
        return path in self._assets

    def __getitem__(self, path: Path) -> Asset:
        return self._assets[path]

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[Asset]:
        """Iterate assets in first-discovery order."""
        return (self._assets[path] for path in self._discovery_order)


class ModuleRecord(BaseModel):
    """One row of the bundle's module table.

    Attributes:
        id: Bundle-relative POSIX path of the module (e.g., "app/util.py").
        name: Module ``__name__`` at runtime ("__main__" for entries).
        code: Compiled source, embedded verbatim.
        dependencies: Raw specifier -> module id, in specifier order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    code: str
    dependencies: dict[str, str] = Field(default_factory=dict)


class BundleMetadata(BaseModel):
    """Provenance of a bundle.

    Contains no timestamps so that identical inputs give identical output.

    Attributes:
        quire_version: Version of quire-core that produced the bundle.
        source_hash: SHA-256 over the module table and entry list.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    quire_version: str = Field(..., min_length=1)
    source_hash: str = Field(..., min_length=64, max_length=64)


class Bundle(BaseModel):
    """The packaged program.

    Attributes:
        metadata: Version and content hash.
        modules: Module table in first-discovery order.
        entries: Entry module ids in execution order.
        source: Rendered Python script.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    metadata: BundleMetadata
    modules: tuple[ModuleRecord, ...]
    entries: tuple[str, ...]
    source: str

    def module(self, module_id: str) -> ModuleRecord:
        """Look up a module record by id.

        Raises:
            KeyError: If the bundle has no such module.
        """
        for record in self.modules:
            if record.id == module_id:
                return record
        raise KeyError(module_id)


class BundleResult(BaseModel):
    """Outcome of a successful build.

    Attributes:
        output_path: File the bundle was written to.
        bundle: The packaged program.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_path: Path
    bundle: Bundle

    @property
    def module_count(self) -> int:
        return len(self.bundle.modules)
