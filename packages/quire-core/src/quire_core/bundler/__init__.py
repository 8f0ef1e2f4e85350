"""Bundler module for quire.

This module exports the Bundler class, its build phases and models:
- Bundler: Configuration -> graph -> bundle -> file
- ConfigResolver: Discover and load quire.yaml
- ModuleResolver: Specifier -> canonical module path
- AssetStore: At-most-once asset creation per path
- GraphBuilder / BuildContext: Worklist traversal and linking
- Packager: Module table + runtime loader rendering and writing
- Asset, AssetGraph, ModuleRecord, Bundle, BundleMetadata, BundleResult
"""

from __future__ import annotations

from quire_core.bundler.adapters import Resolver, Transformer
from quire_core.bundler.asset_store import AssetStore
from quire_core.bundler.bundler import (
    DEFAULT_BUNDLE_NAME,
    DEFAULT_OUTPUT_DIR,
    SCRIPT_SUFFIXES,
    Bundler,
    resolve_output_path,
)
from quire_core.bundler.config_resolver import CONFIG_FILE_NAMES, ConfigResolver
from quire_core.bundler.graph import BuildContext, GraphBuilder
from quire_core.bundler.models import (
    Asset,
    AssetGraph,
    Bundle,
    BundleMetadata,
    BundleResult,
    ModuleRecord,
)
from quire_core.bundler.module_resolver import ModuleResolver, dotted_name, split_specifier
from quire_core.bundler.packager import ENTRY_MODULE_NAME, QUIRE_CORE_VERSION, Packager

__all__: list[str] = [
    # Bundler
    "Bundler",
    "resolve_output_path",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_BUNDLE_NAME",
    "SCRIPT_SUFFIXES",
    # Configuration
    "ConfigResolver",
    "CONFIG_FILE_NAMES",
    # Resolution
    "ModuleResolver",
    "split_specifier",
    "dotted_name",
    # Graph
    "AssetStore",
    "GraphBuilder",
    "BuildContext",
    # Packaging
    "Packager",
    "QUIRE_CORE_VERSION",
    "ENTRY_MODULE_NAME",
    # Adapter protocols
    "Resolver",
    "Transformer",
    # Models
    "Asset",
    "AssetGraph",
    "ModuleRecord",
    "Bundle",
    "BundleMetadata",
    "BundleResult",
]
