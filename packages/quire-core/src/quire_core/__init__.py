"""quire-core: Dependency graph and bundle packaging for quire.

This package provides:
- Bundler: Entry modules -> one self-executing Python script
- PythonTransformer: Import lowering and plugin pipeline
- ModuleResolver: Python package-aware specifier resolution
- BundleConfig: Pydantic schema for quire.yaml
"""

from __future__ import annotations

__version__ = "0.1.0"

# Bundler and models
from quire_core.bundler import (
    Asset,
    AssetGraph,
    AssetStore,
    Bundle,
    BundleResult,
    Bundler,
    ConfigResolver,
    GraphBuilder,
    ModuleResolver,
    Packager,
    resolve_output_path,
)

# Error types
from quire_core.errors import (
    BundleError,
    ConfigurationError,
    QuireError,
    ReadError,
    ResolutionError,
    TransformError,
    WriteError,
)

# Logging
from quire_core.observability import configure_logging, get_logger

# Schema models
from quire_core.schemas import BundleConfig, PluginSpec

# Transformer
from quire_core.transformer import PythonTransformer, TransformResult

__all__ = [
    "__version__",
    # Bundler
    "Bundler",
    "resolve_output_path",
    "ConfigResolver",
    "ModuleResolver",
    "AssetStore",
    "GraphBuilder",
    "Packager",
    "Asset",
    "AssetGraph",
    "Bundle",
    "BundleResult",
    # Transformer
    "PythonTransformer",
    "TransformResult",
    # Errors
    "QuireError",
    "ConfigurationError",
    "BundleError",
    "ReadError",
    "TransformError",
    "ResolutionError",
    "WriteError",
    # Logging
    "configure_logging",
    "get_logger",
    # Schema models
    "BundleConfig",
    "PluginSpec",
]
