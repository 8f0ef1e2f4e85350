"""Configuration schemas for quire.

Exports:
- BundleConfig: Root model for quire.yaml
- PluginSpec: One transform pipeline entry
"""

from __future__ import annotations

from quire_core.schemas.bundle_config import PLUGIN_NAME_PATTERN, BundleConfig, PluginSpec

__all__: list[str] = [
    "BundleConfig",
    "PluginSpec",
    "PLUGIN_NAME_PATTERN",
]
