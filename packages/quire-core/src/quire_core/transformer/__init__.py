"""Source transformer for quire.

This module exports:
- PythonTransformer: Parse, run plugins, lower imports, unparse
- TransformResult: Compiled code plus raw import specifiers
- PluginPipeline: Ordered NodeTransformer plugins built from configuration
- BUILTIN_PLUGINS / PRESETS: Named plugins and plugin groups
"""

from __future__ import annotations

from quire_core.transformer.lowering import REQUIRE_NAME, ImportLowering
from quire_core.transformer.plugins import (
    BUILTIN_PLUGINS,
    PRESETS,
    DefineConstants,
    PluginPipeline,
    RemoveAsserts,
    RemoveDebugBlocks,
)
from quire_core.transformer.transformer import (
    STDLIB_MODULES,
    PythonTransformer,
    TransformResult,
)

__all__: list[str] = [
    # Transformer
    "PythonTransformer",
    "TransformResult",
    "STDLIB_MODULES",
    # Lowering
    "ImportLowering",
    "REQUIRE_NAME",
    # Plugins
    "PluginPipeline",
    "BUILTIN_PLUGINS",
    "PRESETS",
    "RemoveAsserts",
    "RemoveDebugBlocks",
    "DefineConstants",
]
