"""Transform plugins and presets for quire.

A plugin is an ``ast.NodeTransformer`` subclass constructed with the
``options`` of its PluginSpec. Built-in plugins are referenced by name;
custom plugins by ``"package.module:ClassName"``.

Built-in plugins:
    remove-asserts: Drop ``assert`` statements.
    remove-debug: Replace ``if __debug__:`` blocks with their ``else`` branch.
    define: Replace names with constants (``options`` maps name -> value).

Built-in presets:
    production: remove-asserts, remove-debug
"""

from __future__ import annotations

import ast
import importlib
from collections.abc import Callable
from typing import Any

import structlog

from quire_core.errors import ConfigurationError, TransformError
from quire_core.schemas import BundleConfig, PluginSpec

logger = structlog.get_logger(__name__)

PluginFactory = Callable[..., ast.NodeTransformer]

# Value types the define plugin can embed as constants
DEFINE_VALUE_TYPES = (type(None), bool, int, float, str)


class RemoveAsserts(ast.NodeTransformer):
    """Drop assert statements."""

    def visit_Assert(self, node: ast.Assert) -> None:
        return None


class RemoveDebugBlocks(ast.NodeTransformer):
    """Replace ``if __debug__:`` with its else branch (or nothing)."""

    def visit_If(self, node: ast.If) -> ast.AST | list[ast.stmt] | None:
        self.generic_visit(node)
        if isinstance(node.test, ast.Name) and node.test.id == "__debug__":
            return node.orelse or None
        return node


class DefineConstants(ast.NodeTransformer):
    """Substitute constants for names the module reads but never binds.

    A name that the module assigns, imports, defines, or takes as a
    parameter anywhere keeps all of its reads.

    Example:
        >>> DefineConstants(DEBUG=False, API_URL="https://example.org")
    """

    def __init__(self, **constants: Any) -> None:
        super().__init__()
        for name, value in constants.items():
            if not name.isidentifier():
                raise ValueError(f"'{name}' is not a valid name")
            if not isinstance(value, DEFINE_VALUE_TYPES):
                raise ValueError(f"value for '{name}' must be None, bool, int, float or str")
        self.constants = constants
        self._bound: set[str] = set()

    def visit_Module(self, node: ast.Module) -> ast.Module:
        self._bound = bound_names(node)
        self.generic_visit(node)
        return node

    def visit_Name(self, node: ast.Name) -> ast.expr:
        if (
            isinstance(node.ctx, ast.Load)
            and node.id in self.constants
            and node.id not in self._bound
        ):
            return ast.copy_location(ast.Constant(self.constants[node.id]), node)
        return node


def bound_names(tree: ast.AST) -> set[str]:
    """Collect every name bound anywhere in a tree, ignoring scopes."""
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Load):
            names.add(node.id)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            names.update((alias.asname or alias.name).partition(".")[0] for alias in node.names)
        elif isinstance(node, ast.ExceptHandler) and node.name:
            names.add(node.name)
    return names


BUILTIN_PLUGINS: dict[str, PluginFactory] = {
    "remove-asserts": RemoveAsserts,
    "remove-debug": RemoveDebugBlocks,
    "define": DefineConstants,
}

PRESETS: dict[str, tuple[str, ...]] = {
    "production": ("remove-asserts", "remove-debug"),
}


def load_plugin_factory(name: str) -> PluginFactory:
    """Look up a built-in plugin or import a ``module:attribute`` reference.

    Args:
        name: Plugin name from the configuration.

    Returns:
        Callable producing a NodeTransformer.

    Raises:
        ConfigurationError: If the plugin is unknown or cannot be imported.
    """
    if ":" not in name:
        try:
            return BUILTIN_PLUGINS[name]
        except KeyError:
            available = ", ".join(sorted(BUILTIN_PLUGINS))
            raise ConfigurationError(
                f"Unknown plugin '{name}'. Available: {available}", field_path="plugins"
            ) from None

    module_name, _, attr_name = name.partition(":")
    try:
        module = importlib.import_module(module_name)
        factory: PluginFactory = getattr(module, attr_name)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot load plugin '{name}'",
            field_path="plugins",
            internal_details=repr(e),
        ) from e
    return factory


class PluginPipeline:
    """Ordered transform plugins applied to each module's syntax tree.

    Plugin instances are created per module so that plugins may keep
    per-module state.

    Example:
        >>> pipeline = PluginPipeline.from_config(BundleConfig(presets=("production",)))
        >>> pipeline.names
        ('remove-asserts', 'remove-debug')
    """

    def __init__(self, specs: list[PluginSpec]) -> None:
        """Initialize the pipeline and validate every plugin once.

        Args:
            specs: Plugin specs in application order.

        Raises:
            ConfigurationError: If a plugin is unknown, fails to import,
                rejects its options or is not a NodeTransformer.
        """
        self._stages: list[tuple[PluginSpec, PluginFactory]] = []
        for spec in specs:
            factory = load_plugin_factory(spec.name)
            self._instantiate(spec, factory)
            self._stages.append((spec, factory))

    @classmethod
    def from_config(cls, config: BundleConfig) -> PluginPipeline:
        """Build the pipeline for a configuration: presets first, then plugins.

        Raises:
            ConfigurationError: If a preset is unknown.
        """
        specs: list[PluginSpec] = []
        for preset in config.presets:
            if preset not in PRESETS:
                available = ", ".join(sorted(PRESETS))
                raise ConfigurationError(
                    f"Unknown preset '{preset}'. Available: {available}", field_path="presets"
                )
            specs.extend(PluginSpec(name=name) for name in PRESETS[preset])
        specs.extend(config.plugins)
        return cls(specs)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec, _ in self._stages)

    @staticmethod
    def _instantiate(spec: PluginSpec, factory: PluginFactory) -> ast.NodeTransformer:
        try:
            plugin = factory(**spec.options)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid options for plugin '{spec.name}': {e}", field_path="plugins"
            ) from e
        if not isinstance(plugin, ast.NodeTransformer):
            raise ConfigurationError(
                f"Plugin '{spec.name}' is not an ast.NodeTransformer", field_path="plugins"
            )
        return plugin

    def apply(self, tree: ast.Module, filename: str) -> ast.Module:
        """Run every plugin over a module tree.

        Args:
            tree: Parsed module.
            filename: Module path, for error messages.

        Returns:
            The transformed tree.

        Raises:
            TransformError: If a plugin raises or drops the module node.
        """
        for spec, factory in self._stages:
            plugin = self._instantiate(spec, factory)
            try:
                result = plugin.visit(tree)
            except Exception as e:
                raise TransformError(
                    filename,
                    f"plugin '{spec.name}' failed: {e}",
                    internal_details=repr(e),
                ) from e
            if not isinstance(result, ast.Module):
                raise TransformError(filename, f"plugin '{spec.name}' did not return a module")
            tree = result
            logger.debug("plugin_applied", plugin=spec.name, module=filename)
        return tree
