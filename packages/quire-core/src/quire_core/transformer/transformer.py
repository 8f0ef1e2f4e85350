"""Python source transformer for quire.

Turns one module's source text into code the bundle runtime can execute:
parse with ``ast``, run the plugin pipeline, lower bundled imports to
``__require__`` calls, and unparse. Also reports the module's raw import
specifiers in first-appearance order.
"""

from __future__ import annotations

import ast
import sys

from pydantic import BaseModel, ConfigDict, Field

from quire_core.errors import TransformError
from quire_core.schemas import BundleConfig
from quire_core.transformer.lowering import ImportLowering
from quire_core.transformer.plugins import PluginPipeline

# Top-level module names that are never bundled
STDLIB_MODULES = frozenset(sys.stdlib_module_names) | frozenset(sys.builtin_module_names)


class TransformResult(BaseModel):
    """Compiled module plus its import specifiers.

    Attributes:
        code: Executable module source with bundled imports lowered.
        specifiers: Raw specifiers in first-appearance order, no duplicates.
        package_imports: Specifiers that may name a package attribute instead
            of a submodule (``from . import NAME``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: str
    specifiers: tuple[str, ...] = Field(default=())
    package_imports: tuple[str, ...] = Field(default=())


def fill_empty_bodies(tree: ast.AST) -> None:
    """Put ``pass`` into statement blocks emptied by plugins or lowering.

    A ``try`` left with neither handlers nor a ``finally`` body gets a
    ``finally: pass`` block.
    """
    for node in ast.walk(tree):
        if isinstance(node, ast.Module):
            continue
        body = getattr(node, "body", None)
        if isinstance(body, list) and not body:
            node.body = [ast.Pass()]  # type: ignore[attr-defined]
        if isinstance(node, ast.Try) and not node.handlers and not node.finalbody:
            node.finalbody = [ast.Pass()]


class PythonTransformer:
    """Transform Python modules for bundling.

    Attributes:
        pipeline: Plugin pipeline built from presets and plugins.
        external: Top-level module names left as native imports.

    Example:
        >>> transformer = PythonTransformer(BundleConfig(external=("requests",)))
        >>> result = transformer.transform("from .util import slug\\n", "app/main.py")
        >>> result.specifiers
        ('.util',)
        >>> result.code
        "slug = __require__.member('.util', 'slug')\\n"
    """

    def __init__(self, config: BundleConfig | None = None) -> None:
        """Initialize the PythonTransformer.

        Args:
            config: Bundle configuration. Defaults to the built-in defaults.

        Raises:
            ConfigurationError: If the plugin pipeline is invalid.
        """
        config = config or BundleConfig()
        self.pipeline = PluginPipeline.from_config(config)
        self.external = STDLIB_MODULES | frozenset(config.external)

    def is_external(self, name: str) -> bool:
        return name in self.external

    def transform(self, source: str | bytes, filename: str = "<module>") -> TransformResult:
        """Compile one module.

        Args:
            source: Module text (bytes honour PEP 263 coding declarations).
            filename: Module path, for error messages.

        Returns:
            TransformResult with lowered code and specifiers.

        Raises:
            TransformError: On syntax errors or plugin failures.
        """
        try:
            tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise TransformError(filename, e.msg, line_number=e.lineno) from e
        except ValueError as e:
            raise TransformError(filename, str(e)) from e

        tree = self.pipeline.apply(tree, filename)

        lowering = ImportLowering(self.is_external)
        tree = lowering.visit(tree)
        fill_empty_bodies(tree)
        ast.fix_missing_locations(tree)

        code = ast.unparse(tree)
        if code:
            code += "\n"
        return TransformResult(
            code=code,
            specifiers=lowering.specifiers,
            package_imports=lowering.package_imports,
        )
