"""Import lowering for bundled modules.

Rewrites every import of a bundled module into a call on the module-local
``__require__`` object provided by the bundle runtime, and records the raw
specifiers in first-appearance order. Imports of external modules (standard
library, configured externals) and ``__future__`` imports stay native.
"""

from __future__ import annotations

import ast
from collections.abc import Callable

# Global name under which the runtime exposes the module-local require
REQUIRE_NAME = "__require__"


def _require_call(specifier: str, method: str | None = None, *extra: ast.expr) -> ast.Call:
    func: ast.expr = ast.Name(id=REQUIRE_NAME, ctx=ast.Load())
    if method is not None:
        func = ast.Attribute(value=func, attr=method, ctx=ast.Load())
    return ast.Call(func=func, args=[ast.Constant(specifier), *extra], keywords=[])


def _assign(name: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=value)


class ImportLowering(ast.NodeTransformer):
    """Lower bundled imports to ``__require__`` calls.

    Lowering rules:
        import a               ->  a = __require__('a')
        import a.b as c        ->  c = __require__('a.b')
        import a.b             ->  a = __require__.chain('a.b')   (specifiers a, a.b)
        from .m import x as y  ->  y = __require__.member('.m', 'x')
        from . import sub      ->  sub = __require__('.sub')      (or the package attribute)
        from .m import *       ->  __require__.star('.m', globals())

    Attributes:
        is_external: Predicate on a top-level module name; True keeps the
            import native.
    """

    def __init__(self, is_external: Callable[[str], bool]) -> None:
        self.is_external = is_external
        self._specifiers: dict[str, None] = {}
        self._package_imports: set[str] = set()
        self._module_imports: set[str] = set()

    @property
    def specifiers(self) -> tuple[str, ...]:
        """Specifiers seen so far, in first-appearance order."""
        return tuple(self._specifiers)

    @property
    def package_imports(self) -> tuple[str, ...]:
        """Specifiers only ever imported as ``from <dots> import NAME``.

        Such a NAME may be an attribute of the package rather than a
        submodule.
        """
        return tuple(
            specifier
            for specifier in self._specifiers
            if specifier in self._package_imports and specifier not in self._module_imports
        )

    def _add(self, specifier: str, *, package_import: bool = False) -> None:
        self._specifiers.setdefault(specifier, None)
        if package_import:
            self._package_imports.add(specifier)
        else:
            self._module_imports.add(specifier)

    def visit_Import(self, node: ast.Import) -> ast.stmt | list[ast.stmt]:
        native: list[ast.alias] = []
        lowered: list[ast.stmt] = []

        for alias in node.names:
            if self.is_external(alias.name.partition(".")[0]):
                native.append(alias)
                continue

            if alias.asname is not None:
                self._add(alias.name)
                lowered.append(_assign(alias.asname, _require_call(alias.name)))
            elif "." in alias.name:
                parts = alias.name.split(".")
                for index in range(1, len(parts) + 1):
                    self._add(".".join(parts[:index]))
                lowered.append(_assign(parts[0], _require_call(alias.name, "chain")))
            else:
                self._add(alias.name)
                lowered.append(_assign(alias.name, _require_call(alias.name)))

        if not lowered:
            return node

        statements: list[ast.stmt] = []
        if native:
            statements.append(ast.Import(names=native))
        statements.extend(lowered)
        return [ast.copy_location(statement, node) for statement in statements]

    def visit_ImportFrom(self, node: ast.ImportFrom) -> ast.stmt | list[ast.stmt]:
        if node.module == "__future__":
            return node

        level = node.level or 0
        if level == 0 and node.module is not None:
            if self.is_external(node.module.partition(".")[0]):
                return node

        prefix = "." * level
        statements: list[ast.stmt] = []

        if node.module is None:
            # from . import a, b: a submodule of the package, else a package attribute
            for alias in node.names:
                if alias.name == "*":
                    self._add(prefix)
                    statements.append(ast.Expr(value=_star_call(prefix)))
                    continue
                specifier = prefix + alias.name
                self._add(specifier, package_import=True)
                statements.append(_assign(alias.asname or alias.name, _require_call(specifier)))
        else:
            specifier = prefix + node.module
            self._add(specifier)
            for alias in node.names:
                if alias.name == "*":
                    statements.append(ast.Expr(value=_star_call(specifier)))
                    continue
                member = _require_call(specifier, "member", ast.Constant(alias.name))
                statements.append(_assign(alias.asname or alias.name, member))

        return [ast.copy_location(statement, node) for statement in statements]


def _star_call(specifier: str) -> ast.Call:
    namespace = ast.Call(func=ast.Name(id="globals", ctx=ast.Load()), args=[], keywords=[])
    return _require_call(specifier, "star", namespace)
