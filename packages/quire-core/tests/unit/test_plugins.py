"""Unit tests for transform plugins, presets and the plugin pipeline."""

from __future__ import annotations

import ast
import sys
import textwrap
import types

import pytest

from quire_core.errors import ConfigurationError, TransformError
from quire_core.schemas import BundleConfig, PluginSpec
from quire_core.transformer import PythonTransformer
from quire_core.transformer.plugins import (
    BUILTIN_PLUGINS,
    PRESETS,
    DefineConstants,
    PluginPipeline,
    load_plugin_factory,
)


class RenameTarget(ast.NodeTransformer):
    """Test plugin: renames every ``target`` name to ``replacement``."""

    def __init__(self, replacement: str = "renamed") -> None:
        super().__init__()
        self.replacement = replacement

    def visit_Name(self, node: ast.Name) -> ast.Name:
        if node.id == "target":
            node.id = self.replacement
        return node


class Exploding(ast.NodeTransformer):
    """Test plugin: fails on the first function definition."""

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        raise RuntimeError("boom")


class NotATransformer:
    """Test plugin factory that returns the wrong type."""


PLUGIN_MODULE = "quire_test_plugins"


@pytest.fixture
def plugin_module(monkeypatch: pytest.MonkeyPatch) -> str:
    """Expose the test plugins under an importable top-level module name."""
    module = types.ModuleType(PLUGIN_MODULE)
    module.RenameTarget = RenameTarget  # type: ignore[attr-defined]
    module.Exploding = Exploding  # type: ignore[attr-defined]
    module.NotATransformer = NotATransformer  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, PLUGIN_MODULE, module)
    return PLUGIN_MODULE


def run(source: str, **config: object) -> str:
    transformer = PythonTransformer(BundleConfig.model_validate(config))
    return transformer.transform(textwrap.dedent(source), "app/main.py").code


class TestBuiltinPlugins:
    """Tests for remove-asserts, remove-debug and define."""

    def test_remove_asserts(self) -> None:
        code = run("assert ready, 'not ready'\nstart()\n", plugins=["remove-asserts"])
        assert code == "start()\n"

    def test_remove_debug_keeps_else_branch(self) -> None:
        code = run(
            """\
            if __debug__:
                mode = 'debug'
            else:
                mode = 'release'
            """,
            plugins=["remove-debug"],
        )
        assert code == "mode = 'release'\n"

    def test_remove_debug_ignores_other_conditions(self) -> None:
        source = "if verbose:\n    log()\n"
        assert run(source, plugins=["remove-debug"]) == source

    def test_define_replaces_loads_only(self) -> None:
        code = run(
            """\
            if DEBUG:
                print(API_URL)
            """,
            plugins=[{"name": "define", "options": {"DEBUG": False, "API_URL": "https://x"}}],
        )
        assert code == "if False:\n    print('https://x')\n"

    def test_define_keeps_assignments(self) -> None:
        code = run("DEBUG = True\n", plugins=[{"name": "define", "options": {"DEBUG": False}}])
        assert code == "DEBUG = True\n"

    @pytest.mark.parametrize(
        "source",
        [
            "DEBUG = True\nprint(DEBUG)\n",
            "def show(DEBUG):\n    print(DEBUG)\n",
            "from .settings import DEBUG\nprint(DEBUG)\n",
            "for DEBUG in range(2):\n    print(DEBUG)\n",
        ],
    )
    def test_define_skips_names_the_module_binds(self, source: str) -> None:
        code = run(source, plugins=[{"name": "define", "options": {"DEBUG": False}}])
        assert "print(DEBUG)" in code
        assert "False" not in code

    @pytest.mark.parametrize(
        "options",
        [{"not-a-name": 1}, {"VALUES": [1, 2]}],
    )
    def test_define_rejects_bad_options(self, options: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            DefineConstants(**options)

    def test_production_preset(self) -> None:
        assert PRESETS["production"] == ("remove-asserts", "remove-debug")
        assert set(PRESETS["production"]) <= set(BUILTIN_PLUGINS)


class TestLoadPluginFactory:
    """Tests for plugin lookup."""

    def test_builtin(self) -> None:
        assert load_plugin_factory("define") is DefineConstants

    def test_import_reference(self) -> None:
        assert load_plugin_factory("ast:NodeTransformer") is ast.NodeTransformer

    def test_unknown_builtin(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown plugin 'minify'"):
            load_plugin_factory("minify")

    @pytest.mark.parametrize("name", ["no_such_module_xyz:Plugin", "ast:NoSuchAttribute"])
    def test_unimportable_reference(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match="Cannot load plugin"):
            load_plugin_factory(name)


class TestPluginPipeline:
    """Tests for PluginPipeline ordering and validation."""

    def test_presets_expand_before_plugins(self) -> None:
        config = BundleConfig.model_validate(
            {"presets": ["production"], "plugins": ["define"]}
        )
        assert PluginPipeline.from_config(config).names == (
            "remove-asserts",
            "remove-debug",
            "define",
        )

    def test_unknown_preset(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown preset 'prod'"):
            PluginPipeline.from_config(BundleConfig(presets=("prod",)))

    def test_invalid_options_fail_at_construction(self) -> None:
        spec = PluginSpec(name="remove-asserts", options={"unexpected": True})
        with pytest.raises(ConfigurationError, match="Invalid options"):
            PluginPipeline([spec])

    def test_custom_plugin_with_options(self, plugin_module: str) -> None:
        spec = PluginSpec(name=f"{plugin_module}:RenameTarget", options={"replacement": "other"})
        pipeline = PluginPipeline([spec])

        tree = pipeline.apply(ast.parse("target()\n"), "app/main.py")

        assert ast.unparse(tree) == "other()"

    def test_non_transformer_plugin_is_rejected(self, plugin_module: str) -> None:
        with pytest.raises(ConfigurationError, match="not an ast.NodeTransformer"):
            PluginPipeline([PluginSpec(name=f"{plugin_module}:NotATransformer")])

    def test_plugin_failure_is_a_transform_error(self, plugin_module: str) -> None:
        pipeline = PluginPipeline([PluginSpec(name=f"{plugin_module}:Exploding")])

        with pytest.raises(TransformError, match="plugin .* failed: boom"):
            pipeline.apply(ast.parse("def f():\n    pass\n"), "app/main.py")
