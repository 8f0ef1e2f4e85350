"""Unit tests for Packager and the bundle template."""

from __future__ import annotations

import ast
import asyncio
import os
import stat
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from quire_core.bundler.graph import GraphBuilder
from quire_core.bundler.models import Asset, AssetGraph, Bundle
from quire_core.bundler.module_resolver import ModuleResolver
from quire_core.bundler.packager import ENTRY_MODULE_NAME, QUIRE_CORE_VERSION, Packager
from quire_core.bundler.runtime import code_literal, create_environment, string_literal
from quire_core.errors import BundleError, WriteError
from quire_core.transformer import PythonTransformer

ProjectFactory = Callable[[dict[str, str]], Path]


def build(roots: Sequence[Path], entries: Sequence[Path]) -> tuple[AssetGraph, list[Path]]:
    builder = GraphBuilder(ModuleResolver(roots), PythonTransformer())
    return asyncio.run(builder.build(entries))


@pytest.fixture
def app_project(make_project: ProjectFactory) -> Path:
    return make_project(
        {
            "app/__init__.py": "",
            "app/main.py": "from . import util\nfrom .models.user import User\n",
            "app/util.py": "def slug(text):\n    return text.lower()\n",
            "app/models/__init__.py": "",
            "app/models/user.py": "from ..util import slug\n\nclass User:\n    pass\n",
        }
    )


class TestPackage:
    """Tests for Packager.package."""

    def test_module_table_follows_discovery_order(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager([app_project]).package(graph, entries)

        assert [record.id for record in bundle.modules] == [
            "main.py",
            "util.py",
            "models/user.py",
        ]
        assert bundle.entries == ("main.py",)

    def test_ids_are_relative_to_common_directory(self, make_project: ProjectFactory) -> None:
        root = make_project(
            {"app/main.py": "import lib.helpers\n", "lib/__init__.py": "", "lib/helpers.py": ""}
        )
        graph, entries = build([root], [root / "app" / "main.py"])

        bundle = Packager([root]).package(graph, entries)

        assert [record.id for record in bundle.modules] == [
            "app/main.py",
            "lib/__init__.py",
            "lib/helpers.py",
        ]

    def test_module_names(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager([app_project]).package(graph, entries)

        assert bundle.module("main.py").name == ENTRY_MODULE_NAME
        assert bundle.module("util.py").name == "app.util"
        assert bundle.module("models/user.py").name == "app.models.user"

    def test_names_outside_roots_use_ids(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager().package(graph, entries)

        assert bundle.module("models/user.py").name == "models.user"

    def test_dependencies_map_specifiers_to_ids(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager([app_project]).package(graph, entries)

        assert bundle.module("main.py").dependencies == {
            ".util": "util.py",
            ".models.user": "models/user.py",
        }
        assert bundle.module("models/user.py").dependencies == {"..util": "util.py"}

    def test_metadata(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager().package(graph, entries)

        assert bundle.metadata.quire_version == QUIRE_CORE_VERSION
        assert len(bundle.metadata.source_hash) == 64
        assert f"# source-hash: {bundle.metadata.source_hash}" in bundle.source

    def test_rebuild_is_byte_identical(self, app_project: Path) -> None:
        entry = app_project / "app" / "main.py"
        first = Packager([app_project]).package(*build([app_project], [entry]))
        second = Packager([app_project]).package(*build([app_project], [entry]))

        assert first.source == second.source
        assert first.metadata.source_hash == second.metadata.source_hash

    def test_hash_changes_with_code(self, app_project: Path) -> None:
        entry = app_project / "app" / "main.py"
        before = Packager().package(*build([app_project], [entry]))
        (app_project / "app" / "util.py").write_text("def slug(text):\n    return text\n")
        after = Packager().package(*build([app_project], [entry]))

        assert before.metadata.source_hash != after.metadata.source_hash

    def test_source_is_valid_python(self, app_project: Path) -> None:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])

        bundle = Packager().package(graph, entries)

        compile(bundle.source, "bundle.py", "exec")
        assert bundle.source.startswith("#!/usr/bin/env python3\n")
        assert bundle.source.endswith("_Runtime(_MODULES, _ENTRIES).run()\n")
        assert "class _LocalRequire:\n" in bundle.source
        assert "class _Runtime:\n" in bundle.source

    def test_empty_graph(self) -> None:
        with pytest.raises(BundleError, match="empty"):
            Packager().package(AssetGraph(), [])

    def test_entry_missing_from_graph(self, app_project: Path) -> None:
        graph, _ = build([app_project], [app_project / "app" / "main.py"])

        with pytest.raises(BundleError, match="not part of the module graph"):
            Packager().package(graph, [app_project / "app" / "other.py"])

    def test_unlinked_asset(self, tmp_path: Path) -> None:
        graph = AssetGraph()
        asset = graph.add(
            Asset(id=tmp_path / "main.py", code="x = 1\n", specifiers=(".util",))
        )
        graph.record_discovery(asset.id)

        with pytest.raises(BundleError, match="not fully linked"):
            Packager().package(graph, [asset.id])


class TestWrite:
    """Tests for Packager.write."""

    @pytest.fixture
    def bundle(self, app_project: Path) -> Bundle:
        graph, entries = build([app_project], [app_project / "app" / "main.py"])
        return Packager().package(graph, entries)

    def test_creates_parent_directories(self, bundle: Bundle, tmp_path: Path) -> None:
        output = tmp_path / "out" / "nested" / "bundle.py"

        written = Packager().write(bundle, output)

        assert written == output
        assert output.read_text(encoding="utf-8") == bundle.source
        assert os.listdir(output.parent) == ["bundle.py"]

    def test_executable_bit(self, bundle: Bundle, tmp_path: Path) -> None:
        output = tmp_path / "bundle.py"

        Packager().write(bundle, output)

        assert output.stat().st_mode & stat.S_IXUSR

    def test_not_executable(self, bundle: Bundle, tmp_path: Path) -> None:
        output = tmp_path / "bundle.py"

        Packager().write(bundle, output, executable=False)

        assert not output.stat().st_mode & stat.S_IXUSR

    def test_overwrites_existing_bundle(self, bundle: Bundle, tmp_path: Path) -> None:
        output = tmp_path / "bundle.py"
        output.write_text("stale\n")

        Packager().write(bundle, output)

        assert output.read_text(encoding="utf-8") == bundle.source

    def test_unwritable_target(self, bundle: Bundle, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(WriteError) as exc_info:
            Packager().write(bundle, blocker / "bundle.py")

        assert exc_info.value.path == blocker / "bundle.py"


class TestLiterals:
    """Tests for the template's literal filters."""

    @pytest.mark.parametrize(
        "text",
        [
            'x = """docstring"""\n',
            "path = 'C:\\\\temp\\\\new'\n",
            'quote at end "',
            "line\r\nfeed\x00nul\x1besc\u2028sep",
            "emoji = '\U0001f600'\n\tindented\n",
            "\\",
        ],
    )
    def test_code_literal_evaluates_to_input(self, text: str) -> None:
        literal = code_literal(text)
        assert literal.startswith('"""') and literal.endswith('"""')
        assert ast.literal_eval(literal) == text

    def test_code_literal_keeps_newlines_readable(self) -> None:
        assert code_literal("a = 1\nb = 2\n") == '"""a = 1\nb = 2\n"""'

    def test_string_literal(self) -> None:
        assert ast.literal_eval(string_literal("it's \"quoted\"")) == "it's \"quoted\""

    def test_environment_filters(self) -> None:
        env = create_environment()
        rendered = env.from_string("{{ value | pyliteral }} {{ value | pycode }}").render(
            value="a'b"
        )
        assert rendered == "\"a'b\" \"\"\"a'b\"\"\""
