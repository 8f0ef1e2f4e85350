"""Unit tests for AssetStore at-most-once creation."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from quire_core.bundler.asset_store import AssetStore
from quire_core.bundler.models import AssetGraph
from quire_core.errors import ReadError, TransformError
from quire_core.transformer import PythonTransformer, TransformResult


class CountingTransformer:
    """Transformer double that records every call."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._inner = PythonTransformer()

    def transform(self, source: str | bytes, filename: str = "<module>") -> TransformResult:
        self.calls.append(filename)
        return self._inner.transform(source, filename)


@pytest.fixture
def module_file(tmp_path: Path) -> Path:
    path = tmp_path / "util.py"
    path.write_text("from . import helpers\n\ndef slug(text):\n    return text.lower()\n")
    return path.resolve()


class TestAssetStore:
    """Tests for AssetStore.get_or_create."""

    @pytest.mark.asyncio
    async def test_creates_asset(self, module_file: Path) -> None:
        store = AssetStore(PythonTransformer())

        asset = await store.get_or_create(module_file)

        assert asset.id == module_file
        assert asset.specifiers == (".helpers",)
        assert "helpers = __require__('.helpers')" in asset.code
        assert asset.dependency_map == {}
        assert store.graph[module_file] is asset

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_asset(self, module_file: Path) -> None:
        transformer = CountingTransformer()
        store = AssetStore(transformer)

        assets = await asyncio.gather(*(store.get_or_create(module_file) for _ in range(20)))

        assert all(asset is assets[0] for asset in assets)
        assert transformer.calls == [str(module_file)]
        assert store.transform_count == 1
        assert len(store.graph) == 1

    @pytest.mark.asyncio
    async def test_later_requests_reuse_asset(self, module_file: Path) -> None:
        transformer = CountingTransformer()
        store = AssetStore(transformer)

        first = await store.get_or_create(module_file)
        second = await store.get_or_create(module_file)

        assert first is second
        assert store.transform_count == 1

    @pytest.mark.asyncio
    async def test_distinct_paths_are_distinct_assets(self, tmp_path: Path) -> None:
        paths = []
        for name in ("a", "b", "c"):
            path = tmp_path / f"{name}.py"
            path.write_text(f"NAME = {name!r}\n")
            paths.append(path.resolve())
        store = AssetStore(CountingTransformer())

        assets = await asyncio.gather(*(store.get_or_create(path) for path in paths))

        assert [asset.id for asset in assets] == paths
        assert store.transform_count == 3

    @pytest.mark.asyncio
    async def test_uses_given_graph(self, module_file: Path) -> None:
        graph = AssetGraph()
        store = AssetStore(PythonTransformer(), graph)

        await store.get_or_create(module_file)

        assert module_file in graph

    @pytest.mark.asyncio
    async def test_missing_file_is_read_error(self, tmp_path: Path) -> None:
        store = AssetStore(CountingTransformer())

        with pytest.raises(ReadError) as exc_info:
            await store.get_or_create(tmp_path / "missing.py")

        assert exc_info.value.path == tmp_path / "missing.py"
        assert store.transform_count == 0

    @pytest.mark.asyncio
    async def test_transform_failure_propagates(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.py"
        path.write_text("def broken(:\n")
        store = AssetStore(PythonTransformer())

        with pytest.raises(TransformError):
            await store.get_or_create(path)

        assert path not in store.graph
