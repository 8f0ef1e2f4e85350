"""quire graph command - Show the module graph without writing a bundle."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from quire_cli.commands import load_config, setup_logging
from quire_cli.errors import handle_quire_error
from quire_cli.output import print_json, print_table

if TYPE_CHECKING:
    from quire_core import AssetGraph


def graph_to_dict(graph: AssetGraph, entries: list[Path]) -> dict[str, Any]:
    """Serialize a linked graph in discovery order.

    Args:
        graph: Linked asset graph.
        entries: Canonical entry paths.

    Returns:
        Dictionary with "entries" and "modules" (path, specifiers, dependencies).
    """
    return {
        "entries": [str(entry) for entry in entries],
        "modules": [
            {
                "path": str(asset.id),
                "specifiers": list(asset.specifiers),
                "dependencies": {
                    specifier: str(asset.dependency_map[specifier])
                    for specifier in asset.specifiers
                },
            }
            for asset in graph
        ],
    }


@click.command("graph")
@click.argument(
    "entries",
    nargs=-1,
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to quire.yaml [default: nearest quire.yaml above the working directory]",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the graph as JSON",
)
def graph(entries: tuple[Path, ...], config_path: str | None, as_json: bool) -> None:
    """Resolve ENTRIES and print every module with its dependencies.

    Nothing is written. Modules are listed in the order they were
    discovered, which is also the order they appear in a bundle.

    Examples:

        quire graph app/main.py

        quire graph app/main.py --json
    """
    setup_logging(verbose=False)
    config = load_config(config_path)

    # Import here to avoid heavy imports at CLI startup
    from quire_core import Bundler, QuireError

    try:
        asset_graph, canonical_entries = Bundler(config).build_graph(list(entries))
    except QuireError as e:
        handle_quire_error(e)

    data = graph_to_dict(asset_graph, canonical_entries)
    if as_json:
        print_json(data)
        return

    rows: list[list[str]] = []
    for module in data["modules"]:
        dependencies = module["dependencies"]
        if not dependencies:
            rows.append([module["path"], "", ""])
        for index, (specifier, target) in enumerate(dependencies.items()):
            rows.append([module["path"] if index == 0 else "", specifier, target])
    print_table(
        f"{len(data['modules'])} module(s)",
        ["Module", "Import", "Resolves to"],
        rows,
    )
