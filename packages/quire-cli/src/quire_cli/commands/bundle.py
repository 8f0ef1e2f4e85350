"""quire bundle command - Write a self-executing bundle."""

from __future__ import annotations

from pathlib import Path

import click

from quire_cli.commands import load_config, setup_logging
from quire_cli.errors import handle_quire_error
from quire_cli.output import success


@click.command("bundle")
@click.argument(
    "entries",
    nargs=-1,
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-t",
    "--target",
    "target",
    type=click.Path(),
    default=None,
    help="Output file (*.py) or directory [default: quire.yaml output, else dist/bundle.py]",
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
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Log every build step to stderr",
)
def bundle(
    entries: tuple[Path, ...],
    target: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Bundle ENTRIES and everything they import into one script.

    Entries run in the order given. Standard library modules and the
    names listed under `external` in quire.yaml stay regular imports.

    Examples:

        quire bundle app/main.py

        quire bundle app/main.py --target build/app.py

        quire bundle setup.py app/main.py -t dist/
    """
    setup_logging(verbose)
    config = load_config(config_path)

    # Import here to avoid heavy imports at CLI startup
    from quire_core import Bundler, QuireError

    try:
        result = Bundler(config).bundle(list(entries), target=target)
    except QuireError as e:
        handle_quire_error(e)

    success(f"Bundled {result.module_count} module(s) into {result.output_path}")
