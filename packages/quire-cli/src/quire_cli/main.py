"""CLI entry point for quire.

This module defines the main CLI group using the LazyGroup pattern, so
that ``quire --help`` never imports the bundler.
"""

from __future__ import annotations

import importlib
from typing import Any

import click
import rich_click as rclick

from quire_cli import __version__
from quire_cli.output import set_no_color

# Configure rich-click for better help formatting
rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True


class LazyGroup(rclick.RichGroup):
    """Click group that loads commands only when they are invoked.

    Attributes:
        lazy_subcommands: Mapping of command names to "module.attribute" paths.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize LazyGroup.

        Args:
            *args: Positional arguments for parent class.
            lazy_subcommands: Mapping of command name to module path.
                Format: {"bundle": "quire_cli.commands.bundle.bundle"}
            **kwargs: Keyword arguments for parent class.
        """
        super().__init__(*args, **kwargs)
        self.lazy_subcommands: dict[str, str] = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        commands = set(super().list_commands(ctx))
        commands.update(self.lazy_subcommands.keys())
        return sorted(commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, importing its module on first use.

        Args:
            ctx: Click context.
            cmd_name: Name of the command to get.

        Returns:
            Click Command instance, or None if not found.
        """
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd

        if cmd_name not in self.lazy_subcommands:
            return None

        module_name, attr_name = self.lazy_subcommands[cmd_name].rsplit(".", 1)
        mod = importlib.import_module(module_name)
        return getattr(mod, attr_name)  # type: ignore[no-any-return]


LAZY_COMMANDS = {
    "bundle": "quire_cli.commands.bundle.bundle",
    "graph": "quire_cli.commands.graph.graph",
    "init": "quire_cli.commands.init.init",
}


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="quire")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output.",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: set_no_color(value) if value else None,
)
def cli() -> None:
    """quire - Bundle Python modules into one self-executing script.

    Follows every bundled import from the entry modules and writes a single
    script that runs them, with each module executed at most once.

    **Getting Started:**

    - `quire init` - Create a default quire.yaml
    - `quire bundle app/main.py` - Write dist/bundle.py
    - `quire graph app/main.py` - Show the module graph
    """
    pass


if __name__ == "__main__":
    cli()
