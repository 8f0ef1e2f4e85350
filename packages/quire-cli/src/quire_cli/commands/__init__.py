"""CLI command modules.

This package contains the implementation of all CLI subcommands, plus the
helpers they share for loading configuration and setting up logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quire_core import BundleConfig


def setup_logging(verbose: bool) -> None:
    """Route quire-core logs to stderr: debug with --verbose, warnings otherwise."""
    from quire_core import configure_logging

    configure_logging(
        log_level="DEBUG" if verbose else "WARNING",
        json_format=False,
        add_timestamp=False,
    )


def load_config(config_path: str | None) -> BundleConfig:
    """Load an explicit configuration file, or discover quire.yaml.

    Raises:
        CLIError: If the configuration cannot be loaded.
    """
    from quire_core import ConfigResolver, ConfigurationError

    from quire_cli.errors import handle_quire_error

    try:
        return ConfigResolver().load(Path(config_path) if config_path else None)
    except ConfigurationError as e:
        handle_quire_error(e)


__all__: list[str] = ["load_config", "setup_logging"]
