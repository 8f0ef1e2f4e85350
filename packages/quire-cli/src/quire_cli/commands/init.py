"""quire init command - Write a default quire.yaml."""

from __future__ import annotations

from pathlib import Path

import click

from quire_cli.errors import EXIT_SYSTEM_ERROR, EXIT_USER_ERROR
from quire_cli.output import error, success, warning

CONFIG_FILE_NAME = "quire.yaml"

QUIRE_YAML_TEMPLATE = """\
# quire configuration for {{ name }}
#
# Every field is optional. Leaving a field out keeps the built-in default.

# Transform plugins applied to every module, in order.
# Built-in: remove-asserts, remove-debug, define. Custom: "package.module:ClassName".
plugins: []
#  - remove-asserts
#  - name: define
#    options:
#      DEBUG: false

# Plugin groups expanded before `plugins`. Built-in: production.
presets: []

# Top-level modules left as regular imports (the standard library always is).
external: []
#  - requests

# Extra directories searched for absolute imports, relative to this file.
# Entry module directories are always searched.
paths: []

# Default output: a file ending in .py, or a directory that receives bundle.py.
output: {{ output }}

# Mark the written bundle as executable.
executable: true
"""


@click.command()
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Overwrite an existing quire.yaml",
)
def init(force: bool) -> None:
    """Write a commented default quire.yaml to the current directory.

    Examples:

        quire init

        quire init --force
    """
    config_path = Path(CONFIG_FILE_NAME)
    existed = config_path.exists()
    if existed and not force:
        error(f"{CONFIG_FILE_NAME} already exists.")
        error("Use --force to overwrite.")
        raise SystemExit(EXIT_USER_ERROR)

    from jinja2.sandbox import SandboxedEnvironment

    from quire_core.bundler import DEFAULT_BUNDLE_NAME, DEFAULT_OUTPUT_DIR

    env = SandboxedEnvironment(trim_blocks=True, lstrip_blocks=True)
    content = env.from_string(QUIRE_YAML_TEMPLATE).render(
        name=Path.cwd().name,
        output=f"{DEFAULT_OUTPUT_DIR}/{DEFAULT_BUNDLE_NAME}",
    )

    try:
        config_path.write_text(content, encoding="utf-8")
    except PermissionError:
        error("Cannot write to current directory.")
        raise SystemExit(EXIT_SYSTEM_ERROR) from None

    if existed:
        warning(f"Overwrote existing {CONFIG_FILE_NAME}")
    success(f"Created {CONFIG_FILE_NAME}")
