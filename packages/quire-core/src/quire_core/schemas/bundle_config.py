"""BundleConfig root model for quire.

This module defines the configuration model that represents a quire.yaml
file: the transform pipeline (plugins and presets), the module names left
as native imports, extra search roots and output defaults.

A missing quire.yaml is not an error; ``BundleConfig()`` is the built-in
default configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Valid plugin name pattern: built-in kebab-case name or "module.path:attribute"
PLUGIN_NAME_PATTERN = r"^([a-z][a-z0-9-]*|[A-Za-z_][\w.]*:[A-Za-z_]\w*)$"


class PluginSpec(BaseModel):
    """One entry of the transform pipeline.

    Attributes:
        name: Built-in plugin name (e.g., "remove-asserts") or an importable
            "module:attribute" reference to a NodeTransformer subclass.
        options: Keyword arguments passed to the plugin constructor.

    Example:
        >>> PluginSpec(name="define", options={"DEBUG": False})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(
        ...,
        pattern=PLUGIN_NAME_PATTERN,
        description="Built-in plugin name or module:attribute reference",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments for the plugin",
    )


class BundleConfig(BaseModel):
    """Root configuration model for quire.yaml.

    Attributes:
        plugins: Transform plugins applied to every module, in order.
        presets: Named plugin groups, expanded before ``plugins``.
        external: Top-level module names left as native imports. Standard
            library and builtin modules are always external.
        paths: Extra search roots for absolute specifiers, relative to the
            directory containing quire.yaml.
        output: Default output target when none is given on the command line.
        executable: Mark the written bundle as executable.
        source_path: quire.yaml the configuration was loaded from (None for
            the built-in defaults). Not serialized.

    Example:
        >>> config = BundleConfig.from_yaml("quire.yaml")
        >>> config.presets
        ('production',)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    plugins: tuple[PluginSpec, ...] = Field(
        default=(),
        description="Transform plugins, applied in order after presets",
    )
    presets: tuple[str, ...] = Field(
        default=(),
        description="Named plugin groups (e.g., 'production')",
    )
    external: tuple[str, ...] = Field(
        default=(),
        description="Top-level module names left as native imports",
    )
    paths: tuple[str, ...] = Field(
        default=(),
        description="Extra search roots for absolute specifiers",
    )
    output: str | None = Field(
        default=None,
        description="Default output target (file ending in .py, or a directory)",
    )
    executable: bool = Field(
        default=True,
        description="Set the executable bit on the written bundle",
    )
    source_path: Path | None = Field(
        default=None,
        exclude=True,
        description="quire.yaml this configuration was loaded from",
    )

    @field_validator("plugins", mode="before")
    @classmethod
    def normalize_plugins(cls, value: Any) -> Any:
        """Accept bare plugin names as shorthand for ``{name: ...}``."""
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple({"name": item} if isinstance(item, str) else item for item in value)
        return value

    @field_validator("external")
    @classmethod
    def validate_external(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """External entries must be top-level module names."""
        for name in value:
            if not name.isidentifier():
                raise ValueError(f"'{name}' is not a top-level module name")
        return value

    @property
    def base_dir(self) -> Path:
        """Directory that relative ``paths`` and ``output`` are anchored to."""
        if self.source_path is not None:
            return self.source_path.parent
        return Path.cwd()

    def search_roots(self) -> list[Path]:
        """Return configured search roots as absolute paths.

        Returns:
            Resolved directories from ``paths``, in declaration order.
        """
        return [(self.base_dir / entry).resolve() for entry in self.paths]

    @classmethod
    def from_yaml(cls, path: str | Path) -> BundleConfig:
        """Load and validate BundleConfig from a YAML file.

        Args:
            path: Path to quire.yaml.

        Returns:
            Validated BundleConfig instance remembering its source path.

        Raises:
            FileNotFoundError: If file doesn't exist.
            yaml.YAMLError: If YAML syntax is invalid.
            pydantic.ValidationError: If schema validation fails.

        Example:
            >>> config = BundleConfig.from_yaml("quire.yaml")
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a mapping at the top level")

        return cls.model_validate({**data, "source_path": path.resolve()})
