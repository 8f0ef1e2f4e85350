"""Configuration resolver for quire.

This module handles locating and loading quire.yaml:
- Discovery by walking up from the working directory
- Built-in defaults when no configuration file exists
- Translation of YAML and schema failures into ConfigurationError
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from quire_core.errors import ConfigurationError
from quire_core.schemas import BundleConfig

logger = logging.getLogger(__name__)

# Configuration file names, in lookup order within one directory
CONFIG_FILE_NAMES = ("quire.yaml", ".quirerc.yaml")


class ConfigResolver:
    """Resolves the bundle configuration for one build.

    Attributes:
        start_dir: Directory the upward search starts from.

    Example:
        >>> config = ConfigResolver().load()
        >>> config.source_path  # None when the built-in defaults are used

        >>> # Load from explicit path
        >>> config = ConfigResolver().load(path=Path("tools/quire.yaml"))
    """

    def __init__(self, start_dir: Path | None = None) -> None:
        """Initialize the ConfigResolver.

        Args:
            start_dir: Directory to start discovery from. Defaults to the
                current working directory.
        """
        self.start_dir = (start_dir or Path.cwd()).resolve()

    def find_config_file(self) -> Path | None:
        """Find the nearest configuration file at or above start_dir.

        Returns:
            Path to quire.yaml/.quirerc.yaml, or None if there is none up to
            the filesystem root.
        """
        for directory in (self.start_dir, *self.start_dir.parents):
            for name in CONFIG_FILE_NAMES:
                candidate = directory / name
                if candidate.is_file():
                    logger.debug("Found configuration at %s", candidate)
                    return candidate
        return None

    def load(self, path: Path | None = None) -> BundleConfig:
        """Load the bundle configuration.

        Args:
            path: Explicit configuration file. If None, discovers one by
                walking up from start_dir.

        Returns:
            Validated BundleConfig; the built-in defaults if no file is found.

        Raises:
            ConfigurationError: If the file is missing (explicit path only),
                is not valid YAML, or fails schema validation.
        """
        resolved_path = path if path is not None else self.find_config_file()
        if resolved_path is None:
            logger.debug("No configuration file found, using defaults")
            return BundleConfig()

        try:
            config = BundleConfig.from_yaml(resolved_path)
        except FileNotFoundError:
            raise ConfigurationError(
                "Configuration file not found", file_path=str(resolved_path)
            ) from None
        except yaml.YAMLError as e:
            line_number = None
            mark = getattr(e, "problem_mark", None)
            if mark is not None:
                line_number = mark.line + 1
            raise ConfigurationError(
                "Invalid YAML",
                file_path=str(resolved_path),
                line_number=line_number,
                internal_details=str(e),
            ) from e
        except PydanticValidationError as e:
            first = e.errors()[0]
            field_path = ".".join(str(part) for part in first["loc"])
            raise ConfigurationError(
                f"Invalid configuration: {first['msg']}",
                file_path=str(resolved_path),
                field_path=field_path or None,
            ) from e
        except ValueError as e:
            raise ConfigurationError(str(e), file_path=str(resolved_path)) from e

        logger.info("Loaded configuration from %s", resolved_path)
        return config
