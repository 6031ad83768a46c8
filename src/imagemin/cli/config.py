#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for the imagemin CLI.

This module handles automatic discovery of configuration files, loading
configs from TOML, YAML or JSON, validating the recognised keys and
registering plugin factories declared in them.

Recognised keys
---------------
plugins : list
    Plugin names and ``{name: options}`` mappings
out_dir : str
    Output directory
overwrite : bool
    Rewrite input files in place
jobs : int
    Maximum number of files processed concurrently
factories : table
    Plugin name to ``"module:attr"`` factory reference
"""

import json
import logging
import sys
from collections.abc import Mapping
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
from typing import Any, Dict, Optional

import yaml

from imagemin.constants import CONFIG_FILENAMES, PYPROJECT_SECTION
from imagemin.exceptions import ConfigError
from imagemin.plugins.registry import PluginRegistry, plugin_registry

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("plugins", "out_dir", "overwrite", "jobs", "factories")


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load the [tool.imagemin] section from a pyproject.toml file.

    Returns an empty dict when the section is absent.

    Raises
    ------
    ConfigError
        If pyproject.toml cannot be parsed or the section is not a table

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {e}", str(pyproject_path), e) from e
    except OSError as e:
        raise ConfigError(f"Error reading {pyproject_path}: {e}", str(pyproject_path), e) from e

    config = data.get("tool", {}).get(PYPROJECT_SECTION)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"[tool.{PYPROJECT_SECTION}] section in {pyproject_path} must be a table, got {type(config).__name__}",
            str(pyproject_path),
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching parent directories.

    Walks up from ``start_dir`` (default: the current directory) to the
    filesystem root. In each directory the dedicated files are checked in
    order (``.imagemin.toml``, ``.imagemin.yaml``, ``.imagemin.yml``,
    ``.imagemin.json``), then ``pyproject.toml`` if it has a
    ``[tool.imagemin]`` section.

    Returns
    -------
    Path or None
        Path to the first config file found

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigError as e:
                logger.debug(f"Skipping unreadable {pyproject_path}: {e}")

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Discover a configuration file in the standard locations.

    Parent directories are searched first (see :func:`find_config_in_parents`),
    then the user's home directory for the dedicated file names.
    """
    config_in_parents = find_config_in_parents(start_dir)
    if config_in_parents:
        return config_in_parents

    home = Path.home()
    for filename in CONFIG_FILENAMES:
        config_path = home / filename
        if config_path.is_file():
            return config_path

    return None


def _load_toml_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in config file {config_path}: {e}", str(config_path), e) from e


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}", str(config_path), e) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"YAML config file must contain a mapping, got {type(config).__name__}", str(config_path))
    return config


def _load_json_config(config_path: Path) -> Dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {config_path}: {e}", str(config_path), e) from e

    if not isinstance(config, dict):
        raise ConfigError(f"JSON config file must contain an object, got {type(config).__name__}", str(config_path))
    return config


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a TOML, YAML, JSON or pyproject.toml file.

    The format is chosen from the file name and extension. For
    ``pyproject.toml`` only the ``[tool.imagemin]`` section is returned.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Validated configuration dictionary

    Raises
    ------
    ConfigError
        If the file cannot be read, parsed or has invalid values

    Examples
    --------
    >>> config = load_config_file(".imagemin.toml")
    >>> config.get("plugins")
    ['optipng', {'svgo': {'multipass': True}}]

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file does not exist: {config_path}", str(config_path))
    if not config_path.is_file():
        raise ConfigError(f"Configuration path is not a file: {config_path}", str(config_path))

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    try:
        if filename == "pyproject.toml":
            config = _load_pyproject_section(config_path)
        elif ext == ".toml":
            config = _load_toml_config(config_path)
        elif ext in (".yaml", ".yml"):
            config = _load_yaml_config(config_path)
        elif ext == ".json":
            config = _load_json_config(config_path)
        else:
            raise ConfigError(
                f"Unsupported config file format: {ext}. Use .toml, .yaml or .json", str(config_path)
            )
    except OSError as e:
        raise ConfigError(f"Error reading config file {config_path}: {e}", str(config_path), e) from e

    logger.debug(f"Loaded configuration from {config_path}")
    return validate_config(config, config_path)


def validate_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Check the types of recognised keys; unknown keys are logged and dropped.

    Raises
    ------
    ConfigError
        If a recognised key has a value of the wrong type

    """
    source = str(config_path) if config_path is not None else None
    where = f" in {config_path}" if config_path is not None else ""
    validated: Dict[str, Any] = {}

    for key, value in config.items():
        if key not in CONFIG_KEYS:
            logger.warning(f"Ignoring unknown configuration key '{key}'{where}")
            continue

        if key == "plugins":
            if isinstance(value, (str, Mapping)):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(item, (str, Mapping)) for item in value):
                raise ConfigError(f"'plugins'{where} must be a list of names or name/options tables", source)
        elif key == "out_dir":
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'out_dir'{where} must be a non-empty string", source)
        elif key == "overwrite":
            if not isinstance(value, bool):
                raise ConfigError(f"'overwrite'{where} must be true or false", source)
        elif key == "jobs":
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'jobs'{where} must be a positive integer", source)
        elif key == "factories":
            if not isinstance(value, Mapping) or not all(
                isinstance(name, str) and isinstance(ref, str) and ":" in ref for name, ref in value.items()
            ):
                raise ConfigError(f"'factories'{where} must map plugin names to 'module:attr' references", source)
            value = dict(value)

        validated[key] = value

    return validated


def load_config_with_priority(
    explicit_path: Optional[str] = None,
    env_var_path: Optional[str] = None,
    discover: bool = True,
) -> Dict[str, Any]:
    """Load configuration with proper priority handling.

    Priority order (highest to lowest):
    1. Explicit config file path (--config flag)
    2. Environment variable config path (IMAGEMIN_CONFIG)
    3. Auto-discovered config file, unless ``discover`` is False

    Returns
    -------
    dict
        Loaded configuration dictionary (empty dict if no config found)

    Raises
    ------
    ConfigError
        If a config file is specified or found but cannot be loaded

    """
    if explicit_path:
        return load_config_file(explicit_path)

    if env_var_path:
        return load_config_file(env_var_path)

    if discover:
        discovered_path = discover_config_file()
        if discovered_path:
            logger.info(f"Using configuration file: {discovered_path}")
            return load_config_file(discovered_path)

    return {}


def register_config_factories(config: Dict[str, Any], registry: Optional[PluginRegistry] = None) -> list[str]:
    """Register the ``factories`` table of ``config`` with the plugin registry.

    Returns
    -------
    list[str]
        Names of the registered plugins

    """
    registry = registry or plugin_registry
    factories = config.get("factories", {})
    for name, reference in factories.items():
        registry.register_reference(name, reference)
    return list(factories)
