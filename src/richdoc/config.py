#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for richdoc.

Configuration lives in ``.richdoc.toml``, ``.richdoc.yaml``,
``.richdoc.yml``, ``.richdoc.json`` or the ``[tool.richdoc]`` table of a
``pyproject.toml``. Files are searched from the working directory up to the
filesystem root; the first one found wins.

A configuration has three optional sections::

    [editor]
    heading_levels = [1, 2, 3]
    slug_separator = "_"

    [parser]
    strict = true

    [serializer]
    bullet_marker = "*"

Each section maps onto the fields of :class:`EditorOptions`,
:class:`MarkdownParserOptions` and :class:`MarkdownSerializerOptions`.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
from typing import Any, Dict, Optional

import yaml

from richdoc.exceptions import ValidationError
from richdoc.options.editor import EditorOptions
from richdoc.options.markdown import MarkdownParserOptions, MarkdownSerializerOptions

logger = logging.getLogger(__name__)

DEDICATED_CONFIG_FILENAMES = [".richdoc.toml", ".richdoc.yaml", ".richdoc.yml", ".richdoc.json"]
CONFIG_FILENAMES = [*DEDICATED_CONFIG_FILENAMES, "pyproject.toml"]
CONFIG_SECTIONS = ("editor", "parser", "serializer")


@dataclass(frozen=True)
class LoadedOptions:
    """Option objects built from a configuration file."""

    editor: EditorOptions = field(default_factory=EditorOptions)
    parser: MarkdownParserOptions = field(default_factory=MarkdownParserOptions)
    serializer: MarkdownSerializerOptions = field(default_factory=MarkdownSerializerOptions)
    source: Optional[Path] = None


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load the ``[tool.richdoc]`` table of a pyproject.toml, or an empty dict."""
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValidationError(f"Invalid TOML in pyproject.toml {pyproject_path}: {e}", original_error=e) from e
    except OSError as e:
        raise ValidationError(f"Error reading pyproject.toml {pyproject_path}: {e}", original_error=e) from e

    config = data.get("tool", {}).get("richdoc")
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValidationError(
            f"[tool.richdoc] section in {pyproject_path} must be a table, got {type(config).__name__}",
            parameter_name="tool.richdoc",
            parameter_value=config,
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching parent directories.

    Each directory is checked for the dedicated files first and then for a
    ``pyproject.toml`` with a ``[tool.richdoc]`` table. Invalid
    pyproject files are skipped.

    Parameters
    ----------
    start_dir : Path, optional
        Starting directory for search, defaults to current working directory

    Returns
    -------
    Path or None
        Path to first config file found, or None if not found

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in DEDICATED_CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ValidationError as e:
                logger.debug(f"Skipping {pyproject_path}: {e}")

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a JSON, TOML, YAML or pyproject.toml file.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration dictionary loaded from file

    Raises
    ------
    ValidationError
        If the file cannot be read, parsed, or has an unsupported format

    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise ValidationError(f"Configuration file does not exist: {config_path}", parameter_value=str(config_path))

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    if filename == "pyproject.toml":
        return _load_pyproject_section(config_path)

    try:
        if ext == ".toml":
            with open(config_path, "rb") as f:
                config = tomllib.load(f)
        elif ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
            if config is None:
                config = {}
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        else:
            raise ValidationError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml")
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid config file {config_path}: {e}", original_error=e) from e
    except OSError as e:
        raise ValidationError(f"Error reading config file {config_path}: {e}", original_error=e) from e

    if not isinstance(config, dict):
        raise ValidationError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")
    return config


def options_from_config(config: Dict[str, Any], source: Optional[Path] = None) -> LoadedOptions:
    """Build option objects from a configuration dictionary.

    Raises
    ------
    ValidationError
        If the configuration has unknown sections or options, or invalid values

    """
    unknown = sorted(set(config) - set(CONFIG_SECTIONS))
    if unknown:
        raise ValidationError(f"Unknown configuration section(s): {', '.join(unknown)}", parameter_value=unknown)

    sections = {}
    for name, options_class in (
        ("editor", EditorOptions),
        ("parser", MarkdownParserOptions),
        ("serializer", MarkdownSerializerOptions),
    ):
        data = config.get(name) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Configuration section [{name}] must be a table", parameter_name=name)
        try:
            sections[name] = options_class.from_mapping(data)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid [{name}] configuration: {e}", parameter_name=name, original_error=e) from e

    return LoadedOptions(source=source, **sections)


def load_options(config_path: Path | str | None = None, start_dir: Optional[Path] = None) -> LoadedOptions:
    """Load editor, parser and serializer options.

    Parameters
    ----------
    config_path : Path or str, optional
        Explicit configuration file; when omitted the file is discovered
        from ``start_dir`` upwards
    start_dir : Path, optional
        Directory the discovery starts in, defaults to the working directory

    Returns
    -------
    LoadedOptions
        Options from the file, or defaults when no file was found

    """
    path = Path(config_path) if config_path is not None else find_config_in_parents(start_dir)
    if path is None:
        logger.debug("No configuration file found, using defaults")
        return LoadedOptions()
    logger.debug(f"Loading configuration from {path}")
    return options_from_config(load_config_file(path), source=path)
