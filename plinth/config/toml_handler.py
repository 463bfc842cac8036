"""
TOML File I/O Handler.

This module provides TOML parsing and writing for platform files.

Key features:
- Parse TOML files and in-memory documents using tomllib
- Write TOML files using tomlkit (flat quoted keys, header comments)
- Flatten nested tables into dotted string keys
- Generate a commented default file from a schema
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit

from plinth.errors import ConfigLoadError


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a settings, log-status or platform config file.

    Raises:
        ConfigLoadError: If the file is missing, unreadable or not valid TOML
    """
    try:
        content = Path(file_path).read_bytes()
    except FileNotFoundError as e:
        raise ConfigLoadError(f"TOML file not found: {file_path}") from e
    except OSError as e:
        raise ConfigLoadError(f"Failed to read TOML file {file_path}: {e}") from e
    return parse_toml(content, f"file {file_path}")


def parse_toml(content: bytes, source: str) -> dict[str, Any]:
    """
    Parse TOML bytes, e.g. a config file read out of a component archive.

    Args:
        content: Raw file bytes (UTF-8)
        source: Human-readable origin used in error messages

    Returns:
        Parsed TOML data as dictionary

    Raises:
        ConfigLoadError: If content cannot be decoded or parsed
    """
    try:
        return tomllib.loads(content.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ConfigLoadError(f"TOML content in {source} is not UTF-8: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigLoadError(f"Failed to parse TOML content in {source}: {e}") from e


def write_toml(file_path: Path, data: dict[str, Any], header: str | None = None) -> None:
    """
    Write data to a TOML file using tomlkit.

    Keys are written verbatim, so dotted keys such as ``a.b.c`` are emitted
    quoted and read back as a single flat key.

    Args:
        file_path: Path to the TOML file
        data: Data to write
        header: Optional comment placed at the top of the file

    Raises:
        ConfigLoadError: If file cannot be written
    """
    doc = tomlkit.document()
    if header:
        doc.add(tomlkit.comment(header))
        doc.add(tomlkit.nl())
    for key, value in data.items():
        doc.add(key, value)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            tomlkit.dump(doc, f)
    except OSError as e:
        raise ConfigLoadError(f"Failed to write TOML file {file_path}: {e}") from e


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_to_str(v) for v in value)
    return str(value)


def flatten_toml(data: dict[str, Any], prefix: str = "") -> dict[str, str]:
    """
    Flatten parsed TOML into a single level of string keys and values.

    Nested tables are joined with ``.``; scalars are stringified, booleans
    as ``true``/``false`` and arrays as comma-separated values.

    Args:
        data: Parsed TOML data
        prefix: Key prefix for nested tables

    Returns:
        Ordered flat mapping
    """
    flat: dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten_toml(value, full_key))
        else:
            flat[full_key] = _to_str(value)
    return flat


def generate_toml_from_schema(
    section: str, schema: dict[str, Any], config_data: dict[str, Any]
) -> str:
    """
    Render one config table, each field preceded by its description.

    Args:
        section: Table name, e.g. "plinth"
        schema: Schema dictionary (field_name -> ConfigField)
        config_data: Values to write (missing fields use their default)

    Returns:
        TOML text for `plinthctl --init`
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment(f"Configuration for {section}"))
    doc.add(tomlkit.nl())

    table = tomlkit.table()
    for field_name, field in schema.items():
        if field.description:
            table.add(tomlkit.comment(field.description))
        if field.choices is not None:
            table.add(tomlkit.comment(f"Choices: {field.choices}"))

        table.add(field_name, config_data.get(field_name, field.default))
        table.add(tomlkit.nl())

    doc.add(section, table)

    return tomlkit.dumps(doc)
