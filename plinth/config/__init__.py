"""
Plinth Configuration System - TOML-based configuration management.

This module provides:
- The platform configuration schema and its typed loader
- The persistent settings store (see plinth.config.store)
- Log level application from the log-status store

Example usage:
    import plinth.config

    cfg = plinth.config.load_platform_config(Path("config/plinth.toml"))
    print(cfg.webroot)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field as dataclass_field
from pathlib import Path
from typing import Any

from plinth.config.schema import ConfigField, validate_config
from plinth.config.store import SettingsStore, open_or_empty
from plinth.config.toml_handler import generate_toml_from_schema, read_toml
from plinth.errors import ConfigLoadError

logger = logging.getLogger(__name__)

# Default platform config file path
DEFAULT_CONFIG_FILE = Path("config/plinth.toml")

SECTION = "plinth"


def field(
    type_: type,
    default: Any,
    description: str = "",
    choices: list[Any] | None = None,
    item_type: type | None = None,
) -> ConfigField:
    """
    Helper function to create a ConfigField.

    Example:
        field(bool, True, "Overwrite existing files")
    """
    return ConfigField(
        type_=type_,
        default=default,
        description=description,
        choices=choices,
        item_type=item_type,
    )


PLATFORM_SCHEMA: dict[str, ConfigField] = {
    "namespace": field(str, "plinth", "Prefix of component state keys"),
    "settings_file": field(str, "config/settings.toml", "Persistent settings store"),
    "log_status_file": field(
        str, "config/log-status.toml", "Logger levels applied at startup"
    ),
    "webroot": field(str, "webroot", "Directory component resources are released into"),
    "overlay": field(bool, True, "Overwrite existing files when releasing resources"),
    "excluded_extensions": field(
        list, [], "File suffixes never released, e.g. \".py\"", item_type=str
    ),
    "discovery_paths": field(
        list, [], "Archives or directories scanned for components", item_type=str
    ),
    "scan_sys_path": field(bool, False, "Also scan every sys.path entry"),
}


@dataclass
class PlatformConfig:
    """
    Resolved platform configuration.

    Attributes:
        namespace: Prefix of ``<namespace>.component.<code>.state`` keys
        settings_file: Persistent settings store path
        log_status_file: Log-status store path
        webroot: Destination root for released resources
        overlay: Overwrite existing files when releasing resources
        excluded_extensions: File suffixes never released
        discovery_paths: Archives or directories scanned for components
        scan_sys_path: Also scan every sys.path entry
    """

    namespace: str = "plinth"
    settings_file: Path = Path("config/settings.toml")
    log_status_file: Path = Path("config/log-status.toml")
    webroot: Path = Path("webroot")
    overlay: bool = True
    excluded_extensions: tuple[str, ...] = ()
    discovery_paths: list[Path] = dataclass_field(default_factory=list)
    scan_sys_path: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], base_dir: Path) -> "PlatformConfig":
        """
        Build a config from validated values, resolving relative paths.

        Args:
            values: Complete values (see ``validate_config``)
            base_dir: Directory relative paths are resolved against
        """

        def _path(raw: str) -> Path:
            path = Path(raw).expanduser()
            return path if path.is_absolute() else base_dir / path

        return cls(
            namespace=values["namespace"],
            settings_file=_path(values["settings_file"]),
            log_status_file=_path(values["log_status_file"]),
            webroot=_path(values["webroot"]),
            overlay=values["overlay"],
            excluded_extensions=tuple(values["excluded_extensions"]),
            discovery_paths=[_path(p) for p in values["discovery_paths"]],
            scan_sys_path=values["scan_sys_path"],
        )


def load_platform_config(config_file: Path | None = None) -> PlatformConfig:
    """
    Load the ``[plinth]`` table of a TOML config file.

    A missing file yields the defaults, resolved against the current
    directory.

    Args:
        config_file: Path to the config file (default: config/plinth.toml)

    Returns:
        PlatformConfig instance

    Raises:
        ConfigLoadError: If the file is corrupt or fails validation
    """
    config_file = Path(config_file or DEFAULT_CONFIG_FILE)

    if not config_file.exists():
        logger.info("No platform config at %s, using defaults", config_file)
        values = validate_config({}, PLATFORM_SCHEMA)
        return PlatformConfig.from_mapping(values, Path.cwd())

    data = read_toml(config_file)
    section = data.get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigLoadError(f"[{SECTION}] in {config_file} must be a table")

    values = validate_config(section, PLATFORM_SCHEMA)
    return PlatformConfig.from_mapping(values, config_file.parent.resolve())


def generate_default_config() -> str:
    """Render a commented default platform config file."""
    return generate_toml_from_schema(
        SECTION,
        PLATFORM_SCHEMA,
        {name: f.default for name, f in PLATFORM_SCHEMA.items()},
    )


def apply_log_levels(log_status: Mapping[str, str]) -> list[str]:
    """
    Apply ``"<logger name>" = "<LEVEL>"`` entries to the logging module.

    The key ``root`` addresses the root logger. Unknown level names are
    logged and skipped.

    Returns:
        Logger names whose level was set
    """
    applied = []
    for name, level_name in log_status.items():
        level = logging.getLevelName(str(level_name).strip().upper())
        if not isinstance(level, int):
            logger.warning("Ignoring unknown log level %r for %s", level_name, name)
            continue
        target = logging.getLogger() if name == "root" else logging.getLogger(name)
        target.setLevel(level)
        applied.append(name)
    return applied


__all__ = [
    "ConfigField",
    "DEFAULT_CONFIG_FILE",
    "PLATFORM_SCHEMA",
    "PlatformConfig",
    "SettingsStore",
    "apply_log_levels",
    "field",
    "generate_default_config",
    "load_platform_config",
    "open_or_empty",
]
