"""
Component Settings Merger.

This module merges a component's declared configuration into the shared
settings store, and takes it back out on removal.

Key features:
- External config file: every key overwrites the store
- Inline config items: first value wins, existing keys are kept
- Removal reloads the external file to know which keys to clear
"""

import logging

from plinth.component.descriptor import ComponentDescriptor
from plinth.component.origin import ARCHIVE_ERRORS
from plinth.component.paths import join_parts
from plinth.config.store import SettingsStore
from plinth.config.toml_handler import flatten_toml, parse_toml
from plinth.errors import ConfigLoadError, PathContainmentError

logger = logging.getLogger(__name__)


def read_component_config(descriptor: ComponentDescriptor) -> dict[str, str] | None:
    """
    Load a component's external config file from its origin.

    Args:
        descriptor: Component with ``config_file`` and ``origin`` set

    Returns:
        Flat key/value mapping, or None if the file does not exist

    Raises:
        ConfigLoadError: If the file cannot be read or parsed
    """
    if not descriptor.config_file or descriptor.origin is None:
        return None

    name = join_parts(descriptor.config_file)
    try:
        content = descriptor.origin.read(name)
    except ARCHIVE_ERRORS + (PathContainmentError,) as e:
        raise ConfigLoadError(
            f"Failed to read {name} from {descriptor.origin}: {e}"
        ) from e

    if content is None:
        return None
    return flatten_toml(parse_toml(content, f"{descriptor.origin}!/{name}"))


def merge_settings(descriptor: ComponentDescriptor, store: SettingsStore) -> list[str]:
    """
    Merge a component's configuration into the settings store.

    Args:
        descriptor: Component being deployed
        store: Shared settings store

    Returns:
        Keys written to the store
    """
    logger.info("Registering settings for component %s", descriptor.code)

    if descriptor.config_file:
        try:
            values = read_component_config(descriptor)
        except ConfigLoadError as e:
            logger.error("Config file of component %s is unusable: %s", descriptor.code, e)
            values = None

        if values is not None:
            logger.info("Read component config from %s", descriptor.config_file)
            return store.update(values)

        logger.warning(
            "Config file %s of component %s not found, using inline config",
            descriptor.config_file,
            descriptor.code,
        )

    if descriptor.inline_config:
        logger.info("Registering inline config of component %s", descriptor.code)
        return store.add_missing(descriptor.inline_config)

    return []


def remove_settings(descriptor: ComponentDescriptor, store: SettingsStore) -> list[str]:
    """
    Clear the keys a component's external config file contributed.

    Inline config keys are never removed.

    Args:
        descriptor: Component being removed
        store: Shared settings store

    Returns:
        Keys removed from the store

    Raises:
        ConfigLoadError: If the external file cannot be read again
    """
    if not descriptor.config_file or descriptor.origin is None:
        return []

    logger.info("Removing settings of component %s", descriptor.code)
    values = read_component_config(descriptor)
    if values is None:
        raise ConfigLoadError(
            f"Cannot find config file {descriptor.config_file} of component "
            f"{descriptor.code} to remove its settings"
        )

    return store.remove_many(values)
