"""
Persistent Settings Store.

This module provides the durable key/value store shared by the platform and
its components.

Key features:
- Ordered flat mapping of string keys to string values
- Auto-save to a TOML file on every mutating call
- batch() to defer saving across many changes
- First-wins and overwrite merge helpers
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from plinth.config.toml_handler import flatten_toml, read_toml, write_toml
from plinth.errors import ConfigLoadError

logger = logging.getLogger(__name__)

_HEADER = "Managed by plinth; rewritten on every change."


class SettingsStore(Mapping):
    """
    Durable key/value store backed by a flat TOML file.

    Reads behave like a read-only mapping; writes go through ``set``,
    ``update``, ``add_missing`` and ``remove`` so that every change is
    flushed to disk (unless inside ``batch()`` or ``auto_save`` is off).

    Example:
        store = SettingsStore.open(Path("config/settings.toml"))
        store.set("plinth.component.blog.state", "active")  # saved
    """

    def __init__(self, path: Path, auto_save: bool = True):
        """
        Initialize an empty store bound to ``path``.

        Args:
            path: TOML file the store saves to
            auto_save: Save after every mutating call
        """
        self.path = Path(path)
        self.auto_save = auto_save
        self._data: dict[str, str] = {}
        self._batch_depth = 0
        self._dirty = False

    @classmethod
    def open(cls, path: Path, auto_save: bool = True) -> "SettingsStore":
        """
        Create a store and load it from ``path``.

        Raises:
            ConfigLoadError: If the file is missing or corrupt
        """
        store = cls(path, auto_save=auto_save)
        store.load()
        return store

    def load(self) -> None:
        """
        Replace the in-memory contents with the file's contents.

        Raises:
            ConfigLoadError: If the file is missing or corrupt
        """
        self._data = flatten_toml(read_toml(self.path))
        self._dirty = False
        logger.debug("Loaded %d settings from %s", len(self._data), self.path)

    def save(self) -> None:
        """
        Write the current contents to disk.

        Raises:
            ConfigLoadError: If the file cannot be written
        """
        write_toml(self.path, self._data, header=_HEADER)
        self._dirty = False

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SettingsStore({str(self.path)!r}, {len(self._data)} keys)"

    def set(self, key: str, value: str) -> None:
        """Set one key, overwriting any existing value."""
        self._data[key] = str(value)
        self._changed()

    def update(self, values: Mapping[str, str]) -> list[str]:
        """
        Overwrite every key in ``values``.

        Returns:
            Keys written
        """
        for key, value in values.items():
            self._data[key] = str(value)
        self._changed()
        return list(values)

    def add_missing(self, values: Mapping[str, str]) -> list[str]:
        """
        Add only the keys not already present (first value wins).

        Returns:
            Keys added
        """
        added = [key for key in values if key not in self._data]
        for key in added:
            self._data[key] = str(values[key])
        self._changed()
        return added

    def remove(self, key: str) -> bool:
        """
        Remove one key.

        Returns:
            True if the key was present
        """
        if key not in self._data:
            return False
        del self._data[key]
        self._changed()
        return True

    def remove_many(self, keys: Iterable[str]) -> list[str]:
        """
        Remove several keys with a single save.

        Returns:
            Keys that were present and removed
        """
        removed = []
        with self.batch():
            for key in keys:
                if key in self._data:
                    del self._data[key]
                    removed.append(key)
                    self._dirty = True
        return removed

    @contextmanager
    def batch(self):
        """Defer auto-save until the outermost batch block exits."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty and self.auto_save:
                self.save()

    def _changed(self) -> None:
        self._dirty = True
        if self.auto_save and self._batch_depth == 0:
            self.save()


def open_or_empty(path: Path, label: str) -> SettingsStore:
    """
    Open the store at ``path``, or fall back to an empty one.

    A missing or corrupt file is logged, never raised; the empty store stays
    bound to ``path`` so later writes recreate it.

    Args:
        path: TOML file to load
        label: Name used in log messages ("settings", "log status")
    """
    if not Path(path).exists():
        logger.info("No %s store at %s yet, starting empty", label, path)
        return SettingsStore(path)
    try:
        return SettingsStore.open(path)
    except ConfigLoadError as e:
        logger.error("Could not load %s store, starting empty: %s", label, e)
        return SettingsStore(path)
