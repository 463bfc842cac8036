"""
Component Origins and Discovery.

This module provides the locations components are loaded from and the
providers that enumerate them.

Key features:
- Origin abstraction over archives (zip, jar, wheel) and plain directories
- Reading descriptor and config files from either kind
- Injectable origin providers: explicit paths, a plugins directory, sys.path
- Order-preserving de-duplication across providers
"""

import logging
import sys
import zipfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from plinth.component.paths import contained_path
from plinth.errors import PathContainmentError

logger = logging.getLogger(__name__)

# Fixed location of the descriptor file inside every origin
DESCRIPTOR_NAME = "META-INF/components-def.xml"

DEFAULT_ARCHIVE_PATTERNS = ("*.zip", "*.jar", "*.whl")

# zipfile raises RuntimeError for encrypted entries and NotImplementedError
# for unsupported compression methods
ARCHIVE_ERRORS = (OSError, zipfile.BadZipFile, RuntimeError, NotImplementedError)


class OriginKind(Enum):
    """Origin storage kind."""

    ARCHIVE = "archive"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Origin:
    """
    An archive or directory holding component descriptors and resources.

    Attributes:
        kind: Archive or directory
        path: Filesystem path of the archive file or directory root
    """

    kind: OriginKind
    path: Path

    @classmethod
    def detect(cls, path: Path) -> "Origin | None":
        """
        Classify ``path`` as an origin.

        Returns:
            Origin, or None if the path is neither a directory nor a zip file
        """
        path = Path(path)
        if path.is_dir():
            return cls(OriginKind.DIRECTORY, path)
        if path.is_file() and zipfile.is_zipfile(path):
            return cls(OriginKind.ARCHIVE, path)
        return None

    @property
    def is_archive(self) -> bool:
        return self.kind is OriginKind.ARCHIVE

    def read(self, name: str) -> bytes | None:
        """
        Read a file relative to the origin root.

        Args:
            name: "/"-separated relative name

        Returns:
            File bytes, or None if the origin has no such file

        Raises:
            OSError: If the origin itself cannot be read
            RuntimeError, NotImplementedError: If an archive entry is
                encrypted or uses an unsupported compression method
            PathContainmentError: If ``name`` escapes a directory origin
        """
        if self.is_archive:
            with zipfile.ZipFile(self.path) as archive:
                try:
                    return archive.read(name.lstrip("/"))
                except KeyError:
                    return None

        target = contained_path(self.path, name)
        if not target.is_file():
            return None
        return target.read_bytes()

    def has(self, name: str) -> bool:
        """Check whether the origin contains ``name`` as a file."""
        try:
            if self.is_archive:
                with zipfile.ZipFile(self.path) as archive:
                    try:
                        info = archive.getinfo(name.lstrip("/"))
                    except KeyError:
                        return False
                    return not info.is_dir()
            return contained_path(self.path, name).is_file()
        except ARCHIVE_ERRORS + (PathContainmentError,):
            return False

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.path}"


class OriginProvider(Protocol):
    """Anything that yields origins to scan for components."""

    def origins(self) -> Iterable[Origin]: ...


class PathOriginProvider:
    """
    Provider over an explicit list of archive or directory paths.

    Paths that are not origins, or that hold no descriptor file, are skipped.
    """

    def __init__(self, paths: Iterable[Path]):
        self.paths = [Path(p) for p in paths]

    def origins(self) -> Iterator[Origin]:
        for path in self.paths:
            origin = Origin.detect(path)
            if origin is None:
                logger.debug("Skipping %s: not an archive or directory", path)
                continue
            if origin.has(DESCRIPTOR_NAME):
                yield origin


class DirectoryOriginProvider:
    """
    Provider scanning one directory, plugins-folder style.

    Yields every archive matching ``patterns`` and every sub-directory that
    holds a descriptor file, in name order.
    """

    def __init__(
        self,
        directory: Path,
        patterns: Iterable[str] = DEFAULT_ARCHIVE_PATTERNS,
    ):
        self.directory = Path(directory)
        self.patterns = tuple(patterns)

    def origins(self) -> Iterator[Origin]:
        if not self.directory.is_dir():
            logger.warning("Component directory %s does not exist", self.directory)
            return

        for child in sorted(self.directory.iterdir()):
            if child.is_file() and not any(child.match(p) for p in self.patterns):
                continue
            origin = Origin.detect(child)
            if origin is not None and origin.has(DESCRIPTOR_NAME):
                yield origin


class SearchPathOriginProvider:
    """
    Provider over configured discovery paths.

    A path that is itself an origin with a descriptor is used directly; any
    other directory is scanned like a plugins folder.
    """

    def __init__(
        self,
        paths: Iterable[Path],
        patterns: Iterable[str] = DEFAULT_ARCHIVE_PATTERNS,
    ):
        self.paths = [Path(p) for p in paths]
        self.patterns = tuple(patterns)

    def origins(self) -> Iterator[Origin]:
        for path in self.paths:
            origin = Origin.detect(path)
            if origin is not None and origin.has(DESCRIPTOR_NAME):
                yield origin
            elif path.is_dir():
                yield from DirectoryOriginProvider(path, self.patterns).origins()
            else:
                logger.warning("Discovery path %s holds no components", path)


class SysPathOriginProvider:
    """Provider over the interpreter's ``sys.path`` at scan time."""

    def origins(self) -> Iterator[Origin]:
        paths = [Path(entry) if entry else Path.cwd() for entry in sys.path]
        yield from PathOriginProvider(paths).origins()


def discover(providers: Iterable[OriginProvider]) -> list[Origin]:
    """
    Collect origins from every provider, dropping duplicates.

    A provider that fails is logged and skipped.

    Returns:
        Origins in first-seen order
    """
    seen: set[Path] = set()
    found: list[Origin] = []

    for provider in providers:
        try:
            for origin in provider.origins():
                key = origin.path.resolve()
                if key in seen:
                    continue
                seen.add(key)
                found.append(origin)
        except OSError as e:
            logger.error("Origin provider %r failed: %s", provider, e)

    return found
