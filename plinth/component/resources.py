"""
Component Resource Materializer.

This module releases a component's bundled ``webapp/`` subtree into the
host's served-content root, and retracts it again on removal.

Key features:
- Archive origins: entry-by-entry extraction with an overlay policy
- Directory origins: recursive copy, refused onto an existing root without overlay
- File suffix exclusion
- Every target is containment-checked before the first write
- Best-effort: one failing file does not stop the others
"""

import logging
import shutil
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from plinth.component.origin import ARCHIVE_ERRORS, Origin
from plinth.component.paths import check_relative, contained_path
from plinth.errors import ResourceIOError

logger = logging.getLogger(__name__)

WEBAPP_SUBTREE = "webapp/"


def _is_excluded(name: str, excluded: tuple[str, ...]) -> bool:
    if not excluded:
        return False
    suffix = PurePosixPath(name.rstrip("/")).suffix
    return bool(suffix) and suffix in excluded


def _raise_failures(action: str, origin: Origin, failures: list[str]) -> None:
    if failures:
        raise ResourceIOError(
            f"Failed to {action} {len(failures)} file(s) for {origin}: "
            + "; ".join(failures)
        )


def _archive_plan(
    archive: zipfile.ZipFile,
    prefix: str,
    dest_root: Path,
    excluded: tuple[str, ...],
    files_only: bool,
) -> list[tuple[zipfile.ZipInfo, Path]]:
    plan = []
    for info in archive.infolist():
        name = info.filename
        if not name.startswith(prefix) or _is_excluded(name, excluded):
            continue
        relative = name[len(prefix):]
        if not relative.strip("/"):
            continue
        if files_only and info.is_dir():
            continue
        plan.append((info, contained_path(dest_root, relative)))
    return plan


def _extract_archive(
    origin: Origin,
    prefix: str,
    dest_root: Path,
    overlay: bool,
    excluded: tuple[str, ...],
) -> list[Path]:
    written: list[Path] = []
    failures: list[str] = []

    try:
        with zipfile.ZipFile(origin.path) as archive:
            plan = _archive_plan(archive, prefix, dest_root, excluded, files_only=False)
            if not plan:
                logger.info("Nothing to release from %s", origin)
                return written

            logger.info("Releasing resources from %s to %s", origin, dest_root)
            for info, target in plan:
                try:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    if target.exists() and not overlay:
                        logger.debug("Keeping existing %s", target)
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    written.append(target)
                except (OSError, RuntimeError, NotImplementedError) as e:
                    logger.error("Failed to release %s: %s", info.filename, e)
                    failures.append(f"{info.filename}: {e}")
    except ARCHIVE_ERRORS as e:
        raise ResourceIOError(f"Failed to read archive {origin.path}: {e}") from e

    _raise_failures("release", origin, failures)
    return written


def _copy_directory(
    origin: Origin,
    prefix: str,
    dest_root: Path,
    overlay: bool,
    excluded: tuple[str, ...],
) -> list[Path]:
    source = contained_path(origin.path, prefix) if prefix else origin.path
    if not source.is_dir():
        logger.info("Nothing to release from %s", origin)
        return []

    if dest_root.exists() and not overlay:
        raise ResourceIOError(f"Destination {dest_root} already exists")

    plan = []
    for path in sorted(source.rglob("*")):
        relative = path.relative_to(source).as_posix()
        if path.is_file() and _is_excluded(relative, excluded):
            continue
        plan.append((path, contained_path(dest_root, relative)))

    logger.info("Copying resources from %s to %s", source, dest_root)
    written: list[Path] = []
    failures: list[str] = []
    dest_root.mkdir(parents=True, exist_ok=True)
    for path, target in plan:
        try:
            if path.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if target.exists() and not overlay:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
            written.append(target)
        except OSError as e:
            logger.error("Failed to copy %s: %s", path, e)
            failures.append(f"{path}: {e}")

    _raise_failures("copy", origin, failures)
    return written


def deploy_resources(
    origin: Origin,
    dest_root: Path,
    *,
    subtree: str = WEBAPP_SUBTREE,
    overlay: bool = True,
    excluded_extensions: Iterable[str] = (),
) -> list[Path]:
    """
    Release an origin's resource subtree into ``dest_root``.

    Args:
        origin: Archive or directory holding the subtree
        dest_root: Destination root directory
        subtree: Relative subtree prefix inside the origin
        overlay: Overwrite existing files (directory origins: allow an
            existing ``dest_root``)
        excluded_extensions: File suffixes to skip, e.g. ``(".py",)``

    Returns:
        Files written

    Raises:
        PathContainmentError: If the subtree or any entry escapes its root;
            raised before anything is written
        ResourceIOError: If reading or copying fails
    """
    prefix = check_relative(subtree)
    dest_root = Path(dest_root)
    excluded = tuple(excluded_extensions)

    if origin.is_archive:
        return _extract_archive(origin, prefix, dest_root, overlay, excluded)
    return _copy_directory(origin, prefix, dest_root, overlay, excluded)


def remove_resources(
    origin: Origin,
    dest_root: Path,
    *,
    subtree: str = WEBAPP_SUBTREE,
    excluded_extensions: Iterable[str] = (),
) -> list[Path]:
    """
    Delete the files an archive origin released into ``dest_root``.

    Directories are left in place. Directory origins are never retracted.

    Args:
        origin: Origin the resources were released from
        dest_root: Destination root directory
        subtree: Relative subtree prefix inside the origin
        excluded_extensions: Suffixes that were skipped on release

    Returns:
        Files deleted

    Raises:
        PathContainmentError: If the subtree or any entry escapes its root
        ResourceIOError: If the archive cannot be read or a delete fails
    """
    prefix = check_relative(subtree)
    dest_root = Path(dest_root)

    if not origin.is_archive:
        logger.info("Resources released from directory %s are not retracted", origin)
        return []

    removed: list[Path] = []
    failures: list[str] = []
    try:
        with zipfile.ZipFile(origin.path) as archive:
            plan = _archive_plan(
                archive, prefix, dest_root, tuple(excluded_extensions), files_only=True
            )
    except ARCHIVE_ERRORS as e:
        raise ResourceIOError(f"Failed to read archive {origin.path}: {e}") from e

    for _, target in plan:
        try:
            if target.is_file():
                target.unlink()
                removed.append(target)
        except OSError as e:
            logger.error("Failed to delete %s: %s", target, e)
            failures.append(f"{target}: {e}")

    _raise_failures("delete", origin, failures)
    return removed
