"""
Path containment helpers.

Joins that must stay inside a root directory go through contained_path().
"""

import posixpath
from pathlib import Path, PurePosixPath

from plinth.errors import PathContainmentError


def join_parts(*parts: str) -> str:
    """Join path fragments with "/" and collapse repeated separators."""
    joined = "/".join(str(p) for p in parts if p is not None)
    while "//" in joined:
        joined = joined.replace("//", "/")
    return joined.strip("/")


def contained_path(root: Path, *parts: str) -> Path:
    """
    Join ``parts`` below ``root``, refusing anything that lands outside it.

    Args:
        root: Root directory (need not exist)
        parts: Relative path fragments, "/"-separated

    Returns:
        The joined path (not resolved)

    Raises:
        PathContainmentError: If the join is absolute or escapes ``root``
    """
    relative = join_parts(*parts)
    if PurePosixPath(relative).is_absolute() or Path(relative).is_absolute():
        raise PathContainmentError(f"Absolute path not allowed below {root}: {relative}")

    candidate = Path(root) / relative
    root_resolved = Path(root).resolve()
    resolved = candidate.resolve()
    if resolved != root_resolved and root_resolved not in resolved.parents:
        raise PathContainmentError(
            f"Path {relative!r} resolves outside of {root}"
        )
    return candidate


def check_relative(subtree: str) -> str:
    """
    Validate an archive-style relative prefix such as ``webapp/``.

    Returns:
        The normalized prefix, always ending with "/"

    Raises:
        PathContainmentError: If the prefix is absolute or climbs upward
    """
    cleaned = subtree.replace("\\", "/")
    if cleaned.startswith("/"):
        raise PathContainmentError(f"Subtree must be relative: {subtree!r}")
    normalized = posixpath.normpath(cleaned) if cleaned.strip("/") else ""
    if normalized in ("", "."):
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise PathContainmentError(f"Subtree escapes its root: {subtree!r}")
    if any(part == ".." for part in cleaned.split("/")):
        raise PathContainmentError(f"Subtree contains upward traversal: {subtree!r}")
    return normalized + "/"
