"""Resolve a file's location relative to the watch root."""

from pathlib import Path
from typing import Iterable, List

from .exceptions import ResolutionError

SEGMENT_DELIMITER = ","


def resolve_segments(path: Path, root: Path) -> List[str]:
    """
    List the directory names between the watch root and a file.

    Both paths are canonicalized first, so a symlink that points
    outside the root is detected.

    Args:
        path: File path reported by the event source
        root: Canonical watch root

    Returns:
        Directory segments in order, excluding the file name. Empty for
        a file directly under the root.

    Raises:
        ResolutionError: If the file cannot be canonicalized or lies
            outside the root
    """
    try:
        canonical = path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ResolutionError(f"Cannot canonicalize {path}: {e}", path, root) from e

    try:
        relative = canonical.relative_to(root)
    except ValueError as e:
        raise ResolutionError(f"{canonical} is outside watch root {root}", path, root) from e

    return list(relative.parent.parts)


def join_segments(segments: Iterable[str]) -> str:
    """Join routing segments into the wire form of the ``path`` part."""
    return SEGMENT_DELIMITER.join(segments)
