"""Extension allow-list and regular-file checks for settled paths."""

from pathlib import Path
from typing import Iterable, List, Optional


def normalize_extensions(extensions: Optional[Iterable[str]]) -> Optional[List[str]]:
    """
    Lower-case an extension allow-list and strip leading dots.

    Args:
        extensions: Raw extensions such as ``["XLS", ".csv"]``

    Returns:
        Normalized list, or None when the input is missing or empty
        (which disables extension filtering)
    """
    if extensions is None:
        return None
    normalized: List[str] = []
    for ext in extensions:
        ext = ext.strip().lstrip(".").lower()
        if ext and ext not in normalized:
            normalized.append(ext)
    return normalized or None


def skip_reason(path: Path, allow_list: Optional[Iterable[str]] = None) -> Optional[str]:
    """
    Explain why a path does not qualify for upload.

    The regular-file check follows symlinks, so a link to a file
    qualifies and a link to a directory does not. It runs against the
    filesystem as it is now, which makes a file deleted after its
    events settled a skip rather than an error.

    Args:
        path: Candidate path
        allow_list: Normalized extensions, or None to accept any extension

    Returns:
        None if the path qualifies, otherwise a short reason
    """
    try:
        is_file = path.is_file()
    except OSError:
        is_file = False
    if not is_file:
        return "not a regular file"

    if not allow_list:
        return None

    suffix = path.suffix
    if not suffix or suffix == ".":
        return "no extension"

    ext = suffix[1:].lower()
    if ext not in allow_list:
        return f"extension '{ext}' not allowed"

    return None


def qualifies(path: Path, allow_list: Optional[Iterable[str]] = None) -> bool:
    """Return True if the path is a regular file with an allowed extension."""
    return skip_reason(path, allow_list) is None
