"""
Dependency directory discovery for devsweep.

Walks a home tree looking for regenerable dependency directories such as
``node_modules`` and measures how much space each one holds.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class PathMatch:
    """A directory found by a scan, with its apparent size in bytes."""

    path: Path
    size_bytes: int


def format_size(size_bytes: int) -> str:
    """Format a byte count into a human-readable string."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def dir_size(path: PathLike) -> int:
    """Total size of the regular files under ``path``.

    Symlinks are not followed and unreadable entries are ignored, so the
    result is a lower bound when permissions are missing.
    """
    path = Path(path)
    try:
        if path.is_symlink() or path.is_file():
            return path.lstat().st_size
    except OSError:
        return 0

    total = 0
    for root, _, files in os.walk(path):
        for name in files:
            try:
                st = os.lstat(os.path.join(root, name))
            except OSError:
                continue
            total += st.st_size
    return total


def find_dependency_dirs(root: PathLike, names: Iterable[str]) -> List[PathMatch]:
    """Find every directory under ``root`` whose name is in ``names``.

    The walk prunes at each match, so a ``node_modules`` nested inside another
    one is covered by its parent and never listed on its own.

    Args:
        root: Directory to search, usually the user's home.
        names: Directory names that mark a dependency directory.

    Returns:
        Matches sorted by path.
    """
    wanted = set(names)
    root = Path(root)
    matches: List[PathMatch] = []

    if not root.is_dir():
        logger.debug(f"Scan root {root} does not exist")
        return matches

    def _on_error(err: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {err}")

    for current, dirs, _ in os.walk(root, onerror=_on_error):
        keep = []
        for d in dirs:
            full = Path(current) / d
            if d in wanted and not full.is_symlink():
                matches.append(PathMatch(path=full, size_bytes=dir_size(full)))
            else:
                keep.append(d)
        # Prune matches in-place so os.walk does not descend into them
        dirs[:] = keep

    matches.sort(key=lambda m: str(m.path))
    logger.debug(f"Found {len(matches)} dependency directories under {root}")
    return matches
