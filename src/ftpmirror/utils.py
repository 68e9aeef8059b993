"""
Utility functions for ftpmirror.

Contains helper functions for path calculations, sizes and display.
"""

import os
import posixpath
from pathlib import Path
from typing import List


def calculate_remote_path(
    local_path: Path, local_root: Path, remote_root: str
) -> str:
    """
    Calculate remote path from local path and root paths.

    Args:
        local_path: Local file path.
        local_root: Local root directory.
        remote_root: Remote root directory.

    Returns:
        Remote path string.

    Raises:
        ValueError: If local_path is not within local_root.
    """
    relative_path = local_path.absolute().relative_to(local_root.absolute())

    # Ensure remote_root doesn't end with slash unless it's root
    remote_base = remote_root.rstrip("/")
    rel_path_str = str(relative_path).replace(os.sep, "/")
    if not remote_root.startswith("/") and not remote_base:
        return rel_path_str
    return f"{remote_base}/{rel_path_str}"


def remote_parent(remote_path: str) -> str:
    """Return the parent directory of a remote path ("" for a bare name)."""
    return posixpath.dirname(remote_path.rstrip("/"))


def remote_segments(remote_dir: str) -> List[str]:
    """
    Return every directory prefix of remote_dir, shallowest first.

    ``/a/b/c`` gives ``["/a", "/a/b", "/a/b/c"]``; relative paths keep
    their relative form.
    """
    absolute = remote_dir.startswith("/")
    prefixes: List[str] = []
    current = ""
    for part in remote_dir.split("/"):
        if not part or part == ".":
            continue
        if current or absolute:
            current = f"{current}/{part}"
        else:
            current = part
        prefixes.append(current)
    return prefixes


def progress_percent(bytes_transferred: int, total_bytes: int) -> float:
    """
    Percentage of total_bytes already transferred, clamped to [0, 100].

    An empty file reports 0.
    """
    if total_bytes <= 0:
        return 0.0
    percent = bytes_transferred * 100.0 / total_bytes
    return max(0.0, min(100.0, percent))


def format_size(num_bytes: int) -> str:
    """Human readable size (``10.00 MB``)."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024
        if size < 1024:
            break
    return f"{size:.2f} {unit}"


def format_elapsed(elapsed: float) -> str:
    """Format elapsed seconds as ``1d 2h 3m 4.00s``, dropping leading zeros."""
    days = int(elapsed // 86400)
    hours = int((elapsed % 86400) // 3600)
    minutes = int((elapsed % 3600) // 60)
    seconds = elapsed % 60

    time_parts = []
    if days > 0:
        time_parts.append(f"{days}d")
    if hours > 0 or days > 0:
        time_parts.append(f"{hours}h")
    if minutes > 0 or hours > 0 or days > 0:
        time_parts.append(f"{minutes}m")
    time_parts.append(f"{seconds:.2f}s")
    return " ".join(time_parts)
