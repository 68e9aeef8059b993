"""
Ignore handling and local tree walking for ftpmirror.

Handles .ftpmirror_ignore files, folder name matching, and lazy directory
walking into transfer tasks.
"""

import fnmatch
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Iterator, List, Tuple

from ftpmirror.config import SymlinkPolicy
from ftpmirror.utils import calculate_remote_path

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".ftpmirror_ignore"

IgnorePredicate = Callable[[Path], bool]


@dataclass(frozen=True)
class TransferTask:
    """One local file and the remote path it is uploaded to."""

    local_path: Path
    remote_path: str


def load_ignore_file(path: Path) -> List[str]:
    """
    Load folder names from a .ftpmirror_ignore file.

    Args:
        path: Path to the ignore file.

    Returns:
        List of names (empty if file doesn't exist).
    """
    if not path.exists():
        return []
    with open(path, "r") as f:
        return [
            line.strip()
            for line in f
            if line.strip() and not line.lstrip().startswith("#")
        ]


def is_ignored(path: Path, ignore_names: Iterable[str], local_root: Path) -> bool:
    """
    Check if any component of path matches one of ignore_names.

    Only the part of the path below local_root is inspected, so a root that
    itself lives inside e.g. a ``build`` folder is still walked. Names are
    fnmatch patterns (``node_modules``, ``*.egg-info``).

    Args:
        path: Path to check.
        ignore_names: Folder names or patterns to ignore.
        local_root: Root directory of the walk.

    Returns:
        True if path should be skipped, False otherwise.
    """
    try:
        parts: Tuple[str, ...] = path.relative_to(local_root).parts
    except ValueError:
        parts = path.parts

    patterns = tuple(ignore_names)
    for part in parts:
        for pattern in patterns:
            if fnmatch.fnmatchcase(part, pattern):
                return True
    return False


def make_ignore_predicate(
    ignore_names: Iterable[str], local_root: Path
) -> IgnorePredicate:
    """Bind ignore_names and local_root into a single-argument predicate."""
    names = tuple(ignore_names)

    def predicate(path: Path) -> bool:
        return is_ignored(path, names, local_root)

    return predicate


def walk(
    local_root: Path,
    remote_root: str,
    ignore: IgnorePredicate,
    symlinks: SymlinkPolicy = SymlinkPolicy.SKIP,
) -> Iterator[TransferTask]:
    """
    Lazily walk local_root depth-first and yield a task per regular file.

    Directories are visited in pre-order with entries sorted by name.
    Ignored paths are skipped with their whole subtree. Symbolic links are
    skipped unless symlinks is FOLLOW; other special files are always
    skipped.

    Args:
        local_root: Directory to mirror.
        remote_root: Remote directory that mirrors local_root.
        ignore: Predicate deciding whether a path is skipped.
        symlinks: What to do with symbolic links.

    Yields:
        TransferTask for each regular file, in traversal order.
    """

    def visit(
        directory: Path, ancestors: FrozenSet[str]
    ) -> Iterator[TransferTask]:
        if ignore(directory) or not directory.is_dir():
            return

        # Real paths of the directories above this one, to stop symlink loops
        real = os.path.realpath(directory)
        if real in ancestors:
            logger.warning(f"Skipping {directory}: symbolic link loop")
            return
        ancestors = ancestors | {real}

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            return

        for entry in entries:
            if ignore(entry):
                continue

            if entry.is_symlink() and symlinks is SymlinkPolicy.SKIP:
                logger.debug(f"Skipping symbolic link {entry}")
                continue

            if entry.is_dir():
                yield from visit(entry, ancestors)
            elif entry.is_file():
                yield TransferTask(
                    local_path=entry,
                    remote_path=calculate_remote_path(entry, local_root, remote_root),
                )
            else:
                logger.debug(f"Skipping special file {entry}")

    yield from visit(local_root, frozenset())
