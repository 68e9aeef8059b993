"""
Sequential upload of transfer tasks with progress logging.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from ftpmirror.config import DEFAULT_PROGRESS_STEP
from ftpmirror.errors import UploadError
from ftpmirror.excludes import TransferTask
from ftpmirror.protocols.base import ProgressEvent, RemoteSession
from ftpmirror.utils import format_size, progress_percent, remote_parent

logger = logging.getLogger(__name__)

__all__ = ["ProgressLogger", "UploadSummary", "progress_percent", "upload_tasks"]


@dataclass(frozen=True)
class UploadSummary:
    files: int = 0
    bytes: int = 0


class ProgressLogger:
    """
    Progress callback that logs every ``step`` percent of a single file.

    Block level events arrive far more often than is useful in a log, so
    only boundary crossings and completion are written.
    """

    def __init__(self, name: str, step: int = DEFAULT_PROGRESS_STEP) -> None:
        self.name = name
        self.step = max(1, min(100, step))
        self.next_mark = 0.0
        self.done = False

    def __call__(self, event: ProgressEvent) -> None:
        if self.done:
            return
        percent = progress_percent(event.bytes_transferred, event.total_bytes)
        complete = event.total_bytes <= 0 or event.bytes_transferred >= event.total_bytes
        if percent < self.next_mark and not complete:
            return

        logger.info(
            f"File: {self.name} Transferred: {event.bytes_transferred} bytes "
            f"Progress: {percent:.2f}%"
        )
        if complete:
            self.done = True
        else:
            self.next_mark = (int(percent // self.step) + 1) * self.step


def upload_tasks(
    session: RemoteSession,
    tasks: Iterable[TransferTask],
    progress_step: int = DEFAULT_PROGRESS_STEP,
) -> UploadSummary:
    """
    Upload each task in order, one at a time.

    The first failure is re-raised and no further task is pulled from
    tasks, so files uploaded before it stay on the server and later ones
    are never touched.

    Args:
        session: Open remote session.
        tasks: Transfer tasks, typically the lazy output of walk().
        progress_step: Percent granularity of progress log lines.

    Returns:
        Number of files and bytes uploaded.

    Raises:
        MirrorError: The first error hit by any task.
    """
    files = 0
    total_bytes = 0

    for task in tasks:
        local_path = str(task.local_path)
        try:
            size = os.path.getsize(local_path)
        except OSError as e:
            logger.error(f"Error reading local file {local_path}: {e}")
            raise UploadError(str(e), path=local_path) from e

        logger.info(f"File: {task.local_path.name} Size: {format_size(size)}")
        session.ensure_directory(remote_parent(task.remote_path) or ".")
        session.upload_file(
            local_path,
            task.remote_path,
            ProgressLogger(task.local_path.name, progress_step),
        )

        files += 1
        total_bytes += size

    logger.info(f"Uploaded {files} files ({format_size(total_bytes)})")
    return UploadSummary(files=files, bytes=total_bytes)
