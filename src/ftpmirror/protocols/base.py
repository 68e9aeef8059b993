"""
Types shared by the FTP and SFTP sessions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ftpmirror.utils import progress_percent


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class DirectoryEntry:
    """One item of a remote directory listing."""

    name: str
    type: EntryType
    size: int = 0


@dataclass(frozen=True)
class ProgressEvent:
    """Bytes sent so far for the file currently being uploaded."""

    bytes_transferred: int
    total_bytes: int

    @property
    def percent(self) -> float:
        return progress_percent(self.bytes_transferred, self.total_bytes)


ProgressCallback = Callable[[ProgressEvent], None]


class RemoteSession:
    """
    An opened, authenticated connection to the remote server.

    Subclasses implement the protocol specific operations. Sessions are not
    thread-safe; one run owns one session.
    """

    protocol = ""

    def __init__(self, host: str) -> None:
        self.host = host
        self.closed = False

    def list_entries(self, path: Optional[str] = None) -> List[DirectoryEntry]:
        raise NotImplementedError

    def ensure_directory(self, remote_dir: str) -> None:
        raise NotImplementedError

    def upload_file(
        self,
        local_path: str,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError
