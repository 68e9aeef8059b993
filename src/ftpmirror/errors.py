"""
Error kinds raised by ftpmirror operations.

Each remote or local operation raises exactly one of these, chained to the
underlying library exception. Only the session controller absorbs them.
"""

from typing import Optional


class MirrorError(Exception):
    """Base class for every failure of a mirror run."""

    operation = "mirror"

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.operation} failed for '{self.path}': {self.message}"
        return f"{self.operation} failed: {self.message}"


class RemoteConnectionError(MirrorError):
    """Connect, login, TLS negotiation or inactivity timeout failure."""

    operation = "connect"


class ListError(MirrorError):
    """Remote directory listing failure."""

    operation = "list"


class DirectoryCreateError(MirrorError):
    """Remote directory could not be created."""

    operation = "mkdir"


class UploadError(MirrorError):
    """File transfer was interrupted or the local file could not be read."""

    operation = "upload"
