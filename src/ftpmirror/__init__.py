"""
ftpmirror - Mirror a local directory tree to a remote FTP/FTPS/SFTP server

License: MIT License
"""

__version__ = "1.0.0"

# Public API exports
from ftpmirror.config import (
    ConnectionConfig,
    MirrorOptions,
    SymlinkPolicy,
    load_connection_config,
    load_mirror_options,
)
from ftpmirror.errors import (
    DirectoryCreateError,
    ListError,
    MirrorError,
    RemoteConnectionError,
    UploadError,
)
from ftpmirror.excludes import TransferTask, is_ignored, walk
from ftpmirror.protocols import connect
from ftpmirror.session import MirrorRun, RunResult, SessionState, run_mirror
from ftpmirror.uploader import upload_tasks

__all__ = [
    "__version__",
    "ConnectionConfig",
    "MirrorOptions",
    "SymlinkPolicy",
    "load_connection_config",
    "load_mirror_options",
    "DirectoryCreateError",
    "ListError",
    "MirrorError",
    "RemoteConnectionError",
    "UploadError",
    "TransferTask",
    "is_ignored",
    "walk",
    "connect",
    "MirrorRun",
    "RunResult",
    "SessionState",
    "run_mirror",
    "upload_tasks",
]
