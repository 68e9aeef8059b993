"""
Protocols subpackage for ftpmirror.

Re-exports the FTP and SFTP sessions and picks one from the configuration.
"""

import logging

from ftpmirror.config import ConnectionConfig
from ftpmirror.errors import RemoteConnectionError
from ftpmirror.protocols.base import (
    DirectoryEntry,
    EntryType,
    ProgressCallback,
    ProgressEvent,
    RemoteSession,
)
from ftpmirror.protocols.ftp import FtpSession, connect_ftp
from ftpmirror.protocols.sftp import SftpSession, connect_sftp

logger = logging.getLogger(__name__)


def connect(config: ConnectionConfig) -> RemoteSession:
    """
    Open a session for config.protocol.

    Raises:
        RemoteConnectionError: If the port is missing or out of range, the
            protocol is unknown, or the connection fails.
    """
    address = f"{config.host}:{config.port}"
    if config.port is None or not 1 <= config.port <= 65535:
        logger.error(f">> Invalid port for {config.host}: {config.port!r}")
        raise RemoteConnectionError(f"invalid port {config.port!r}", path=address)

    if config.protocol == "ftp":
        return connect_ftp(config)
    if config.protocol == "sftp":
        return connect_sftp(config)

    logger.error(f">> Unsupported protocol '{config.protocol}'. Use 'ftp' or 'sftp'.")
    raise RemoteConnectionError(
        f"unsupported protocol '{config.protocol}'", path=address
    )


__all__ = [
    "connect",
    "connect_ftp",
    "connect_sftp",
    "DirectoryEntry",
    "EntryType",
    "FtpSession",
    "ProgressCallback",
    "ProgressEvent",
    "RemoteSession",
    "SftpSession",
]
