"""
SFTP protocol implementation for ftpmirror.

Handles SFTP connection, listing, directory creation and uploads.
"""

import logging
import os
import posixpath
import stat
from typing import List, Optional, Set

import paramiko

from ftpmirror.config import ConnectionConfig
from ftpmirror.errors import (
    DirectoryCreateError,
    ListError,
    RemoteConnectionError,
    UploadError,
)
from ftpmirror.protocols.base import (
    DirectoryEntry,
    EntryType,
    ProgressCallback,
    ProgressEvent,
    RemoteSession,
)
from ftpmirror.utils import remote_segments

logger = logging.getLogger(__name__)


def _entry_type(st_mode: Optional[int]) -> EntryType:
    if st_mode is None:
        return EntryType.OTHER
    if stat.S_ISDIR(st_mode):
        return EntryType.DIRECTORY
    if stat.S_ISREG(st_mode):
        return EntryType.FILE
    return EntryType.OTHER


class SftpSession(RemoteSession):
    """Authenticated SFTP session over an SSH transport."""

    protocol = "sftp"

    def __init__(
        self,
        ssh: paramiko.SSHClient,
        sftp: paramiko.SFTPClient,
        host: str,
        home: str,
    ) -> None:
        super().__init__(host)
        self.ssh = ssh
        self.sftp = sftp
        self.home = home
        self.created_dirs: Set[str] = set()

    def _absolute(self, remote_path: str) -> str:
        if remote_path.startswith("/"):
            return posixpath.normpath(remote_path)
        return posixpath.normpath(posixpath.join(self.home, remote_path))

    def list_entries(self, path: Optional[str] = None) -> List[DirectoryEntry]:
        """
        List a remote directory (default: the login directory).

        Raises:
            ListError: If the listing fails.
            RemoteConnectionError: If the connection timed out.
        """
        target = self._absolute(path) if path else self.home
        logger.info("Fetching directory listing...")
        try:
            attrs = self.sftp.listdir_attr(target)
        except TimeoutError as e:
            logger.error(f"Timed out fetching directory listing: {e}")
            raise RemoteConnectionError(str(e), path=target) from e
        except (OSError, paramiko.SSHException) as e:
            logger.error(f"Error fetching directory listing: {e}")
            raise ListError(str(e), path=target) from e

        entries = [
            DirectoryEntry(
                name=attr.filename,
                type=_entry_type(attr.st_mode),
                size=attr.st_size or 0,
            )
            for attr in attrs
            if attr.filename not in (".", "..")
        ]
        logger.info("Directory listing fetched successfully.")
        return entries

    def ensure_directory(self, remote_dir: str) -> None:
        """
        Create remote_dir and any missing parents.

        Raises:
            DirectoryCreateError: If a segment can't be created or exists as a
                non-directory.
            RemoteConnectionError: If the connection timed out.
        """
        absolute = self._absolute(remote_dir)
        if absolute == "/" or absolute in self.created_dirs:
            return

        current = "/"
        try:
            for current in remote_segments(absolute):
                if current in self.created_dirs:
                    continue
                try:
                    attrs = self.sftp.stat(current)
                except FileNotFoundError:
                    self.sftp.mkdir(current)
                    logger.info(f"Created remote directory {current}")
                else:
                    if attrs.st_mode is not None and not stat.S_ISDIR(attrs.st_mode):
                        logger.error(
                            f"Error creating remote directory {current}: "
                            "a file with that name exists"
                        )
                        raise DirectoryCreateError(
                            "a file with that name exists", path=current
                        )
                self.created_dirs.add(current)
        except TimeoutError as e:
            logger.error(f"Timed out creating remote directory {current}: {e}")
            raise RemoteConnectionError(str(e), path=current) from e
        except (OSError, ValueError, paramiko.SSHException) as e:
            logger.error(f"Error creating remote directory {current}: {e}")
            raise DirectoryCreateError(str(e), path=current) from e

    def upload_file(
        self,
        local_path: str,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Upload a local file, reporting progress per transmitted chunk.

        Raises:
            UploadError: If the local file can't be read or the transfer fails.
            RemoteConnectionError: If the connection timed out.
        """
        target = self._absolute(remote_path)
        logger.info(f"Uploading file from {local_path} to {target}")

        def track(transferred: int, total: int) -> None:
            if on_progress is not None:
                on_progress(ProgressEvent(transferred, total))

        try:
            total = os.path.getsize(local_path)
            with open(local_path, "rb") as f:
                self.sftp.putfo(f, target, file_size=total, callback=track)
        except TimeoutError as e:
            logger.error(f"Timed out uploading {local_path}: {e}")
            raise RemoteConnectionError(str(e), path=target) from e
        except (OSError, EOFError, ValueError, paramiko.SSHException) as e:
            # ValueError: paramiko can't encode an undecodable local name
            logger.error(f"Error uploading file {local_path}: {e}")
            raise UploadError(str(e), path=target) from e

        if total == 0 and on_progress is not None:
            on_progress(ProgressEvent(0, 0))
        logger.info("File upload successfully")

    def close(self) -> None:
        """Close the SFTP channel and the SSH transport; safe to repeat."""
        if self.closed:
            return
        self.closed = True
        self.sftp.close()
        self.ssh.close()
        logger.info("SFTP connection closed.")


def connect_sftp(config: ConnectionConfig) -> SftpSession:
    """
    Open an SFTP session with password authentication.

    Unknown host keys are accepted.

    Raises:
        RemoteConnectionError: On network, SSH negotiation or auth failure.
    """
    address = f"{config.host}:{config.port}"
    logger.info(f"Connecting to SFTP server at {address}...")

    ssh = paramiko.SSHClient()
    ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    try:
        ssh.connect(
            config.host,
            port=config.port,
            username=config.user,
            password=config.password,
            timeout=config.timeout,
            banner_timeout=config.timeout,
            auth_timeout=config.timeout,
            look_for_keys=False,
            allow_agent=False,
        )
        sftp = ssh.open_sftp()
        channel = sftp.get_channel()
        if channel is not None:
            channel.settimeout(config.timeout)
        home = sftp.normalize(".")
    except (OSError, paramiko.SSHException) as e:
        logger.error(f">> Error connecting to SFTP server: {e}")
        ssh.close()
        raise RemoteConnectionError(str(e), path=address) from e

    logger.info("Connected to SFTP server successfully.")
    return SftpSession(ssh, sftp, config.host, home)
