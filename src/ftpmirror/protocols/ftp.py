"""
FTP protocol implementation for ftpmirror.

Handles FTP/FTPS connection, listing, directory creation and uploads.
"""

import ftplib
import logging
import os
import posixpath
import ssl
from typing import List, Optional, Set, Union

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

BLOCK_SIZE = 8192

# ftplib raises ValueError for paths it can't put on the control channel:
# undecodable local names (surrogate escapes) or embedded newlines
_TRANSFER_ERRORS = ftplib.all_errors + (ValueError,)


def _unverified_ssl_context() -> ssl.SSLContext:
    """TLS context that accepts any server certificate."""
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def _entry_type(facts_type: Optional[str]) -> EntryType:
    if facts_type == "file":
        return EntryType.FILE
    if facts_type == "dir":
        return EntryType.DIRECTORY
    return EntryType.OTHER


def _is_empty_listing_reply(reply: str) -> bool:
    text = reply.lower()
    return reply.startswith("550") and ("no files" in text or "empty" in text)


class FtpSession(RemoteSession):
    """Authenticated FTP or FTPS session."""

    protocol = "ftp"

    def __init__(
        self, ftp: Union[ftplib.FTP, ftplib.FTP_TLS], host: str, home: str
    ) -> None:
        super().__init__(host)
        self.ftp = ftp
        self.home = home
        # Cache of directories known to exist on the server
        self.created_dirs: Set[str] = set()

    def _absolute(self, remote_path: str) -> str:
        if remote_path.startswith("/"):
            return posixpath.normpath(remote_path)
        return posixpath.normpath(posixpath.join(self.home, remote_path))

    def _is_directory(self, remote_path: str) -> bool:
        try:
            self.ftp.cwd(remote_path)
        except ftplib.error_perm:
            return False
        self.ftp.cwd(self.home)
        return True

    def list_entries(self, path: Optional[str] = None) -> List[DirectoryEntry]:
        """
        List a remote directory (default: the current working directory).

        Uses MLSD when the server supports it, otherwise NLST with a CWD
        probe to tell directories from files.

        Raises:
            ListError: If the listing fails.
            RemoteConnectionError: If the connection timed out.
        """
        target = path or ""
        logger.info("Fetching directory listing...")
        try:
            try:
                entries = [
                    DirectoryEntry(
                        name=name,
                        type=_entry_type(facts.get("type")),
                        size=int(facts.get("size", 0) or 0),
                    )
                    for name, facts in self.ftp.mlsd(target, facts=["type", "size"])
                    if facts.get("type") not in ("cdir", "pdir")
                    and name not in (".", "..")
                ]
            except ftplib.error_perm:
                # MLSD not supported, fall back to NLST + checking each
                entries = self._list_with_nlst(target)
        except TimeoutError as e:
            logger.error(f"Timed out fetching directory listing: {e}")
            raise RemoteConnectionError(str(e), path=target or self.home) from e
        except ftplib.all_errors as e:
            logger.error(f"Error fetching directory listing: {e}")
            raise ListError(str(e), path=target or self.home) from e

        logger.info("Directory listing fetched successfully.")
        return entries

    def _list_with_nlst(self, target: str) -> List[DirectoryEntry]:
        base = self._absolute(target)
        try:
            names = self.ftp.nlst(target) if target else self.ftp.nlst()
        except ftplib.error_perm as e:
            # Some servers answer "550 No files found" for an empty directory;
            # any other 550 (denied, missing) is a real failure
            if _is_empty_listing_reply(str(e)) and self._is_directory(base):
                return []
            raise

        entries: List[DirectoryEntry] = []
        for listed in names:
            name = posixpath.basename(listed.rstrip("/"))
            if name in ("", ".", ".."):
                continue
            full_path = posixpath.join(base, name)
            if self._is_directory(full_path):
                entries.append(DirectoryEntry(name, EntryType.DIRECTORY, 0))
                continue
            try:
                self.ftp.voidcmd("TYPE I")
                size = self.ftp.size(full_path) or 0
            except ftplib.error_perm:
                entries.append(DirectoryEntry(name, EntryType.OTHER, 0))
                continue
            entries.append(DirectoryEntry(name, EntryType.FILE, size))
        return entries

    def ensure_directory(self, remote_dir: str) -> None:
        """
        Create remote_dir and any missing parents.

        Directories already seen are remembered, so repeated calls for the
        same path cost no round trips.

        Raises:
            DirectoryCreateError: If a segment can't be created.
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
                if not self._is_directory(current):
                    try:
                        self.ftp.mkd(current)
                    except ftplib.error_perm as e:
                        # Might have been created concurrently
                        if not self._is_directory(current):
                            logger.error(
                                f"Error creating remote directory {current}: {e}"
                            )
                            raise DirectoryCreateError(str(e), path=current) from e
                    else:
                        logger.info(f"Created remote directory {current}")
                self.created_dirs.add(current)
        except TimeoutError as e:
            logger.error(f"Timed out creating remote directory {current}: {e}")
            raise RemoteConnectionError(str(e), path=current) from e
        except _TRANSFER_ERRORS as e:
            logger.error(f"Error creating remote directory {current}: {e}")
            raise DirectoryCreateError(str(e), path=current) from e

    def upload_file(
        self,
        local_path: str,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Upload a local file in binary mode.

        on_progress is called once per transmitted block. A failed upload
        may leave a partial file on the server.

        Raises:
            UploadError: If the local file can't be read or the transfer fails.
            RemoteConnectionError: If the connection timed out.
        """
        target = self._absolute(remote_path)
        logger.info(f"Uploading file from {local_path} to {target}")

        try:
            total = os.path.getsize(local_path)
            sent = 0

            def track(block: bytes) -> None:
                nonlocal sent
                sent += len(block)
                if on_progress is not None:
                    on_progress(ProgressEvent(sent, total))

            with open(local_path, "rb") as f:
                self.ftp.storbinary(
                    f"STOR {target}", f, blocksize=BLOCK_SIZE, callback=track
                )
        except TimeoutError as e:
            logger.error(f"Timed out uploading {local_path}: {e}")
            raise RemoteConnectionError(str(e), path=target) from e
        except _TRANSFER_ERRORS as e:
            logger.error(f"Error uploading file {local_path}: {e}")
            raise UploadError(str(e), path=target) from e

        if total == 0 and on_progress is not None:
            on_progress(ProgressEvent(0, 0))
        logger.info("File upload successfully")

    def close(self) -> None:
        """Quit the session; safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        try:
            self.ftp.quit()
        except ftplib.all_errors:
            self.ftp.close()
        logger.info("FTP connection closed.")


def connect_ftp(config: ConnectionConfig) -> FtpSession:
    """
    Open and authenticate an FTP session, using FTPS when config.secure is set.

    Certificate validation is disabled for FTPS.

    Raises:
        RemoteConnectionError: On network, TLS or authentication failure.
    """
    address = f"{config.host}:{config.port}"
    logger.info(f"Connecting to FTP server at {address}...")

    ftp: Union[ftplib.FTP, ftplib.FTP_TLS]
    if config.secure:
        ftp = ftplib.FTP_TLS(context=_unverified_ssl_context())
    else:
        ftp = ftplib.FTP()

    try:
        ftp.connect(config.host, config.port, timeout=config.timeout)
        # FTP_TLS.login() negotiates AUTH TLS before sending credentials
        ftp.login(config.user, config.password)
        if config.secure:
            # Encrypt the data channel too
            ftp.prot_p()  # type: ignore[union-attr]
        ftp.set_pasv(True)
        home = ftp.pwd()
    except ftplib.all_errors as e:
        logger.error(f">> Error connecting to FTP server: {e}")
        ftp.close()
        raise RemoteConnectionError(str(e), path=address) from e

    logger.info("Connected to FTP server successfully.")
    return FtpSession(ftp, config.host, home)
