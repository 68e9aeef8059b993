"""
Run controller for ftpmirror.

Sequences connect -> list -> walk/upload -> close and is the only place
where a failure is absorbed instead of re-raised.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ftpmirror.config import ConnectionConfig, MirrorOptions
from ftpmirror.errors import MirrorError
from ftpmirror.excludes import make_ignore_predicate, walk
from ftpmirror.protocols import DirectoryEntry, RemoteSession, connect
from ftpmirror.uploader import UploadSummary, upload_tasks

logger = logging.getLogger(__name__)

Connector = Callable[[ConnectionConfig], RemoteSession]


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LISTING = "listing"
    UPLOADING = "uploading"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of a mirror run."""

    state: SessionState
    summary: UploadSummary = field(default_factory=UploadSummary)
    entries: List[DirectoryEntry] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.state is SessionState.CLOSED


class MirrorRun:
    """
    One connect/list/upload/close cycle.

    Args:
        config: Connection settings.
        options: What to mirror.
        connector: Session factory (default: protocols.connect).
        upload: If False, stop after listing.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        options: MirrorOptions,
        connector: Connector = connect,
        upload: bool = True,
    ) -> None:
        self.config = config
        self.options = options
        self.connector = connector
        self.upload = upload
        self.state = SessionState.IDLE
        self.history: List[SessionState] = [SessionState.IDLE]
        self.session: Optional[RemoteSession] = None

    def _enter(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)

    def run(self) -> RunResult:
        """
        Execute the run; never raises for transfer or filesystem errors.

        Returns:
            RunResult in state CLOSED on success or FAILED with the error.

        Any other exception (a bug, KeyboardInterrupt excepted) still closes
        the session and moves to FAILED before it propagates.
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"run() already called (state: {self.state.value})")

        entries: List[DirectoryEntry] = []
        summary = UploadSummary()

        try:
            self._enter(SessionState.CONNECTING)
            self.session = self.connector(self.config)
            self._enter(SessionState.CONNECTED)

            self._enter(SessionState.LISTING)
            entries = self.session.list_entries()
            logger.info(f"Directory List: {len(entries)} entries")
            for entry in entries:
                logger.info(f"  [{entry.type.value}] {entry.name} ({entry.size} bytes)")

            if self.upload:
                self._enter(SessionState.UPLOADING)
                ignore = make_ignore_predicate(
                    self.options.ignore_names, self.options.local_root
                )
                tasks = walk(
                    self.options.local_root,
                    self.options.remote_root,
                    ignore,
                    self.options.symlinks,
                )
                summary = upload_tasks(self.session, tasks, self.options.progress_step)

            self.session.close()
        except (MirrorError, OSError, EOFError) as e:
            return self._fail(e, entries, summary)
        except Exception as e:
            # Not a transfer failure: release the connection, then propagate
            self._fail(e, entries, summary)
            raise

        self._enter(SessionState.CLOSED)
        return RunResult(SessionState.CLOSED, summary, entries)

    def _fail(
        self,
        error: BaseException,
        entries: List[DirectoryEntry],
        summary: UploadSummary,
    ) -> RunResult:
        logger.error(f"Error in {self.config.protocol.upper()} operations: {error}")
        self._enter(SessionState.FAILED)
        if self.session is not None and not self.session.closed:
            try:
                self.session.close()
            except (MirrorError, OSError, EOFError) as close_error:
                logger.error(f"Error closing connection: {close_error}")
        return RunResult(SessionState.FAILED, summary, entries, error)


def run_mirror(
    config: ConnectionConfig,
    options: MirrorOptions,
    connector: Connector = connect,
    upload: bool = True,
) -> RunResult:
    """Build and execute a MirrorRun."""
    return MirrorRun(config, options, connector=connector, upload=upload).run()
