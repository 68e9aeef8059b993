"""
Shared pytest fixtures for ftpmirror tests.
"""

import logging
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Set, Type

import pytest

from ftpmirror.config import ConnectionConfig, MirrorOptions
from ftpmirror.errors import ListError, UploadError
from ftpmirror.protocols.base import (
    DirectoryEntry,
    EntryType,
    ProgressCallback,
    ProgressEvent,
    RemoteSession,
)


class FakeSession(RemoteSession):
    """In-memory remote server recording every call."""

    protocol = "fake"

    def __init__(
        self,
        fail_upload_on: Optional[str] = None,
        fail_list: bool = False,
        entries: Optional[List[DirectoryEntry]] = None,
    ) -> None:
        super().__init__("fake.example.com")
        self.fail_upload_on = fail_upload_on
        self.fail_list = fail_list
        self.entries = entries or []
        self.dirs: Set[str] = {"/"}
        self.files: Dict[str, bytes] = {}
        self.attempted: List[str] = []
        self.events: List[ProgressEvent] = []
        self.close_calls = 0

    def list_entries(self, path: Optional[str] = None) -> List[DirectoryEntry]:
        if self.fail_list:
            raise ListError("550 listing refused", path="/")
        return list(self.entries)

    def ensure_directory(self, remote_dir: str) -> None:
        current = ""
        for part in remote_dir.strip("/").split("/"):
            if part:
                current += "/" + part
                self.dirs.add(current)

    def upload_file(
        self,
        local_path: str,
        remote_path: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.attempted.append(remote_path)
        if remote_path == self.fail_upload_on:
            raise UploadError("connection reset", path=remote_path)
        data = Path(local_path).read_bytes()
        self.files[remote_path] = data
        event = ProgressEvent(len(data), len(data))
        self.events.append(event)
        if on_progress is not None:
            on_progress(event)

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo setup_logging() so caplog sees ftpmirror records."""
    yield
    logger = logging.getLogger("ftpmirror")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def connection_config() -> ConnectionConfig:
    """Sample connection settings."""
    return ConnectionConfig(
        host="ftp.example.com",
        user="testuser",
        password="testpass",
        port=21,
        secure=False,
    )


@pytest.fixture
def sample_tree(temp_dir: Path) -> Path:
    """
    Create a sample tree:

        a.txt, sub/b.txt, sub/deeper/c.bin, node_modules/pkg/index.js,
        .git/HEAD, empty.txt
    """
    (temp_dir / "sub" / "deeper").mkdir(parents=True)
    (temp_dir / "node_modules" / "pkg").mkdir(parents=True)
    (temp_dir / ".git").mkdir()

    (temp_dir / "a.txt").write_text("alpha")
    (temp_dir / "sub" / "b.txt").write_text("bravo")
    (temp_dir / "sub" / "deeper" / "c.bin").write_bytes(b"\x00\x01\x02")
    (temp_dir / "node_modules" / "pkg" / "index.js").write_text("module.exports = 1")
    (temp_dir / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (temp_dir / "empty.txt").write_bytes(b"")

    return temp_dir


@pytest.fixture
def mirror_options(sample_tree: Path) -> MirrorOptions:
    """Mirror options pointing at sample_tree."""
    return MirrorOptions(
        local_root=sample_tree,
        remote_root="/backup",
        ignore_names=(".git", "node_modules"),
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def session_factory() -> Type[FakeSession]:
    """The FakeSession class, for tests that need failure knobs or several sessions."""
    return FakeSession


@pytest.fixture
def remote_entries() -> List[DirectoryEntry]:
    return [
        DirectoryEntry("public_html", EntryType.DIRECTORY, 0),
        DirectoryEntry("readme.txt", EntryType.FILE, 42),
    ]
