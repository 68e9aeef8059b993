"""
Configuration loading for ftpmirror.

Connection settings and mirror options are read from the process
environment (optionally seeded from a ``.env`` file) into immutable values
that are built once per run and passed to every component.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from dotenv import find_dotenv, load_dotenv

DEFAULT_TIMEOUT = 300
DEFAULT_PROGRESS_STEP = 10
DEFAULT_IGNORE_NAMES: Tuple[str, ...] = (
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    "__pycache__",
    ".venv",
)
SUPPORTED_PROTOCOLS = ("ftp", "sftp")


class SymlinkPolicy(str, Enum):
    """What the tree walker does with symbolic links."""

    SKIP = "skip"
    FOLLOW = "follow"


@dataclass(frozen=True)
class ConnectionConfig:
    """Remote server connection settings."""

    host: str
    user: str
    password: str = field(repr=False)
    port: Optional[int]
    secure: bool = False
    protocol: str = "ftp"
    timeout: int = DEFAULT_TIMEOUT

    def describe(self) -> Dict[str, Any]:
        """Return the settings as a dict with the password masked."""
        return {
            "host": self.host,
            "user": self.user,
            "password": "********" if self.password else "",
            "port": self.port,
            "secure": self.secure,
            "protocol": self.protocol,
            "timeout": self.timeout,
        }


@dataclass(frozen=True)
class MirrorOptions:
    """What to mirror and how."""

    local_root: Path
    remote_root: str = "/"
    ignore_names: Tuple[str, ...] = DEFAULT_IGNORE_NAMES
    symlinks: SymlinkPolicy = SymlinkPolicy.SKIP
    progress_step: int = DEFAULT_PROGRESS_STEP

    def describe(self) -> Dict[str, Any]:
        return {
            "local_root": str(self.local_root),
            "remote_root": self.remote_root,
            "ignore_names": list(self.ignore_names),
            "symlinks": self.symlinks.value,
            "progress_step": self.progress_step,
        }


def load_env_file(path: Optional[Union[str, Path]] = None) -> bool:
    """
    Load a dotenv file into the process environment.

    Variables already present in the environment are not overridden.

    Args:
        path: dotenv file to load. ``None`` searches for ``.env`` from cwd.

    Returns:
        True if at least one variable was loaded.
    """
    if path is None:
        path = find_dotenv(usecwd=True)
        if not path:
            return False
    return load_dotenv(dotenv_path=path, override=False)


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def load_connection_config(
    environ: Optional[Mapping[str, str]] = None,
) -> ConnectionConfig:
    """
    Build the connection settings from environment variables.

    Reads FTP_HOST, FTP_USER, FTP_PASSWORD, FTP_PORT, FTP_SECURE, FTP_PROTOCOL
    and FTP_TIMEOUT. Only the port and timeout are parsed; a missing or
    non-numeric port becomes ``None`` and is rejected at connect time.

    Args:
        environ: Mapping to read from (default: ``os.environ``).

    Returns:
        Immutable connection settings.
    """
    env = os.environ if environ is None else environ

    timeout = _parse_int(env.get("FTP_TIMEOUT"))

    return ConnectionConfig(
        host=env.get("FTP_HOST", ""),
        user=env.get("FTP_USER", ""),
        password=env.get("FTP_PASSWORD", ""),
        port=_parse_int(env.get("FTP_PORT")),
        # Exact, case-sensitive match only
        secure=env.get("FTP_SECURE") == "true",
        protocol=env.get("FTP_PROTOCOL", "ftp").strip().lower() or "ftp",
        timeout=timeout if timeout and timeout > 0 else DEFAULT_TIMEOUT,
    )


def parse_ignore_names(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma separated list of folder names."""
    if not value:
        return ()
    return tuple(name.strip() for name in value.split(",") if name.strip())


def load_mirror_options(
    environ: Optional[Mapping[str, str]] = None,
    local_root: Optional[Union[str, Path]] = None,
    remote_root: Optional[str] = None,
    ignore_names: Optional[Iterable[str]] = None,
    symlinks: Optional[Union[str, SymlinkPolicy]] = None,
    progress_step: Optional[int] = None,
) -> MirrorOptions:
    """
    Build the mirror options.

    Precedence for each setting:
    1) explicit argument (CLI)
    2) environment variable (FTP_LOCAL_ROOT, FTP_REMOTE_ROOT, FTP_IGNORE,
       FTP_SYMLINKS, FTP_PROGRESS_STEP)
    3) built-in default

    Raises:
        ValueError: If the symlink policy name is unknown.
    """
    env = os.environ if environ is None else environ

    if local_root is None:
        local_root = env.get("FTP_LOCAL_ROOT") or "."
    if remote_root is None:
        remote_root = env.get("FTP_REMOTE_ROOT") or "/"

    if ignore_names is None:
        if "FTP_IGNORE" in env:
            ignore_names = parse_ignore_names(env["FTP_IGNORE"])
        else:
            ignore_names = DEFAULT_IGNORE_NAMES

    if symlinks is None:
        symlinks = env.get("FTP_SYMLINKS") or SymlinkPolicy.SKIP.value

    if progress_step is None:
        progress_step = _parse_int(env.get("FTP_PROGRESS_STEP"))
    if not progress_step or progress_step < 1 or progress_step > 100:
        progress_step = DEFAULT_PROGRESS_STEP

    return MirrorOptions(
        local_root=Path(local_root).expanduser(),
        remote_root=remote_root,
        ignore_names=tuple(dict.fromkeys(ignore_names)),
        symlinks=SymlinkPolicy(symlinks),
        progress_step=progress_step,
    )


def with_extra_ignores(options: MirrorOptions, names: Iterable[str]) -> MirrorOptions:
    """Return a copy of ``options`` with ``names`` appended to the ignore set."""
    merged = tuple(dict.fromkeys(tuple(options.ignore_names) + tuple(names)))
    return replace(options, ignore_names=merged)
