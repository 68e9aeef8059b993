"""
CLI entry point for ftpmirror.

Provides the command-line interface using Click.
"""

import json
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from ftpmirror import __version__
from ftpmirror.config import (
    SymlinkPolicy,
    load_connection_config,
    load_env_file,
    load_mirror_options,
    with_extra_ignores,
)
from ftpmirror.excludes import (
    IGNORE_FILE_NAME,
    load_ignore_file,
    make_ignore_predicate,
    walk,
)
from ftpmirror.log import DEFAULT_LOG_FILE, setup_logging
from ftpmirror.session import run_mirror
from ftpmirror.utils import format_elapsed, format_size


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Callback to display version and exit."""
    if value and not ctx.resilient_parsing:
        click.echo(f"ftpmirror version {__version__}")
        ctx.exit()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--version",
    "-v",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="dotenv file with FTP_* settings [default: .env searched from cwd]",
)
@click.option(
    "-i",
    "--ignore",
    "extra_ignores",
    multiple=True,
    help="Folder name (or fnmatch pattern) to skip; repeatable.",
)
@click.option(
    "--no-default-ignores",
    is_flag=True,
    help="Don't skip .git, node_modules and the other built-in folder names.",
)
@click.option(
    "--follow-symlinks/--skip-symlinks",
    default=None,
    help="Follow symbolic links instead of skipping them [default: skip]",
)
@click.option(
    "--progress-step",
    type=click.IntRange(1, 100),
    default=None,
    help="Log upload progress every N percent (default: 10).",
)
@click.option(
    "--log-file",
    default=DEFAULT_LOG_FILE,
    show_default=True,
    help="File the log is appended to.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
@click.option(
    "--list-only",
    is_flag=True,
    help="Connect, list the remote working directory and exit without uploading.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the files that would be uploaded and exit without connecting.",
)
@click.option(
    "--show-config",
    is_flag=True,
    help="Display the resolved configuration (password masked) and exit.",
)
@click.argument("local_root", required=False, type=click.Path(path_type=Path))
@click.argument("remote_root", required=False)
def main(
    env_file: Optional[Path],
    extra_ignores: Tuple[str, ...],
    no_default_ignores: bool,
    follow_symlinks: Optional[bool],
    progress_step: Optional[int],
    log_file: str,
    log_level: str,
    list_only: bool,
    dry_run: bool,
    show_config: bool,
    local_root: Optional[Path],
    remote_root: Optional[str],
) -> None:
    """
    Mirror a local directory tree to a remote FTP/FTPS/SFTP server.

    Connects using FTP_HOST, FTP_USER, FTP_PASSWORD, FTP_PORT and FTP_SECURE
    from the environment (or a .env file), lists the remote working directory,
    then uploads every file below LOCAL_ROOT to REMOTE_ROOT, keeping the
    directory structure.

    \b
    LOCAL_ROOT defaults to FTP_LOCAL_ROOT or the current directory.
    REMOTE_ROOT defaults to FTP_REMOTE_ROOT or "/".

    \b
    Examples:
      ftpmirror ./site /public_html                # Mirror ./site to /public_html
      ftpmirror -i dist -i "*.egg-info" . /backup  # Skip extra folders
      ftpmirror --list-only                        # Only list the remote directory
      ftpmirror --dry-run ./site /public_html      # Show what would be uploaded
      ftpmirror --env-file prod.env ./site /       # Read settings from prod.env

    \b
    Environment:
      FTP_HOST, FTP_USER, FTP_PASSWORD, FTP_PORT   connection settings
      FTP_SECURE=true                              use FTPS (exact, lower-case)
      FTP_PROTOCOL=ftp|sftp                        transfer protocol [ftp]
      FTP_TIMEOUT                                  inactivity timeout [300s]
      FTP_IGNORE                                   comma separated folder names
    """
    if env_file is not None and not env_file.exists():
        click.echo(f"Error: env file '{env_file}' does not exist.", err=True)
        sys.exit(1)
    load_env_file(env_file)

    config = load_connection_config()

    symlinks = None
    if follow_symlinks is not None:
        symlinks = SymlinkPolicy.FOLLOW if follow_symlinks else SymlinkPolicy.SKIP

    try:
        options = load_mirror_options(
            local_root=local_root,
            remote_root=remote_root,
            ignore_names=() if no_default_ignores else None,
            symlinks=symlinks,
            progress_step=progress_step,
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    file_ignores = load_ignore_file(options.local_root / IGNORE_FILE_NAME)
    options = with_extra_ignores(options, tuple(extra_ignores) + tuple(file_ignores))

    if show_config:
        click.echo(click.style("\n🔀 Resolved Configuration:", fg="cyan", bold=True))
        resolved = {"connection": config.describe(), "mirror": options.describe()}
        click.echo(click.style(json.dumps(resolved, indent=2), fg="green"))
        sys.exit(0)

    if not list_only and not options.local_root.is_dir():
        click.echo(
            f"Error: Local root '{options.local_root}' is not a directory.", err=True
        )
        sys.exit(1)

    if dry_run:
        ignore = make_ignore_predicate(options.ignore_names, options.local_root)
        count = 0
        total = 0
        for task in walk(
            options.local_root, options.remote_root, ignore, options.symlinks
        ):
            size = task.local_path.stat().st_size
            count += 1
            total += size
            click.echo(f"{task.local_path} → {task.remote_path} ({format_size(size)})")
        click.echo(f"\n{count} files, {format_size(total)}")
        sys.exit(0)

    setup_logging(log_file, log_level)

    start_time = time.time()
    result = run_mirror(config, options, upload=not list_only)
    elapsed = time.time() - start_time

    if not result.ok:
        click.echo(
            click.style(f"❌ Mirror failed: {result.error}", fg="red"), err=True
        )
        sys.exit(1)

    click.echo()
    if list_only:
        click.echo(f"⏱️  Listing completed in {format_elapsed(elapsed)}")
    else:
        click.echo(
            f"⏱️  Uploaded {result.summary.files} files "
            f"({format_size(result.summary.bytes)}) in {format_elapsed(elapsed)}"
        )


if __name__ == "__main__":
    main()
