"""
Tests for ftpmirror.excludes module.
"""

import os
import sys
import types
from pathlib import Path
from typing import Iterable, List, Tuple

import pytest

from ftpmirror.config import SymlinkPolicy
from ftpmirror.excludes import (
    TransferTask,
    is_ignored,
    load_ignore_file,
    make_ignore_predicate,
    walk,
)


def _never(path: Path) -> bool:
    return False


def relative_tasks(tasks: Iterable[TransferTask], root: Path) -> List[Tuple[str, str]]:
    """(relative local path, remote path) pairs for readable assertions."""
    return [
        (task.local_path.relative_to(root).as_posix(), task.remote_path)
        for task in tasks
    ]


class TestLoadIgnoreFile:
    """Tests for load_ignore_file function."""

    def test_load_existing_ignore_file(self, temp_dir: Path) -> None:
        """Test loading an existing ignore file."""
        ignore_file = temp_dir / ".ftpmirror_ignore"
        ignore_file.write_text("dist\n# comment\n\n  build  \n")

        names = load_ignore_file(ignore_file)

        assert names == ["dist", "build"]

    def test_load_nonexistent_file_returns_empty(self, temp_dir: Path) -> None:
        """Test that loading nonexistent file returns empty list."""
        assert load_ignore_file(temp_dir / "nonexistent") == []


class TestIsIgnored:
    """Tests for is_ignored function."""

    def test_matches_folder_anywhere_below_root(self, temp_dir: Path) -> None:
        """Test that a folder name matches at any depth."""
        path = temp_dir / "app" / "node_modules" / "pkg" / "index.js"
        assert is_ignored(path, ["node_modules"], temp_dir) is True

    def test_no_match(self, temp_dir: Path) -> None:
        """Test that unrelated paths are kept."""
        path = temp_dir / "src" / "main.js"
        assert is_ignored(path, ["node_modules", ".git"], temp_dir) is False

    def test_partial_name_does_not_match(self, temp_dir: Path) -> None:
        """Test that names match whole components only."""
        path = temp_dir / "my.git.notes" / "file.txt"
        assert is_ignored(path, [".git"], temp_dir) is False

    def test_glob_pattern(self, temp_dir: Path) -> None:
        """Test fnmatch style patterns."""
        path = temp_dir / "pkg.egg-info" / "PKG-INFO"
        assert is_ignored(path, ["*.egg-info"], temp_dir) is True

    def test_components_above_root_are_not_checked(self, temp_dir: Path) -> None:
        """Test that a root inside an ignored folder name is still walked."""
        root = temp_dir / "build" / "site"
        assert is_ignored(root / "index.html", ["build"], root) is False
        assert is_ignored(root, ["build"], root) is False

    def test_path_outside_root_uses_all_parts(self, temp_dir: Path) -> None:
        """Test paths that are not below the root."""
        assert is_ignored(Path("/elsewhere/.git/HEAD"), [".git"], temp_dir) is True

    def test_make_ignore_predicate(self, temp_dir: Path) -> None:
        """Test that the predicate binds names and root."""
        predicate = make_ignore_predicate((".git",), temp_dir)
        assert predicate(temp_dir / ".git") is True
        assert predicate(temp_dir / "src") is False


class TestWalk:
    """Tests for walk function."""

    def test_walk_is_lazy(self, sample_tree: Path) -> None:
        """Test that walk returns a generator."""
        tasks = walk(sample_tree, "/backup", _never)
        assert isinstance(tasks, types.GeneratorType)

    def test_depth_first_preorder_sorted(self, sample_tree: Path) -> None:
        """Test traversal order and remote paths."""
        ignore = make_ignore_predicate((".git", "node_modules"), sample_tree)
        tasks = relative_tasks(walk(sample_tree, "/backup", ignore), sample_tree)

        assert tasks == [
            ("a.txt", "/backup/a.txt"),
            ("empty.txt", "/backup/empty.txt"),
            ("sub/b.txt", "/backup/sub/b.txt"),
            ("sub/deeper/c.bin", "/backup/sub/deeper/c.bin"),
        ]

    def test_scenario_node_modules_ignored(self, temp_dir: Path) -> None:
        """Test that an ignored folder produces no task."""
        (temp_dir / "sub").mkdir()
        (temp_dir / "node_modules").mkdir()
        (temp_dir / "a.txt").write_bytes(b"a" * 1024)
        (temp_dir / "sub" / "b.txt").write_bytes(b"b" * 512)
        (temp_dir / "node_modules" / "c.txt").write_text("c")

        ignore = make_ignore_predicate(("node_modules",), temp_dir)
        tasks = relative_tasks(walk(temp_dir, "/backup", ignore), temp_dir)

        assert tasks == [
            ("a.txt", "/backup/a.txt"),
            ("sub/b.txt", "/backup/sub/b.txt"),
        ]

    def test_one_task_per_regular_file(self, sample_tree: Path) -> None:
        """Test that every non-ignored file appears once and no directory does."""
        tasks = list(walk(sample_tree, "/", _never))

        expected = {
            Path(dirpath) / name
            for dirpath, _, names in os.walk(sample_tree)
            for name in names
        }
        assert {task.local_path for task in tasks} == expected
        assert len(tasks) == len(expected)
        assert all(task.local_path.is_file() for task in tasks)

    def test_remote_path_preserves_structure(self, sample_tree: Path) -> None:
        """Test remote path = remote root + relative local path."""
        for task in walk(sample_tree, "/var/www/", _never):
            relative = task.local_path.relative_to(sample_tree).as_posix()
            assert task.remote_path == f"/var/www/{relative}"

    def test_relative_remote_root(self, sample_tree: Path) -> None:
        """Test that a relative remote root stays relative."""
        tasks = list(walk(sample_tree, "backup", _never))
        assert TransferTask(sample_tree / "a.txt", "backup/a.txt") in tasks

    def test_ignored_root_yields_nothing(self, sample_tree: Path) -> None:
        """Test that an ignored root is skipped without error."""
        assert list(walk(sample_tree, "/", lambda path: True)) == []

    def test_file_root_yields_nothing(self, sample_tree: Path) -> None:
        """Test that a non-directory root is skipped without error."""
        assert list(walk(sample_tree / "a.txt", "/", _never)) == []

    def test_missing_root_yields_nothing(self, temp_dir: Path) -> None:
        """Test that a missing root is skipped without error."""
        assert list(walk(temp_dir / "missing", "/", _never)) == []

    def test_symlinks_skipped_by_default(self, sample_tree: Path) -> None:
        """Test that symbolic links are skipped under the default policy."""
        (sample_tree / "link.txt").symlink_to(sample_tree / "a.txt")
        (sample_tree / "linkdir").symlink_to(sample_tree / "sub", target_is_directory=True)

        names = {
            task.local_path.relative_to(sample_tree).as_posix()
            for task in walk(sample_tree, "/", _never)
        }

        assert "link.txt" not in names
        assert not any(name.startswith("linkdir/") for name in names)

    def test_symlinks_followed(self, sample_tree: Path) -> None:
        """Test that FOLLOW uploads link targets under the link's name."""
        (sample_tree / "link.txt").symlink_to(sample_tree / "a.txt")
        (sample_tree / "linkdir").symlink_to(sample_tree / "sub", target_is_directory=True)

        tasks = relative_tasks(
            walk(sample_tree, "/r", _never, SymlinkPolicy.FOLLOW), sample_tree
        )

        assert ("link.txt", "/r/link.txt") in tasks
        assert ("linkdir/b.txt", "/r/linkdir/b.txt") in tasks

    def test_symlink_loop_terminates(self, temp_dir: Path) -> None:
        """Test that a link to an ancestor doesn't recurse forever."""
        (temp_dir / "d").mkdir()
        (temp_dir / "d" / "f.txt").write_text("f")
        (temp_dir / "d" / "up").symlink_to(temp_dir, target_is_directory=True)

        tasks = relative_tasks(
            walk(temp_dir, "/", _never, SymlinkPolicy.FOLLOW), temp_dir
        )

        assert tasks == [("d/f.txt", "/d/f.txt")]

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs mkfifo")
    def test_special_files_skipped(self, temp_dir: Path) -> None:
        """Test that fifos are never uploaded."""
        os.mkfifo(temp_dir / "pipe")
        (temp_dir / "f.txt").write_text("f")

        tasks = relative_tasks(
            walk(temp_dir, "/", _never, SymlinkPolicy.FOLLOW), temp_dir
        )

        assert tasks == [("f.txt", "/f.txt")]

    @pytest.mark.skipif(
        os.name != "posix" or sys.platform == "darwin",
        reason="needs a filesystem that stores arbitrary bytes in names",
    )
    def test_undecodable_name_yields_task(self, temp_dir: Path) -> None:
        """Test that a name that isn't valid UTF-8 is still walked."""
        name = os.fsdecode(b"caf\xe9.txt")
        (temp_dir / name).write_text("x")

        tasks = relative_tasks(walk(temp_dir, "/r", _never), temp_dir)

        assert tasks == [(name, f"/r/{name}")]
