"""Tests for git file enumeration."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sealcommit.utils.git import (
    GitError,
    get_git_root,
    get_staged_files,
    get_tracked_files,
    is_git_repo,
)


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> MagicMock:
    return MagicMock(stdout=stdout, returncode=returncode, stderr=stderr)


class FakeGit:
    """Answer git subcommands from a table keyed on the first argument."""

    def __init__(self, root: Path, outputs: dict[str, MagicMock]) -> None:
        self.root = root
        self.outputs = outputs
        self.calls: list[list[str]] = []

    def __call__(self, args, **kwargs):
        self.calls.append(args)
        if args[1:3] == ["rev-parse", "--show-toplevel"]:
            return _completed(f"{self.root}\n")
        return self.outputs.get(args[1], _completed(returncode=1, stderr="unknown"))


class TestRepositoryChecks:
    def test_is_git_repo_true(self, tmp_path):
        with patch("subprocess.run", return_value=_completed("true\n")):
            assert is_git_repo(tmp_path) is True

    def test_is_git_repo_outside_repo(self, tmp_path):
        with patch("subprocess.run", return_value=_completed(returncode=128, stderr="not a git repository")):
            assert is_git_repo(tmp_path) is False

    def test_is_git_repo_without_git(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert is_git_repo(tmp_path) is False

    def test_get_git_root(self, tmp_path):
        with patch("subprocess.run", return_value=_completed(f"{tmp_path}\n")):
            assert get_git_root(tmp_path) == tmp_path

    def test_get_git_root_timeout(self, tmp_path):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("git", 10)):
            assert get_git_root(tmp_path) is None

    def test_file_path_uses_parent_as_cwd(self, tmp_path):
        target = tmp_path / "a.py"
        target.write_text("x")
        with patch("subprocess.run", return_value=_completed("true\n")) as run:
            is_git_repo(target)
        assert run.call_args.kwargs["cwd"] == str(tmp_path)
        assert run.call_args.kwargs["timeout"] == 10


class TestFileLists:
    def test_staged_files(self, tmp_path):
        (tmp_path / "a.py").write_text("a")
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "b.py").write_text("b")
        fake = FakeGit(tmp_path, {"diff": _completed("a.py\nsrc/b.py\ndeleted.py\n")})

        with patch("subprocess.run", side_effect=fake):
            files = get_staged_files(tmp_path)

        assert files == [tmp_path / "a.py", tmp_path / "src" / "b.py"]
        assert ["git", "diff", "--cached", "--name-only", "--diff-filter=ACMR"] in fake.calls

    def test_tracked_files(self, tmp_path):
        (tmp_path / "a.py").write_text("a")
        fake = FakeGit(tmp_path, {"ls-files": _completed("a.py\n")})

        with patch("subprocess.run", side_effect=fake):
            assert get_tracked_files(tmp_path) == [tmp_path / "a.py"]

    def test_staged_outside_repo(self, tmp_path):
        with patch("subprocess.run", return_value=_completed(returncode=128)):
            with pytest.raises(GitError, match="Not a git repository"):
                get_staged_files(tmp_path)

    def test_command_failure(self, tmp_path):
        fake = FakeGit(tmp_path, {"diff": _completed(returncode=1, stderr="fatal: bad index")})

        with patch("subprocess.run", side_effect=fake):
            with pytest.raises(GitError, match="bad index"):
                get_staged_files(tmp_path)
