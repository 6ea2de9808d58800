"""Git helpers for enumerating files to scan."""

from __future__ import annotations

import subprocess  # nosec B404
from pathlib import Path

from sealcommit.errors import ErrorCode, SealCommitError

GIT_TIMEOUT = 10


class GitError(SealCommitError):
    """Error executing git command."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.GIT_COMMAND_FAILED)


def _run_git(args: list[str], cwd: Path) -> str:
    """Run git and return stdout.

    Raises:
        GitError: If git is missing, times out or exits non-zero.
    """
    try:
        result = subprocess.run(  # nosec B603, B607
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {args[0]} timed out after {GIT_TIMEOUT}s") from e

    if result.returncode != 0:
        raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout


def _workdir(path: Path) -> Path:
    return path if path.is_dir() else path.parent


def is_git_repo(path: Path = Path(".")) -> bool:
    """
    Check if the given path is inside a git repository.

    Parameters:
        path: Path to check.

    Returns:
        True if path is inside a git repository, False otherwise.
    """
    try:
        return _run_git(["rev-parse", "--is-inside-work-tree"], _workdir(path)).strip() == "true"
    except GitError:
        return False


def get_git_root(path: Path = Path(".")) -> Path | None:
    """
    Get the root directory of the git repository containing the given path.

    Returns:
        Path to the git root, or None if not in a git repository.
    """
    try:
        return Path(_run_git(["rev-parse", "--show-toplevel"], _workdir(path)).strip())
    except GitError:
        return None


def _existing_paths(output: str, root: Path) -> list[Path]:
    paths = [root / line for line in output.splitlines() if line.strip()]
    return [p for p in paths if p.is_file()]


def get_staged_files(path: Path = Path(".")) -> list[Path]:
    """
    List files staged for commit (added, copied, modified or renamed).

    Deleted files are excluded; returned paths are absolute.

    Raises:
        GitError: If git fails or the path is not in a repository.
    """
    root = get_git_root(path)
    if root is None:
        raise GitError(f"Not a git repository: {path}")
    output = _run_git(["diff", "--cached", "--name-only", "--diff-filter=ACMR"], root)
    return _existing_paths(output, root)


def get_tracked_files(path: Path = Path(".")) -> list[Path]:
    """
    List every file tracked by git in the repository containing ``path``.

    Raises:
        GitError: If git fails or the path is not in a repository.
    """
    root = get_git_root(path)
    if root is None:
        raise GitError(f"Not a git repository: {path}")
    return _existing_paths(_run_git(["ls-files"], root), root)
