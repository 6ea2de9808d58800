"""Utility modules for seal-commit."""

from sealcommit.utils.git import (
    GitError,
    get_git_root,
    get_staged_files,
    get_tracked_files,
    is_git_repo,
)

__all__ = [
    "GitError",
    "get_git_root",
    "get_staged_files",
    "get_tracked_files",
    "is_git_repo",
]
