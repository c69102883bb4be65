"""Utility modules for leakgate."""

from leakgate.utils.git import (
    GitError,
    get_git_root,
    is_git_repo,
    staged_diff,
    staged_files,
)

__all__ = [
    "GitError",
    "get_git_root",
    "is_git_repo",
    "staged_diff",
    "staged_files",
]
