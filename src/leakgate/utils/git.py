"""Git utilities for leakgate.

This module reads the index state the gate needs: the list of files staged
for commit and the staged diff itself. Git failures are never fatal here;
a missing or broken repository simply yields nothing to scan.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404
from pathlib import Path

logger = logging.getLogger(__name__)

# Added, copied, modified. Deleted entries cannot be scanned.
STAGED_DIFF_FILTER = "ACM"


class GitError(Exception):
    """Error executing git command."""

    pass


def _run_git(args: list[str], cwd: Path | None = None, timeout: int = 30) -> bytes:
    """
    Run a git command and return its raw standard output.

    Raises:
        GitError: If git is missing, times out or exits non-zero.
    """
    try:
        result = subprocess.run(  # nosec B603, B607
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"git {' '.join(args)} timed out") from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"git {' '.join(args)} failed: {stderr or result.returncode}")
    return result.stdout


def is_git_repo(path: Path) -> bool:
    """
    Check if the given path is inside a git repository.

    Parameters:
        path: Path to check.

    Returns:
        True if path is inside a git repository, False otherwise.
    """
    try:
        out = _run_git(
            ["rev-parse", "--is-inside-work-tree"],
            cwd=path if path.is_dir() else path.parent,
            timeout=10,
        )
    except GitError:
        return False
    return out.decode().strip() == "true"


def get_git_root(path: Path) -> Path | None:
    """
    Get the root directory of the git repository containing the given path.

    Parameters:
        path: Path inside the git repository.

    Returns:
        Path to the git root, or None if not in a git repository.
    """
    try:
        out = _run_git(
            ["rev-parse", "--show-toplevel"],
            cwd=path if path.is_dir() else path.parent,
            timeout=10,
        )
    except GitError:
        return None
    return Path(out.decode().strip())


def staged_files(cwd: Path | None = None) -> tuple[Path, ...]:
    """
    List the files staged for the next commit.

    Only added, copied and modified entries are returned. Any git failure
    (no repository, git not installed, timeout) yields an empty tuple and a
    warning instead of an exception.

    Parameters:
        cwd: Directory to run git in (defaults to the process cwd).

    Returns:
        Staged paths, relative to the repository root, in git's order.
    """
    try:
        out = _run_git(
            ["diff", "--cached", "--name-only", f"--diff-filter={STAGED_DIFF_FILTER}"],
            cwd=cwd,
        )
    except GitError as e:
        logger.warning("Could not list staged files: %s", e)
        return ()

    names = out.decode("utf-8", errors="replace").splitlines()
    return tuple(Path(name) for name in names if name.strip())


def staged_diff(cwd: Path | None = None) -> bytes:
    """
    Return the staged diff (``git diff --cached``) as raw bytes.

    Returns:
        The diff, or empty bytes if git failed.
    """
    try:
        return _run_git(["diff", "--cached"], cwd=cwd)
    except GitError as e:
        logger.warning("Could not read staged diff: %s", e)
        return b""
