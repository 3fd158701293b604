"""Git command helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path

from pyreleaser.errors import GitError


def run_git_command(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command synchronously.

    Args:
        args: Git command arguments (without 'git').
        cwd: Working directory.
        check: Raise on non-zero exit code.

    Returns:
        Completed process result.

    Raises:
        GitError: If git is missing, or the command fails and check is True.
    """
    cmd = ["git", *args]

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise GitError("Git is not installed") from e

    if check and result.returncode != 0:
        raise GitError(
            result.stderr.strip() or f"Command failed with exit code {result.returncode}",
            command=" ".join(cmd),
        )
    return result


def get_repo_root(path: Path) -> Path:
    """Get the root directory of the git repository containing ``path``.

    Raises:
        GitError: If not inside a git repository.
    """
    result = run_git_command(["rev-parse", "--show-toplevel"], cwd=path)
    return Path(result.stdout.strip()).resolve()


def get_changed_files_since(root: Path, since: str) -> set[str]:
    """Files touched since ``since``, relative to the repository root.

    Covers commits in ``since...HEAD`` plus staged, unstaged and untracked
    files, so uncommitted work is treated as changed.

    Raises:
        GitError: If ``since`` cannot be resolved.
    """
    run_git_command(["rev-parse", "--verify", "--quiet", f"{since}^{{commit}}"], cwd=root)

    files: set[str] = set()
    for args in (
        ["diff", "--name-only", f"{since}...HEAD"],
        ["diff", "--name-only", "--cached"],
        ["diff", "--name-only"],
        ["ls-files", "--others", "--exclude-standard"],
    ):
        result = run_git_command(args, cwd=root)
        files.update(line for line in result.stdout.splitlines() if line)
    return files
