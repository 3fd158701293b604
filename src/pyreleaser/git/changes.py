"""Git-based change detection."""

from __future__ import annotations

from pathlib import Path

from pyreleaser.git.repo import get_changed_files_since, get_repo_root
from pyreleaser.logging import get_logger
from pyreleaser.workspace import Workspace

log = get_logger(__name__)


class GitChangeDetector:
    """Reports packages containing files changed since a git reference.

    Only directly changed packages are reported; dependents are handled by
    the planner's bump propagation.
    """

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def changed_files(self, ref: str) -> dict[str, list[str]]:
        """Changed files per package, relative to the package directory.

        Packages without changes are omitted.

        Raises:
            GitError: If the repository or reference cannot be read.
        """
        repo_root = get_repo_root(self.workspace.root)
        changed_files = get_changed_files_since(repo_root, ref)

        by_package: dict[str, list[str]] = {}
        for package in self.workspace.packages.values():
            files = sorted(
                relative
                for relative in (_relative_to(repo_root / f, package.path) for f in changed_files)
                if relative is not None
            )
            if files:
                by_package[package.name] = files
        return by_package

    def changed_since(self, ref: str) -> set[str]:
        """Names of packages with changed files since ``ref``.

        Raises:
            GitError: If the repository or reference cannot be read.
        """
        changed = set(self.changed_files(ref))
        log.info("changed packages detected", since=ref, count=len(changed))
        return changed


def _relative_to(path: Path, directory: Path) -> str | None:
    try:
        return path.resolve().relative_to(directory).as_posix()
    except ValueError:
        return None
