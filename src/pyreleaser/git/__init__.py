"""Git integration."""

from pyreleaser.git.changes import GitChangeDetector
from pyreleaser.git.repo import get_changed_files_since, get_repo_root, run_git_command

__all__ = ["GitChangeDetector", "get_changed_files_since", "get_repo_root", "run_git_command"]
