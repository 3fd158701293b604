"""Tests for git change detection."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from pyreleaser.errors import GitError
from pyreleaser.git import GitChangeDetector
from pyreleaser.workspace import Workspace


@pytest.fixture
def detector(workspace: Workspace) -> GitChangeDetector:
    return GitChangeDetector(workspace)


def _changed(detector: GitChangeDetector, files: set[str]) -> set[str]:
    root = detector.workspace.root
    with (
        patch("pyreleaser.git.changes.get_repo_root", return_value=root),
        patch("pyreleaser.git.changes.get_changed_files_since", return_value=files) as mock_files,
    ):
        changed = detector.changed_since("v1.0")
    mock_files.assert_called_once_with(root, "v1.0")
    return changed


class TestGitChangeDetector:
    def test_maps_files_to_packages(self, detector: GitChangeDetector) -> None:
        files = {"packages/pkg-a/src/pkg_a/__init__.py", "packages/pkg-c/README.md"}
        assert _changed(detector, files) == {"pkg-a", "pkg-c"}

    def test_dependents_not_included(self, detector: GitChangeDetector) -> None:
        assert _changed(detector, {"packages/pkg-a/pyproject.toml"}) == {"pkg-a"}

    def test_root_files_ignored(self, detector: GitChangeDetector) -> None:
        assert _changed(detector, {"README.md", "pyreleaser.yaml"}) == set()

    def test_prefix_is_not_containment(self, detector: GitChangeDetector) -> None:
        # packages/pkg-ab is not inside packages/pkg-a
        assert _changed(detector, {"packages/pkg-ab/file.py"}) == set()

    def test_no_changes(self, detector: GitChangeDetector) -> None:
        assert _changed(detector, set()) == set()

    def test_workspace_in_subdirectory(self, detector: GitChangeDetector) -> None:
        root = detector.workspace.root
        with (
            patch("pyreleaser.git.changes.get_repo_root", return_value=root.parent),
            patch(
                "pyreleaser.git.changes.get_changed_files_since",
                return_value={f"{root.name}/packages/pkg-b/x.py"},
            ),
        ):
            assert detector.changed_since("HEAD~1") == {"pkg-b"}

    def test_changed_files_relative_to_package(self, detector: GitChangeDetector) -> None:
        root = detector.workspace.root
        files = {
            "packages/pkg-a/src/pkg_a/__init__.py",
            "packages/pkg-a/pyproject.toml",
            "README.md",
        }
        with (
            patch("pyreleaser.git.changes.get_repo_root", return_value=root),
            patch("pyreleaser.git.changes.get_changed_files_since", return_value=files),
        ):
            by_package = detector.changed_files("v1.0")
        assert by_package == {"pkg-a": ["pyproject.toml", "src/pkg_a/__init__.py"]}

    def test_git_error_propagates(self, detector: GitChangeDetector) -> None:
        with patch(
            "pyreleaser.git.changes.get_repo_root",
            side_effect=GitError("not a git repository"),
        ):
            with pytest.raises(GitError):
                detector.changed_since("HEAD")


def test_detector_uses_workspace_root(workspace: Workspace) -> None:
    with (
        patch("pyreleaser.git.changes.get_repo_root", return_value=Path("/elsewhere")) as root,
        patch("pyreleaser.git.changes.get_changed_files_since", return_value=set()),
    ):
        GitChangeDetector(workspace).changed_since("HEAD")
    root.assert_called_once_with(workspace.root)
