"""Compatibility classifiers."""

from __future__ import annotations

from pyreleaser.interfaces import Artifact
from pyreleaser.versioning import BumpType


class ConservativeClassifier:
    """Treats every change as breaking.

    Used when no API comparison is available; a dependent's pin can then
    never silently accept an incompatible release.
    """

    def compare(self, old: Artifact, new: Artifact) -> BumpType:
        return BumpType.MAJOR
