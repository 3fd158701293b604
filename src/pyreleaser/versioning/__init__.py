"""Versioning utilities."""

from pyreleaser.versioning.semver import BumpType, Version

__all__ = ["BumpType", "Version"]
