"""Semantic version handling on top of PEP 440 versions.

Registry versions are PEP 440 strings, so parsing and ordering are
delegated to :mod:`packaging`. Bumping follows semver rules where a 0.x
release treats the minor component as the breaking one.
"""

from __future__ import annotations

from enum import IntEnum
from functools import total_ordering

from packaging.version import InvalidVersion
from packaging.version import Version as _PEP440Version


class BumpType(IntEnum):
    """Severity of a change, ordered from least to most severe."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> BumpType:
        """Parse a lowercase label such as ``"minor"``."""
        try:
            return cls[label.upper()]
        except KeyError:
            raise ValueError(f"Invalid bump type: {label}") from None


@total_ordering
class Version:
    """An immutable release version.

    Attributes:
        major: First release component.
        minor: Second release component (0 if absent).
        patch: Third release component (0 if absent).
    """

    __slots__ = ("_v",)

    def __init__(self, value: _PEP440Version) -> None:
        self._v = value

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string.

        Raises:
            ValueError: If the string is not a valid PEP 440 version.
        """
        try:
            return cls(_PEP440Version(text.strip()))
        except InvalidVersion:
            raise ValueError(f"Invalid version: {text!r}") from None

    @classmethod
    def from_parts(cls, major: int, minor: int, patch: int) -> Version:
        return cls(_PEP440Version(f"{major}.{minor}.{patch}"))

    def _component(self, index: int) -> int:
        release = self._v.release
        return release[index] if len(release) > index else 0

    @property
    def major(self) -> int:
        return self._component(0)

    @property
    def minor(self) -> int:
        return self._component(1)

    @property
    def patch(self) -> int:
        return self._component(2)

    @property
    def is_prerelease(self) -> bool:
        return self._v.is_prerelease

    def release_only(self) -> Version:
        """Drop prerelease, dev, post and local segments, keeping major.minor.patch."""
        return Version.from_parts(self.major, self.minor, self.patch)

    def with_prerelease(self, suffix: str | None) -> Version:
        """Attach a prerelease suffix such as ``rc1`` or ``a0``."""
        if not suffix:
            return self
        base = self.release_only()
        return Version.parse(f"{base}{suffix}")

    def bump(self, bump: BumpType, prerelease: str | None = None) -> Version:
        """Return the next version for a change of the given severity.

        ``MAJOR`` on 0.x increments minor; ``MINOR`` on 0.x increments patch.
        ``NONE`` returns the version unchanged.
        """
        major, minor, patch = self.major, self.minor, self.patch

        if bump == BumpType.NONE:
            return self.with_prerelease(prerelease)

        if bump == BumpType.MAJOR:
            if major == 0:
                minor, patch = minor + 1, 0
            else:
                major, minor, patch = major + 1, 0, 0
        elif bump == BumpType.MINOR:
            if major == 0:
                patch += 1
            else:
                minor, patch = minor + 1, 0
        else:
            patch += 1

        return Version.from_parts(major, minor, patch).with_prerelease(prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._v == other._v

    def __lt__(self, other: Version) -> bool:
        return self._v < other._v

    def __hash__(self) -> int:
        return hash(self._v)

    def __str__(self) -> str:
        return str(self._v)

    def __repr__(self) -> str:
        return f"Version('{self._v}')"
