"""Manifest rewriting."""

from pyreleaser.manifest.editor import PyprojectEditor, pin_requirement

__all__ = ["PyprojectEditor", "pin_requirement"]
