"""Workspace model: packages, dependency graph, discovery."""

from pyreleaser.workspace.graph import DependencyGraph
from pyreleaser.workspace.package import Package
from pyreleaser.workspace.workspace import Workspace

__all__ = ["DependencyGraph", "Package", "Workspace"]
