"""Base command infrastructure."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pyreleaser.registry import PyPIRegistry
from pyreleaser.workspace import Workspace

TResult = TypeVar("TResult")


@dataclass
class CommandContext:
    """Context passed to all commands.

    Attributes:
        workspace: The workspace instance.
        dry_run: If True, show what would happen without publishing.
        env: Extra environment, consulted before ``os.environ``.
    """

    workspace: Workspace
    dry_run: bool = False
    env: dict[str, str] = field(default_factory=dict)

    def getenv(self, name: str) -> str | None:
        return self.env.get(name) or os.environ.get(name) or None


class Command(ABC, Generic[TResult]):
    """Base class for pyreleaser commands.

    Commands receive a context and return a result object; rendering is
    left to the CLI handlers.
    """

    def __init__(self, context: CommandContext) -> None:
        self.context = context
        self.workspace = context.workspace

    @abstractmethod
    async def execute(self) -> TResult:
        """Execute the command.

        Returns:
            Command-specific result.
        """
        ...

    def validate(self) -> list[str]:
        """Validate that the command can be executed.

        Returns:
            List of validation errors (empty if valid).
        """
        return []


class SyncCommand(ABC, Generic[TResult]):
    """Base class for synchronous commands."""

    def __init__(self, context: CommandContext) -> None:
        self.context = context
        self.workspace = context.workspace

    @abstractmethod
    def execute(self) -> TResult:
        ...

    def validate(self) -> list[str]:
        return []


def default_registry(workspace: Workspace) -> PyPIRegistry:
    """Registry adapter built from the workspace publish settings."""
    publish = workspace.config.publish
    return PyPIRegistry(index_url=publish.index_url, publish_url=publish.registry)
