"""Configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pyreleaser.compat import read_toml
from pyreleaser.config.schema import (
    FeatureRemovalConfig,
    LoggingConfig,
    PackageEditConfig,
    PlanConfig,
    PublishConfig,
    PyReleaserConfig,
)
from pyreleaser.errors import ConfigurationError, WorkspaceNotFoundError

CONFIG_FILE = "pyreleaser.yaml"

__all__ = [
    "CONFIG_FILE",
    "FeatureRemovalConfig",
    "LoggingConfig",
    "PackageEditConfig",
    "PlanConfig",
    "PublishConfig",
    "PyReleaserConfig",
    "find_workspace_root",
    "load_config",
]


def _is_uv_workspace(pyproject: Path) -> bool:
    if not pyproject.is_file():
        return False
    doc = read_toml(pyproject)
    return "workspace" in doc.get("tool", {}).get("uv", {})


def find_workspace_root(start: Path | None = None) -> Path:
    """Walk up from ``start`` to the directory holding the workspace.

    A directory qualifies if it contains pyreleaser.yaml, or a pyproject.toml
    declaring ``[tool.uv.workspace]``.

    Raises:
        WorkspaceNotFoundError: If no ancestor qualifies.
    """
    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / CONFIG_FILE).is_file():
            return candidate
        if _is_uv_workspace(candidate / "pyproject.toml"):
            return candidate
    raise WorkspaceNotFoundError(start)


def load_config(root: Path) -> PyReleaserConfig:
    """Load pyreleaser.yaml from the workspace root.

    Missing member globs fall back to ``[tool.uv.workspace].members``.

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation.
    """
    path = root / CONFIG_FILE
    data: dict[str, Any] = {}

    if path.is_file():
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML: {e}", path=path) from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError("expected a mapping at top level", path=path)
        data = loaded

    try:
        config = PyReleaserConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(str(e), path=path) from e

    if not config.packages:
        pyproject = root / "pyproject.toml"
        if pyproject.is_file():
            members = (
                read_toml(pyproject).get("tool", {}).get("uv", {}).get("workspace", {})
            ).get("members", [])
            config.packages = list(members)

    if not config.packages:
        raise ConfigurationError(
            "no package globs configured; set 'packages' or [tool.uv.workspace].members",
            path=path,
        )

    return config
