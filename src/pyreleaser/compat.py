"""TOML reading across Python versions."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

# tomllib only exists on 3.11+, tomli provides the same API on 3.10
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

__all__ = ["tomllib", "read_toml"]


def read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file into plain dictionaries.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML.
    """
    from pyreleaser.errors import ConfigurationError

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError("file not found", path=path) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid TOML: {e}", path=path) from e
