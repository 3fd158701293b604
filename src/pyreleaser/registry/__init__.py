"""Registry snapshot and adapters."""

from pyreleaser.registry.base import RegistrySnapshot, RegistryVersion, fetch_snapshot
from pyreleaser.registry.pypi import PyPIRegistry

__all__ = ["PyPIRegistry", "RegistrySnapshot", "RegistryVersion", "fetch_snapshot"]
