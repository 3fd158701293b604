"""uv integration."""

from pyreleaser.uv.client import UvError, UvResult, run_uv_async
from pyreleaser.uv.publish import build, distribution_files, publish

__all__ = [
    "UvError",
    "UvResult",
    "build",
    "distribution_files",
    "publish",
    "run_uv_async",
]
