"""Building and uploading distributions with uv."""

from __future__ import annotations

import shutil
from pathlib import Path

from pyreleaser.uv.client import UvResult, run_uv_async


async def build(package_dir: Path, *, out_dir: Path | None = None) -> Path:
    """Build sdist and wheel for a package.

    Args:
        package_dir: Package directory containing pyproject.toml.
        out_dir: Output directory; defaults to ``<package_dir>/dist``.

    Returns:
        The directory holding the built distributions.
    """
    dist_dir = out_dir or package_dir / "dist"
    if dist_dir.exists():
        shutil.rmtree(dist_dir)

    await run_uv_async(["build", "--out-dir", str(dist_dir)], cwd=package_dir)
    return dist_dir


def distribution_files(dist_dir: Path) -> list[Path]:
    """Wheels and sdists in ``dist_dir``, sorted."""
    return sorted([*dist_dir.glob("*.whl"), *dist_dir.glob("*.tar.gz")])


async def publish(
    package_dir: Path,
    dist_dir: Path,
    *,
    publish_url: str | None = None,
    token: str | None = None,
    dry_run: bool = False,
) -> UvResult:
    """Upload the distributions in ``dist_dir``.

    Args:
        package_dir: Working directory for uv.
        dist_dir: Directory with built distributions.
        publish_url: Upload endpoint.
        token: API token; passed through the environment, never argv.
        dry_run: Validate without uploading.
    """
    args = ["publish"]
    if publish_url:
        args.extend(["--publish-url", publish_url])
    if dry_run:
        args.append("--dry-run")
    args.extend(str(f) for f in distribution_files(dist_dir))

    env = {"UV_PUBLISH_TOKEN": token} if token else None
    return await run_uv_async(args, cwd=package_dir, env=env)
