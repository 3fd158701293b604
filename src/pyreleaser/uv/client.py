"""Thin wrappers around the ``uv`` executable."""

from __future__ import annotations

import asyncio
import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from pyreleaser.errors import PyReleaserError


class UvError(PyReleaserError):
    """A uv invocation failed."""

    def __init__(self, message: str, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


@dataclass(frozen=True)
class UvResult:
    """Captured output of a uv invocation."""

    returncode: int
    stdout: str
    stderr: str
    duration_ms: int


def find_uv() -> str:
    """Locate the uv binary.

    Raises:
        UvError: If uv is not on PATH.
    """
    uv = shutil.which("uv")
    if uv is None:
        raise UvError("uv is not installed or not on PATH")
    return uv


async def run_uv_async(
    args: list[str],
    cwd: Path,
    *,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    check: bool = True,
) -> UvResult:
    """Run uv without blocking the event loop.

    Raises:
        UvError: On timeout, or if check is True and uv exits non-zero.
    """
    cmd = [find_uv(), *args]
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    start = time.monotonic()
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=run_env,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except (asyncio.TimeoutError, TimeoutError):
        process.kill()
        await process.wait()
        raise UvError(f"uv timed out after {timeout}s", command=" ".join(["uv", *args])) from None

    duration_ms = int((time.monotonic() - start) * 1000)
    returncode = process.returncode or 0
    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")

    if check and returncode != 0:
        raise UvError(
            err.strip() or f"uv exited with code {returncode}",
            command=" ".join(["uv", *args]),
        )
    return UvResult(returncode, out, err, duration_ms)
