"""Filesystem and concurrency helpers shared by the loaders and rewriters.

The sync helpers are meant to run in the thread pool via
``anyio.to_thread.run_sync``.
"""

from __future__ import annotations

import contextlib
import os
import posixpath
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence


def atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    Line endings are written exactly as given.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def read_file(path: Path) -> str:
    """Read file contents without newline translation.  Raises ``FileNotFoundError`` if missing."""
    with path.open(encoding="utf-8", newline="") as f:
        return f.read()


def relative_path_between_files(source: str, destination: str) -> str:
    """Path to ``destination`` from the directory containing ``source``.

    Both are workspace-relative POSIX paths; so is the result.
    """
    origin = posixpath.dirname(source) or "."
    return posixpath.relpath(destination, origin)


def to_workspace_path(root: Path, path: Path) -> str:
    """Workspace-relative POSIX form of an absolute path under ``root``."""
    return Path(os.path.relpath(path, root)).as_posix()


def glob_workspace(root: Path, packages: Sequence[str] | None, pattern: str) -> list[Path]:
    """Find files named like ``pattern`` under each package glob (or the whole root).

    The result is deduplicated and sorted so discovery order is stable.
    """
    found: set[Path] = set()
    if packages:
        for package in packages:
            found.update(root.glob(f"{package}/**/{pattern}", case_sensitive=False))
    else:
        found.update(root.glob(f"**/{pattern}", case_sensitive=False))
    return sorted(p for p in found if p.is_file())


async def run_concurrently[T](func: Callable[[T], Awaitable[object]], items: Iterable[T]) -> None:
    """Run ``func`` for every item concurrently and wait for all of them.

    Siblings are not cancelled when one fails.  Every failure is logged and
    the first one is re-raised once the whole batch has finished, so no
    failure is ever swallowed.
    """
    failures: list[Exception] = []

    async def _guard(item: T) -> None:
        try:
            await func(item)
        except Exception as exc:  # noqa: BLE001
            failures.append(exc)

    async with anyio.create_task_group() as tg:
        for item in items:
            tg.start_soon(_guard, item)

    if failures:
        for extra in failures[1:]:
            logger.error("Concurrent step failed: {}", extra)
        raise failures[0]
