"""Local filesystem lock store.

Stores the lock as JSON at the workspace root::

    {root}/workspace-lock.json

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.  Writes are
atomic (temp file + rename), so a crash mid-write never leaves a torn lock.

Project entries are stored without their ``id`` (the key carries it) and
solutions list their members as bare project ids, resolved back to the
lock's own project objects on read.
"""

from __future__ import annotations

import json
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread
from loguru import logger

from dotrepo.models.lock import LockFile
from dotrepo.models.project import Project
from dotrepo.models.solution import Solution
from dotrepo.utils import atomic_write, read_file

LOCK_FILE_NAME = "workspace-lock.json"


class LocalLockStore:
    """Local filesystem implementation of the LockStore protocol."""

    def __init__(self, root: str | Path, file_name: str = LOCK_FILE_NAME) -> None:
        self.path = Path(root) / file_name

    async def read(self) -> LockFile | None:
        try:
            raw = await to_thread.run_sync(partial(read_file, self.path))
        except FileNotFoundError:
            return None
        return load_lock(json.loads(raw))

    async def write(self, lock: LockFile) -> None:
        await to_thread.run_sync(partial(atomic_write, self.path, dump_lock(lock)))
        logger.debug("Saved lock {} (mode={})", self.path, lock.mode)


# -- Serialization -------------------------------------------------------------


def dump_lock(lock: LockFile) -> str:
    # Mode flags are only written while set.
    unset = {name for name in ("in_development", "entering_development") if not getattr(lock, name)}
    return lock.model_dump_json(indent=2, by_alias=True, exclude=unset) + "\n"


def load_lock(data: dict[str, Any]) -> LockFile:
    projects = {
        project_id: Project.model_validate({**entry, "id": project_id})
        for project_id, entry in data.get("projects", {}).items()
    }
    solutions = {
        solution_id: Solution(
            id=solution_id,
            path=entry["path"],
            projects=[projects[pid] for pid in entry.get("projects", []) if pid in projects],
        )
        for solution_id, entry in data.get("solutions", {}).items()
    }
    return LockFile(
        in_development=bool(data.get("inDevelopment", False)),
        entering_development=bool(data.get("enteringDevelopment", False)),
        projects=projects,
        solutions=solutions,
    )
