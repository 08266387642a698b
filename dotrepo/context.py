"""Workspace session.

Everything one dotrepo command needs about a workspace, loaded once at the
start of the command: configuration, projects, solutions, the dependency
graph and the lock record.  Operations receive the session explicitly and
the lock is only written back through ``WorkspaceSession.save``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from dotrepo.execution.process import ProcessRunner
from dotrepo.managers.config import create_sample_configuration, load_configuration
from dotrepo.managers.projects import create_dependency_graph, load_workspace_projects
from dotrepo.managers.solutions import load_workspace_solutions
from dotrepo.models.lock import LockFile
from dotrepo.settings import DotrepoSettings, get_settings
from dotrepo.store.local import LocalLockStore

if TYPE_CHECKING:
    from dotrepo.execution.process import CommandRunner
    from dotrepo.graph.graph import Graph
    from dotrepo.models.config import Configuration
    from dotrepo.models.enums import WorkspaceMode
    from dotrepo.models.project import Project
    from dotrepo.models.solution import Solution
    from dotrepo.store.base import LockStore


@dataclass
class WorkspaceSession:
    """Loaded state of one workspace for the duration of a command."""

    # -- Location --------------------------------------------------------------
    root: Path
    settings: DotrepoSettings

    # -- Workspace contents (as currently on disk) -----------------------------
    config: Configuration
    projects: dict[str, Project]
    solutions: dict[str, Solution]
    graph: Graph

    # -- Persistent mode record ------------------------------------------------
    lock: LockFile
    store: LockStore

    # -- Collaborators ---------------------------------------------------------
    runner: CommandRunner

    @property
    def mode(self) -> WorkspaceMode:
        return self.lock.mode

    async def save(self) -> None:
        """Persist the lock record."""
        await self.store.write(self.lock)


async def open_session(
    root: str | Path,
    *,
    settings: DotrepoSettings | None = None,
    runner: CommandRunner | None = None,
    store: LockStore | None = None,
    create_config: bool = False,
) -> WorkspaceSession:
    """Load a workspace.

    Reads the configuration (optionally creating a sample one first), loads
    projects and solutions, builds the dependency graph and reads the lock.
    A lock is created and saved right away on the first load of a workspace.
    """
    root = Path(root).resolve()
    settings = settings or get_settings()
    runner = runner or ProcessRunner()
    store = store or LocalLockStore(root, settings.lock_file)

    if create_config:
        await create_sample_configuration(root, settings.config_file)
    config = await load_configuration(root, settings.config_file)

    projects = await load_workspace_projects(root, config)
    solutions = await load_workspace_solutions(root, projects, runner, config, dotnet=settings.dotnet)
    graph = create_dependency_graph(projects)

    lock = await store.read()
    if lock is None:
        lock = LockFile(projects=dict(projects), solutions=dict(solutions))
        await store.write(lock)
        logger.info("Created workspace lock for {} projects", len(projects))

    logger.debug(
        "Workspace {} loaded: {} projects, {} solutions, mode={}",
        root,
        len(projects),
        len(solutions),
        lock.mode,
    )
    return WorkspaceSession(
        root=root,
        settings=settings,
        config=config,
        projects=projects,
        solutions=solutions,
        graph=graph,
        lock=lock,
        store=store,
        runner=runner,
    )
