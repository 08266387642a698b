"""Development / release mode transitions.

The workspace is always in exactly one of two modes, recorded by the
lock's ``in_development`` flag:

- **release**: local dependencies are version-pinned package references.
- **development**: local dependencies are project references by relative
  path, and every solution additionally holds the projects its members
  transitively need, inside a synthetic ``_Dependencies`` folder.

Entering development snapshots the release-mode workspace into the lock;
leaving it works from that snapshot, because once in development the files
on disk no longer say which tags were converted.  The guard is checked
before anything is touched.

The snapshot is saved, with ``entering_development`` set, before the first
file is rewritten.  The mode flag only flips after every rewrite succeeded,
so a failed switch leaves the recorded mode unchanged.  Rerunning it resumes
from the saved snapshot: files rewritten by the failed run load with
project references, and those take their package form back from the lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from dotrepo.managers.projects import (
    create_dependency_graph,
    merge_release_snapshot,
    restore_projects_to_release,
    setup_projects_to_development,
)
from dotrepo.managers.solutions import restore_solutions_to_release, setup_solutions_to_development
from dotrepo.utils import run_concurrently

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dotrepo.context import WorkspaceSession
    from dotrepo.models.lock import LockFile
    from dotrepo.models.project import Project
    from dotrepo.models.solution import Solution


class ModeError(RuntimeError):
    """The requested transition does not start from the current mode."""


async def _all(*jobs: Callable[[], Awaitable[None]]) -> None:
    await run_concurrently(lambda job: job(), jobs)


def _release_snapshot(session: WorkspaceSession, lock: LockFile) -> tuple[dict[str, Project], dict[str, Solution]]:
    if not lock.entering_development:
        return dict(session.projects), dict(session.solutions)

    logger.warning("Resuming an interrupted switch to development mode")
    projects = merge_release_snapshot(session.projects, lock.projects)
    solutions: dict[str, Solution] = {}
    for solution_id, solution in session.solutions.items():
        # Membership as recorded, before projects were added to the dependencies folder.
        recorded = lock.solutions.get(solution_id, solution)
        members = [projects[pid] for pid in recorded.project_ids if pid in projects]
        solutions[solution_id] = solution.model_copy(update={"projects": members})
    return projects, solutions


async def enter_development(session: WorkspaceSession) -> None:
    """Release -> development.  Raises ``ModeError`` if already in development."""
    lock = session.lock
    if lock.in_development:
        msg = "Already in development mode, aborting."
        raise ModeError(msg)

    settings = session.settings
    projects, solutions = _release_snapshot(session, lock)
    graph = create_dependency_graph(projects)

    lock.projects = projects
    lock.solutions = solutions
    lock.entering_development = True
    await session.save()

    logger.info("Setting up {} projects and {} solutions to development mode", len(projects), len(solutions))
    await _all(
        lambda: setup_projects_to_development(projects, session.root),
        lambda: setup_solutions_to_development(
            solutions,
            projects,
            graph,
            session.root,
            session.runner,
            dotnet=settings.dotnet,
            folder=settings.dependencies_folder,
        ),
    )

    lock.in_development = True
    lock.entering_development = False
    await session.save()
    logger.info("Workspace is now in development mode")


async def exit_development(session: WorkspaceSession) -> None:
    """Development -> release.  Raises ``ModeError`` if not in development."""
    lock = session.lock
    if not lock.in_development:
        msg = "Not in development mode, aborting."
        raise ModeError(msg)

    settings = session.settings
    snapshot_graph = create_dependency_graph(lock.projects)
    logger.info("Restoring {} projects and {} solutions to release mode", len(lock.projects), len(lock.solutions))

    await _all(
        lambda: restore_projects_to_release(lock.projects, session.projects, session.root),
        lambda: restore_solutions_to_release(
            lock.solutions,
            lock.projects,
            snapshot_graph,
            session.root,
            session.runner,
            dotnet=settings.dotnet,
            folder=settings.dependencies_folder,
        ),
    )

    lock.in_development = False
    await session.save()
    logger.info("Workspace is now in release mode")
