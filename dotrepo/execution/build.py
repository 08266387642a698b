"""Build orchestration -- prepare, build in dependency order, restore.

1. **Prepare**: create the local package feed and register it in every
   NuGet config (``prepare_projects``).
2. **Build**: walk the dependency graph leaves-first; for each project run
   ``dotnet build`` then ``dotnet pack`` into the feed, streaming output
   under a colored ``{project}:`` prefix.  The first failing project stops
   the walk, so nothing that depends on it is built.
3. **Restore**: whatever happened in step 2, reload the projects from disk
   and prepare again, returning the workspace to its buildable baseline.
4. Re-raise the failure captured in step 2, if any.

Builds are strictly sequential: a project may consume the packages of
everything built before it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from dotrepo.execution.colors import ColorAllocator
from dotrepo.managers.nuget import prepare_projects
from dotrepo.managers.projects import load_workspace_projects

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dotrepo.context import WorkspaceSession
    from dotrepo.execution.process import CommandRunner
    from dotrepo.graph.graph import Graph
    from dotrepo.models.project import Project

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class BuildResult:
    """Outcome of a successful workspace build."""

    built: list[str] = field(default_factory=list)
    duration_ms: int = 0


# ---------------------------------------------------------------------------
# Per-project scripts
# ---------------------------------------------------------------------------


def build_scripts(project: Project, staging: Path) -> list[list[str]]:
    """``dotnet`` invocations that build one project and pack it into the feed."""
    project_file = Path(project.path).name
    return [
        ["build", project_file],
        ["pack", project_file, "--no-build", "-o", str(staging)],
    ]


async def run_project_scripts(
    project: Project,
    scripts: Sequence[Sequence[str]],
    *,
    root: Path,
    runner: CommandRunner,
    dotnet: str,
    color: str | None,
) -> None:
    """Run ``scripts`` one after the other in the project's directory.

    All scripts of a project share one prefix color.  Raises ``ToolError``
    on the first failing script.
    """
    cwd = root / Path(project.path).parent
    for args in scripts:
        await runner.stream(
            dotnet,
            list(args),
            cwd=cwd,
            prefix=project.id,
            color=color,
            project=project,
        )


async def build_workspace_projects(
    graph: Graph,
    root: Path,
    runner: CommandRunner,
    *,
    dotnet: str = "dotnet",
    staging: Path,
    colors: ColorAllocator,
    built: list[str],
) -> None:
    """Build every project of ``graph`` in topological order.

    ``built`` receives the id of each project as soon as it succeeds, so the
    caller keeps the progress even when a later project fails.
    """
    for node in graph.get_topological_order():
        project = node.value
        if project is None:
            continue
        logger.info("Building %s", project.id)
        await run_project_scripts(
            project,
            build_scripts(project, staging),
            root=root,
            runner=runner,
            dotnet=dotnet,
            color=colors.next_color(),
        )
        built.append(project.id)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


async def build_workspace(session: WorkspaceSession, *, colors: ColorAllocator | None = None) -> BuildResult:
    """Prepare, build every project leaves-first, and always restore afterwards.

    Raises the first build failure (typically ``ToolError`` naming the
    project and exit code) only after the restore pass has completed.
    """
    start_time = time.monotonic()
    settings = session.settings
    staging = session.root / settings.staging_dir
    colors = colors or ColorAllocator(enabled=not settings.ci)

    # -- 1. Prepare ------------------------------------------------------------
    logger.info("Preparing projects for build")
    await prepare_projects(session.projects, session.root, session.config, staging_dir=settings.staging_dir)

    # -- 2. Build --------------------------------------------------------------
    built: list[str] = []
    build_error: Exception | None = None
    try:
        await build_workspace_projects(
            session.graph,
            session.root,
            session.runner,
            dotnet=settings.dotnet,
            staging=staging,
            colors=colors,
            built=built,
        )
    except Exception as exc:
        logger.error("Build failed: %s", exc)  # noqa: TRY400
        build_error = exc

    # -- 3. Restore ------------------------------------------------------------
    logger.info("Restoring projects after build")
    current = await load_workspace_projects(session.root, session.config)
    await prepare_projects(current, session.root, session.config, staging_dir=settings.staging_dir)

    # -- 4. Report -------------------------------------------------------------
    duration_ms = int((time.monotonic() - start_time) * 1000)
    if build_error is not None:
        raise build_error

    logger.info("Built %d projects in %dms", len(built), duration_ms)
    return BuildResult(built=built, duration_ms=duration_ms)
