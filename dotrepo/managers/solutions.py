"""Solution discovery and development-mode membership.

Solution files are never parsed or edited directly: members are listed,
added and removed through ``dotnet sln``.  That tool treats the ``.sln`` as
unlocked mutable state, so commands for one solution are always issued one
at a time; different solutions are handled concurrently.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from dotrepo import grammar
from dotrepo.managers.projects import ProjectParseError
from dotrepo.models.solution import Solution
from dotrepo.utils import glob_workspace, run_concurrently, to_workspace_path

if TYPE_CHECKING:
    from dotrepo.execution.process import CommandRunner
    from dotrepo.graph.graph import Graph
    from dotrepo.models.config import Configuration
    from dotrepo.models.project import Project

DEPENDENCIES_FOLDER = "_Dependencies"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def parse_solution_listing(output: str) -> list[str]:
    """Extract member project ids from ``dotnet sln list`` output.

    The listing is a header, a dashed separator line, then one project path
    per line.
    """
    parts = grammar.SOLUTION_LIST_SEPARATOR.split(output, maxsplit=1)
    if len(parts) < 2:
        return []
    ids: list[str] = []
    for line in parts[1].splitlines():
        project_id = grammar.match_project_id(line.strip())
        if project_id:
            ids.append(project_id)
    return ids


async def load_solution(
    path: str | Path,
    projects: dict[str, Project],
    runner: CommandRunner,
    *,
    dotnet: str = "dotnet",
) -> Solution:
    """Load one solution and resolve its members against ``projects``.

    Members that are not workspace projects are dropped.
    """
    path = Path(path)
    solution_id = grammar.match_solution_id(path.as_posix())
    if not solution_id:
        msg = f'Invalid solution path "{path}"'
        raise ProjectParseError(msg)

    logger.trace("Loading solution {}", path)
    result = await runner.run(dotnet, ["sln", str(path), "list"])
    members = [projects[pid] for pid in parse_solution_listing(result.stdout) if pid in projects]
    return Solution(id=solution_id, path=path.as_posix(), projects=members)


async def load_workspace_solutions(
    root: str | Path,
    projects: dict[str, Project],
    runner: CommandRunner,
    config: Configuration | None = None,
    *,
    dotnet: str = "dotnet",
) -> dict[str, Solution]:
    """Load all solutions of a workspace, keyed by id in discovery order."""
    root = Path(root)
    packages = config.packages if config else None
    files = await to_thread.run_sync(partial(glob_workspace, root, packages, f"*{grammar.SOLUTION_EXTENSION}"))

    loaded: dict[Path, Solution] = {}

    async def _load(file: Path) -> None:
        loaded[file] = await load_solution(file, projects, runner, dotnet=dotnet)

    await run_concurrently(_load, files)

    solutions: dict[str, Solution] = {}
    for file in files:
        solution = loaded[file]
        solution.path = to_workspace_path(root, file)
        solutions[solution.id] = solution
    logger.debug("Loaded {} workspace solutions", len(solutions))
    return solutions


# ---------------------------------------------------------------------------
# Development mode
# ---------------------------------------------------------------------------


def get_missing_transitive_dependencies(solution: Solution, graph: Graph) -> list[str]:
    """Projects needed to build the solution's members that are not members themselves.

    Returned in discovery order: member order, then breadth-first.
    """
    members = set(solution.project_ids)
    missing: dict[str, None] = {}
    for project in solution.projects:
        node = graph.get_node(project.id)
        if node is None:
            continue
        for dependency in node.transitive_dependencies():
            if dependency.id not in members:
                missing.setdefault(dependency.id, None)
    return list(missing)


async def setup_solutions_to_development(
    solutions: dict[str, Solution],
    projects: dict[str, Project],
    graph: Graph,
    root: str | Path,
    runner: CommandRunner,
    *,
    dotnet: str = "dotnet",
    folder: str = DEPENDENCIES_FOLDER,
) -> None:
    """Add every missing transitive dependency to a synthetic folder in each solution."""
    root = Path(root)

    async def _setup(solution: Solution) -> None:
        logger.debug('Setting up solution "{}" to development mode', solution.id)
        full_path = root / solution.path
        for project_id in get_missing_transitive_dependencies(solution, graph):
            project_file = root / projects[project_id].path
            await runner.run(dotnet, ["sln", str(full_path), "add", "-s", folder, str(project_file)])

    await run_concurrently(_setup, list(solutions.values()))


async def restore_solutions_to_release(
    solutions: dict[str, Solution],
    projects: dict[str, Project],
    graph: Graph,
    root: str | Path,
    runner: CommandRunner,
    *,
    dotnet: str = "dotnet",
    folder: str = DEPENDENCIES_FOLDER,
) -> None:
    """Remove the projects added by development mode, then the synthetic folder.

    ``solutions``, ``projects`` and ``graph`` must describe the workspace as
    it was when development mode was entered.
    """
    root = Path(root)

    async def _restore(solution: Solution) -> None:
        logger.debug('Restoring solution "{}" to release mode', solution.id)
        full_path = root / solution.path
        for project_id in get_missing_transitive_dependencies(solution, graph):
            project_file = root / projects[project_id].path
            await runner.run(dotnet, ["sln", str(full_path), "remove", str(project_file)])

        # Newer dotnet versions drop the emptied folder on their own.
        result = await runner.run(dotnet, ["sln", str(full_path), "remove", folder], check=False)
        if result.exit_code != 0:
            logger.debug("Solution folder {} already gone from {}", folder, solution.id)

    await run_concurrently(_restore, list(solutions.values()))
