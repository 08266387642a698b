"""Project discovery, parsing and dependency rewriting.

Loading turns every ``.csproj`` under the workspace into a ``Project``,
keeps only dependencies that point at other workspace projects, and builds
the dependency graph.  The rewrite half converts each local dependency tag
between its release form (``PackageReference``) and its development form
(``ProjectReference``); each substitution targets one tag and leaves the
rest of the file byte-for-byte intact.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from dotrepo import grammar
from dotrepo.graph.graph import Graph
from dotrepo.models.project import Dependency, PackageDependency, Project, ProjectDependency
from dotrepo.utils import (
    atomic_write,
    glob_workspace,
    read_file,
    relative_path_between_files,
    run_concurrently,
    to_workspace_path,
)

if TYPE_CHECKING:
    import re
    from collections.abc import Callable

    from dotrepo.models.config import Configuration


class ProjectParseError(ValueError):
    """A project or solution file could not be understood."""


class ProjectRewriteError(RuntimeError):
    """Rewriting a project file failed."""

    def __init__(self, project_id: str, path: Path | str, cause: BaseException) -> None:
        self.project_id = project_id
        self.path = str(path)
        super().__init__(f"Failed to rewrite project '{project_id}' ({path}): {cause}")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_project(path: str, content: str) -> Project:
    """Build a ``Project`` from a file path and its contents.

    Raises ``ProjectParseError`` if the path has no project identifier or a
    reference tag is missing a required attribute.
    """
    project_id = grammar.match_project_id(path)
    if not project_id:
        msg = f'Invalid project path "{path}"'
        raise ProjectParseError(msg)

    version_match = grammar.PROJECT_VERSION.search(content)
    version = version_match.group(1).strip() if version_match else ""

    dependencies = [_parse_reference(path, m) for m in grammar.REFERENCE_TAG.finditer(content)]
    return Project(id=project_id, path=path, version=version, dependencies=dependencies)


def _parse_reference(path: str, match: re.Match[str]) -> Dependency:
    kind, attributes = match.group(1), match.group(2)
    include_match = grammar.REFERENCE_INCLUDE.search(attributes)
    include = include_match.group(1) if include_match else ""

    if kind.lower() == "project":
        referenced_id = grammar.match_project_id(include) if include else None
        if not referenced_id:
            msg = f'Failed to parse reference tag in "{path}": "{match.group(0)}"'
            raise ProjectParseError(msg)
        return ProjectDependency(id=referenced_id, path=include)

    version_match = grammar.REFERENCE_VERSION.search(attributes)
    if not include or not version_match:
        msg = f'Failed to parse reference tag in "{path}": "{match.group(0)}"'
        raise ProjectParseError(msg)
    return PackageDependency(id=include, version=version_match.group(1))


async def load_project(path: str | Path) -> Project:
    """Load a single project from a ``.csproj`` file."""
    content = await to_thread.run_sync(partial(read_file, Path(path)))
    return parse_project(Path(path).as_posix(), content)


# ---------------------------------------------------------------------------
# Workspace loading
# ---------------------------------------------------------------------------


def remove_external_dependencies(project: Project, workspace_ids: set[str]) -> Project:
    """Return a copy of ``project`` keeping only dependencies on workspace projects."""
    dependencies = [d for d in project.dependencies if d.id in workspace_ids]
    return project.model_copy(update={"dependencies": dependencies})


def _participating_projects(discovered: list[Project]) -> list[Project]:
    """Strip external dependencies and drop projects with nothing left to manage.

    Dropping a project can orphan a dependency on it, so this repeats until
    no further project is dropped.
    """
    kept = discovered
    while True:
        workspace_ids = {p.id for p in kept}
        stripped = [remove_external_dependencies(p, workspace_ids) for p in kept]
        participating = [p for p in stripped if p.version or p.dependencies]
        for dropped in stripped:
            if not (dropped.version or dropped.dependencies):
                logger.trace("Ignoring project {} (no version, no local dependencies)", dropped.id)
        if len(participating) == len(stripped):
            return participating
        kept = participating


async def load_workspace_projects(
    root: str | Path,
    config: Configuration | None = None,
    *,
    strict: bool = False,
) -> dict[str, Project]:
    """Load all projects of a workspace, keyed by id in discovery order.

    Files are found under each ``config.packages`` glob (the whole root when
    there is no configuration).  A file that fails to parse is skipped with
    a warning unless ``strict`` is set, in which case the error propagates.

    Dependencies on anything outside the workspace are dropped, then every
    project left with neither a version nor a dependency is dropped too.
    Paths are returned relative to ``root``.
    """
    root = Path(root)
    packages = config.packages if config else None
    files = await to_thread.run_sync(partial(glob_workspace, root, packages, f"*{grammar.PROJECT_EXTENSION}"))
    logger.debug("Found {} project files under {}", len(files), root)

    loaded: dict[Path, Project] = {}

    async def _load(file: Path) -> None:
        try:
            loaded[file] = await load_project(file)
        except ProjectParseError as exc:
            if strict:
                raise
            logger.warning("Skipping project file {}: {}", file, exc)

    await run_concurrently(_load, files)

    discovered = [loaded[f] for f in files if f in loaded]
    participating = _participating_projects(discovered)

    projects: dict[str, Project] = {}
    for local in participating:
        if local.id in projects:
            logger.warning("Duplicate project id {} at {}, keeping {}", local.id, local.path, projects[local.id].path)
            continue
        local.path = to_workspace_path(root, Path(local.path))
        projects[local.id] = local

    logger.debug("Loaded {} workspace projects", len(projects))
    return projects


def create_dependency_graph(projects: dict[str, Project]) -> Graph:
    """One node per project (payload = project), one edge per local dependency."""
    graph = Graph()
    for project in projects.values():
        graph.add_node(project.id, project)
    for project in projects.values():
        for dependency in project.dependencies:
            graph.add_edge(project.id, dependency.id)
    return graph


# ---------------------------------------------------------------------------
# Development mode rewrites
# ---------------------------------------------------------------------------


def rewrite_to_development(content: str, project: Project, projects: dict[str, Project]) -> str:
    """Replace each local package reference of ``project`` with a project reference."""
    for dependency in project.package_dependencies:
        target = projects.get(dependency.id)
        if target is None:
            continue
        relative = relative_path_between_files(project.path, target.path)
        replacement = grammar.project_reference_tag(relative)
        content = grammar.package_reference_pattern(dependency.id).sub(lambda _m: replacement, content, count=1)
    return content


def rewrite_to_release(
    content: str,
    project: Project,
    snapshot: dict[str, Project],
    current: dict[str, Project],
) -> str:
    """Inverse of ``rewrite_to_development``.

    ``snapshot`` is the release-mode view recorded when development mode was
    entered; it says which tags were converted and where they point.  The
    version written back is the dependency's current version, falling back
    to the pinned one when the dependency has none.
    """
    for dependency in project.package_dependencies:
        target = snapshot.get(dependency.id)
        if target is None:
            continue
        live = current.get(dependency.id)
        version = (live.version if live else "") or target.version or dependency.version
        relative = relative_path_between_files(project.path, target.path)
        replacement = grammar.package_reference_tag(dependency.id, version)
        content = grammar.project_reference_pattern(relative).sub(lambda _m: replacement, content, count=1)
    return content


def merge_release_snapshot(live: dict[str, Project], recorded: dict[str, Project]) -> dict[str, Project]:
    """Release-mode view of ``live`` after an interrupted switch to development.

    Files rewritten by the interrupted run now load with project references.
    Each of those takes back the package reference ``recorded`` holds for the
    same dependency, so the snapshot still says which tags to convert back.
    """
    merged: dict[str, Project] = {}
    for project_id, project in live.items():
        previous = recorded.get(project_id)
        if previous is None or not project.project_dependencies:
            merged[project_id] = project
            continue
        pinned = {d.id: d for d in previous.package_dependencies}
        dependencies = [pinned.get(d.id, d) if isinstance(d, ProjectDependency) else d for d in project.dependencies]
        merged[project_id] = project.model_copy(update={"dependencies": dependencies})
    return merged


async def _rewrite_file(root: Path, project: Project, transform: Callable[[str], str]) -> bool:
    full_path = root / project.path
    try:
        content = await to_thread.run_sync(partial(read_file, full_path))
        updated = transform(content)
        if updated == content:
            return False
        await to_thread.run_sync(partial(atomic_write, full_path, updated))
    except OSError as exc:
        raise ProjectRewriteError(project.id, full_path, exc) from exc
    return True


async def setup_projects_to_development(projects: dict[str, Project], root: str | Path) -> None:
    """Rewrite every project's local package references into project references."""
    root = Path(root)

    async def _setup(project: Project) -> None:
        logger.debug('Setting up project "{}" to development mode', project.id)
        changed = await _rewrite_file(root, project, lambda c: rewrite_to_development(c, project, projects))
        if changed:
            logger.trace("Rewrote {}", project.path)

    await run_concurrently(_setup, list(projects.values()))


async def restore_projects_to_release(
    snapshot: dict[str, Project],
    current: dict[str, Project],
    root: str | Path,
) -> None:
    """Rewrite the project references created by development mode back into package references."""
    root = Path(root)

    async def _restore(project: Project) -> None:
        logger.debug('Restoring project "{}" to release mode', project.id)
        changed = await _rewrite_file(root, project, lambda c: rewrite_to_release(c, project, snapshot, current))
        if changed:
            logger.trace("Rewrote {}", project.path)

    await run_concurrently(_restore, list(snapshot.values()))
