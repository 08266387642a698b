"""Local package feed preparation.

Builds pack every project into a staging directory inside the workspace
(``.repo/pkg`` by default) so that dependents restore each other's freshly
built packages without publishing anything.  Preparing means creating that
directory and registering it as a ``Local`` source in every ``nuget.config``
of the workspace.  Running it again changes nothing.
"""

from __future__ import annotations

import os
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from dotrepo import grammar
from dotrepo.utils import atomic_write, glob_workspace, read_file, run_concurrently

if TYPE_CHECKING:
    from dotrepo.models.config import Configuration
    from dotrepo.models.project import Project


def add_local_source(content: str, config_path: Path, staging_dir: Path) -> str:
    """Register ``staging_dir`` as the ``Local`` package source, unless already present."""
    if grammar.NUGET_LOCAL_SOURCE.search(content):
        return content
    relative = Path(os.path.relpath(staging_dir, config_path.parent)).as_posix()
    entry = f'<add key="Local" value="{relative}" />'
    return grammar.NUGET_PACKAGE_SOURCES.sub(lambda m: f"{m.group(0)}{entry}{m.group(1)}", content, count=1)


def find_nuget_configs(root: Path, projects: dict[str, Project], config: Configuration | None) -> list[Path]:
    """``nuget.config`` files under the package globs, at the root, or next to a project."""
    found = set(glob_workspace(root, config.packages if config else None, grammar.NUGET_CONFIG_NAME))
    candidates = [root, *(root / Path(p.path).parent for p in projects.values())]
    for directory in candidates:
        for entry in directory.glob(grammar.NUGET_CONFIG_NAME, case_sensitive=False):
            if entry.is_file():
                found.add(entry)
    return sorted(found)


async def prepare_projects(
    projects: dict[str, Project],
    root: str | Path,
    config: Configuration | None = None,
    *,
    staging_dir: str = ".repo/pkg",
) -> list[Path]:
    """Create the staging feed and point every NuGet config at it.

    Returns the configuration files that were modified.
    """
    root = Path(root)
    staging = root / staging_dir
    await to_thread.run_sync(partial(staging.mkdir, parents=True, exist_ok=True))

    configs = await to_thread.run_sync(partial(find_nuget_configs, root, projects, config))
    modified: list[Path] = []

    async def _prepare(path: Path) -> None:
        content = await to_thread.run_sync(partial(read_file, path))
        updated = add_local_source(content, path, staging)
        if updated != content:
            await to_thread.run_sync(partial(atomic_write, path, updated))
            modified.append(path)

    await run_concurrently(_prepare, configs)
    logger.debug("Prepared {} NuGet configs ({} modified) for {}", len(configs), len(modified), staging)
    return sorted(modified)
