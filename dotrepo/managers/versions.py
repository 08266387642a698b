"""Workspace-wide version bumps.

All projects of a workspace share the version recorded in ``dotrepo.json``.
A bump computes the next version, writes it into every project's
``<Version>`` element, re-pins local package references to it (release
mode only; in development mode those tags are project references and pick
the new version up when development mode is left), and saves the
configuration.

Keywords follow semver increments: a prerelease is first bumped to its own
release when that release is the requested one (``1.2.0-rc.1`` + ``minor``
gives ``1.2.0``), and the ``pre*`` keywords start a new prerelease line at
``{preid}.0``.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import semver
from anyio import to_thread
from loguru import logger

from dotrepo import grammar
from dotrepo.managers.config import save_configuration
from dotrepo.utils import atomic_write, read_file, run_concurrently

if TYPE_CHECKING:
    from dotrepo.context import WorkspaceSession
    from dotrepo.models.project import Project

BUMP_KEYWORDS = ("major", "premajor", "minor", "preminor", "patch", "prepatch", "prerelease")
DEFAULT_PREID = "rc"


class InvalidVersionError(ValueError):
    """The requested bump is neither a version nor a known keyword."""


def next_version(current: str, bump: str, *, preid: str = DEFAULT_PREID) -> str:
    """Resolve ``bump`` (an explicit version or one of ``BUMP_KEYWORDS``) against ``current``."""
    if semver.Version.is_valid(bump):
        return bump
    if bump not in BUMP_KEYWORDS:
        msg = f"bump must be an explicit version string or one of: {', '.join(BUMP_KEYWORDS)}"
        raise InvalidVersionError(msg)

    try:
        version = semver.Version.parse(current)
    except ValueError:
        msg = f"Current version {current!r} is not a valid version"
        raise InvalidVersionError(msg) from None

    match bump:
        case "premajor" | "preminor" | "prepatch":
            bumped = getattr(version, f"bump_{bump.removeprefix('pre')}")()
            return str(bumped.replace(prerelease=f"{preid}.0"))
        case "prerelease" if not version.prerelease:
            return str(version.bump_patch().replace(prerelease=f"{preid}.0"))
        case _:
            return str(version.next_version(bump, prerelease_token=preid))


def rewrite_version(content: str, project: Project, version: str) -> str:
    """Set the ``<Version>`` text and re-pin local package references, keeping all other bytes."""
    m = grammar.PROJECT_VERSION.search(content)
    if m is not None:
        content = f"{content[: m.start(1)]}{version}{content[m.end(1) :]}"
    for dependency in project.package_dependencies:
        tag = grammar.package_reference_tag(dependency.id, version)
        content = grammar.package_reference_pattern(dependency.id).sub(lambda _m: tag, content, count=1)
    return content


async def bump_workspace_version(session: WorkspaceSession, bump: str, *, preid: str = DEFAULT_PREID) -> str:
    """Bump every project and the configuration to the next version.  Returns it."""
    version = next_version(session.config.version, bump, preid=preid)
    logger.info("Bumping workspace version {} -> {}", session.config.version, version)

    async def _bump(project: Project) -> None:
        path = session.root / Path(project.path)
        content = await to_thread.run_sync(partial(read_file, path))
        updated = rewrite_version(content, project, version)
        if updated != content:
            await to_thread.run_sync(partial(atomic_write, path, updated))
        if project.version:
            project.version = version
        for dependency in project.package_dependencies:
            dependency.version = version

    await run_concurrently(_bump, list(session.projects.values()))

    session.config.version = version
    await save_configuration(session.root, session.config, session.settings.config_file)
    return version
