"""Release versioning -- check git, bump, commit and tag, push.

1. **Check**: when committing or pushing, the repository must have a
   commit, a checked out branch that exists on the remote, and nothing to
   pull.  Being behind the remote is an error, except in CI where it is a
   warning and the release stops without changing anything.
2. **Confirm**: the caller is shown the next version and may decline.
3. **Bump**: every project and ``dotrepo.json`` get the new version.
4. **Commit and tag** ``v{version}``, then **push** the branch with its tags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from dotrepo.managers.git import GitRepository
from dotrepo.managers.versions import DEFAULT_PREID, bump_workspace_version, next_version

if TYPE_CHECKING:
    from collections.abc import Callable

    from dotrepo.context import WorkspaceSession


class ReleaseError(RuntimeError):
    """The git repository cannot take a release commit."""


@dataclass
class ReleaseOptions:
    commit_and_tag: bool = True
    push: bool = True
    remote: str = "origin"
    message: str | None = None
    preid: str = DEFAULT_PREID


async def check_git_ready(repo: GitRepository, branch: str, options: ReleaseOptions, *, ci: bool) -> bool:
    """Raise ``ReleaseError`` when no release can be made.  ``False`` means skip quietly."""
    if not await repo.is_anything_committed():
        msg = "No commits in this repository. Please commit something before using version."
        raise ReleaseError(msg)

    if branch == "HEAD":
        msg = "Detached git HEAD, please checkout a branch to choose versions."
        raise ReleaseError(msg)

    if options.push and not await repo.remote_branch_exists(options.remote, branch):
        msg = (
            f"Branch '{branch}' doesn't exist in remote '{options.remote}'. "
            "If this is a new branch, please make sure you push it to the remote first."
        )
        raise ReleaseError(msg)

    if options.commit_and_tag and options.push and await repo.is_behind_upstream(options.remote, branch):
        message = f"Local branch '{branch}' is behind remote upstream {options.remote}/{branch}"
        if not ci:
            msg = f"{message}. Please merge remote changes into '{branch}' with 'git pull'."
            raise ReleaseError(msg)
        logger.warning("{}, exiting", message)
        return False

    return True


async def release_version(
    session: WorkspaceSession,
    bump: str,
    options: ReleaseOptions | None = None,
    *,
    confirm: Callable[[str, str], bool] | None = None,
) -> str | None:
    """Run a release.  Returns the new version, ``None`` if it was skipped or declined.

    ``confirm`` receives the current and the next version.
    """
    options = options or ReleaseOptions()
    current = session.config.version
    target = next_version(current, bump, preid=options.preid)

    repo = GitRepository(session.root, session.runner, git=session.settings.git)
    branch = ""
    if options.commit_and_tag or options.push:
        branch = await repo.current_branch()
        logger.info("Current branch: {}", branch)
        if not await check_git_ready(repo, branch, options, ci=session.settings.ci):
            return None

    if confirm is not None and not confirm(current, target):
        logger.info("Version bump declined")
        return None

    version = await bump_workspace_version(session, target)

    if options.commit_and_tag:
        await repo.commit_and_tag(version, message=options.message)
    else:
        logger.info("Skipping git commit and tag")

    if options.push:
        await repo.push(options.remote, branch)
    else:
        logger.info("Skipping git push")
    return version
