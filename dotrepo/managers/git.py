"""Git commands around a workspace release.

Every call goes through the session's ``CommandRunner`` with the workspace
root as working directory, so tests can answer them without a repository.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from dotrepo.execution.process import CommandResult, CommandRunner


class GitRepository:
    """The git repository holding a workspace."""

    def __init__(self, root: str | Path, runner: CommandRunner, *, git: str = "git") -> None:
        self.root = Path(root)
        self.runner = runner
        self.git = git

    async def _run(self, *args: str, check: bool = True) -> CommandResult:
        return await self.runner.run(self.git, list(args), cwd=self.root, check=check)

    # -- Queries ---------------------------------------------------------------

    async def is_anything_committed(self) -> bool:
        result = await self._run("rev-list", "--count", "--all", "--max-count=1")
        committed = int(result.stdout.strip() or 0) > 0
        logger.debug("Anything committed: {}", committed)
        return committed

    async def current_branch(self) -> str:
        """Checked out branch name, ``HEAD`` when detached."""
        result = await self._run("rev-parse", "--abbrev-ref", "HEAD")
        return result.stdout.strip()

    async def remote_branch_exists(self, remote: str, branch: str) -> bool:
        result = await self._run("show-ref", "--verify", f"refs/remotes/{remote}/{branch}", check=False)
        return result.exit_code == 0

    async def is_behind_upstream(self, remote: str, branch: str) -> bool:
        """Fetch ``remote`` and tell whether it has commits ``branch`` lacks."""
        await self._run("remote", "update")
        result = await self._run("rev-list", "--left-right", "--count", f"{remote}/{branch}...{branch}")
        behind, ahead = (int(count) for count in result.stdout.split())
        logger.debug("{} is behind {}/{} by {} commit(s) and ahead by {}", branch, remote, branch, behind, ahead)
        return behind > 0

    # -- Changes ---------------------------------------------------------------

    async def commit_and_tag(self, version: str, *, message: str | None = None) -> str:
        """Commit everything and tag it ``v{version}``.  Returns the tag.

        In ``message``, ``%s`` stands for the tag and ``%v`` for the version.
        The tag itself is the default message.
        """
        tag = f"v{version}"
        commit_message = message.replace("%s", tag).replace("%v", version) if message else tag
        await self._run("add", "--", ".")
        await self._run("commit", "-m", commit_message)
        await self._run("tag", tag, "-m", tag)
        logger.info("Committed and tagged {}", tag)
        return tag

    async def push(self, remote: str, branch: str) -> None:
        logger.info("Pushing {} and its tags to {}", branch, remote)
        await self._run("push", "--follow-tags", "--no-verify", "--atomic", remote, branch)
