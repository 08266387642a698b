"""Tests for the git command wrapper, answered by the recording fake runner."""

from __future__ import annotations

from pathlib import Path

from dotrepo.execution.process import CommandResult
from dotrepo.managers.git import GitRepository


async def test_queries(tmp_path: Path, runner) -> None:
    repo = GitRepository(tmp_path, runner)

    assert await repo.is_anything_committed() is True
    assert await repo.current_branch() == "main"
    assert await repo.remote_branch_exists("origin", "main") is True
    assert await repo.is_behind_upstream("origin", "main") is False

    assert runner.commands("show-ref") == [["show-ref", "--verify", "refs/remotes/origin/main"]]
    assert runner.commands("remote") == [["remote", "update"]]
    assert ["rev-list", "--left-right", "--count", "origin/main...main"] in runner.commands("rev-list")
    assert {call.cwd for call in runner.calls} == {tmp_path}


async def test_empty_repository_and_missing_remote_branch(tmp_path: Path, runner) -> None:
    runner.responses = {
        ("git", "rev-list", "--all"): CommandResult(stdout="0\n", exit_code=0),
        ("git", "show-ref"): CommandResult(stdout="fatal: 'refs/remotes/origin/topic' - not a valid ref", exit_code=128),
    }
    repo = GitRepository(tmp_path, runner)

    assert await repo.is_anything_committed() is False
    assert await repo.remote_branch_exists("origin", "topic") is False


async def test_behind_upstream(tmp_path: Path, runner) -> None:
    runner.responses[("git", "rev-list", "--left-right")] = CommandResult(stdout="3\t1\n", exit_code=0)

    assert await GitRepository(tmp_path, runner).is_behind_upstream("origin", "main") is True


async def test_commit_and_tag(tmp_path: Path, runner) -> None:
    repo = GitRepository(tmp_path, runner, git="/usr/bin/git")

    tag = await repo.commit_and_tag("1.4.0")

    assert tag == "v1.4.0"
    assert [call.args for call in runner.calls] == [
        ["add", "--", "."],
        ["commit", "-m", "v1.4.0"],
        ["tag", "v1.4.0", "-m", "v1.4.0"],
    ]
    assert {call.command for call in runner.calls} == {"/usr/bin/git"}


async def test_commit_message_placeholders(tmp_path: Path, runner) -> None:
    await GitRepository(tmp_path, runner).commit_and_tag("1.4.0", message="chore: release %s (%v)")

    assert runner.commands("commit") == [["commit", "-m", "chore: release v1.4.0 (1.4.0)"]]


async def test_push(tmp_path: Path, runner) -> None:
    await GitRepository(tmp_path, runner).push("upstream", "main")

    assert runner.commands("push") == [["push", "--follow-tags", "--no-verify", "--atomic", "upstream", "main"]]
