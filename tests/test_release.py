"""Tests for release versioning: git checks, bump, commit, tag and push."""

from __future__ import annotations

import json

import pytest

from dotrepo.execution.process import CommandResult, ToolError
from dotrepo.execution.release import ReleaseError, ReleaseOptions, release_version
from dotrepo.managers.versions import InvalidVersionError


def _config_version(session) -> str:
    return json.loads((session.root / "dotrepo.json").read_text(encoding="utf-8"))["version"]


async def test_release_commits_tags_and_pushes(session, runner) -> None:
    runner.calls.clear()

    version = await release_version(session, "minor")

    assert version == "1.1.0"
    assert _config_version(session) == "1.1.0"
    git = [call.args for call in runner.calls if call.command == "git"]
    assert git[-4:] == [
        ["add", "--", "."],
        ["commit", "-m", "v1.1.0"],
        ["tag", "v1.1.0", "-m", "v1.1.0"],
        ["push", "--follow-tags", "--no-verify", "--atomic", "origin", "main"],
    ]
    # Readiness checks run before anything is written.
    assert git[0] == ["rev-parse", "--abbrev-ref", "HEAD"]
    assert ["remote", "update"] in git


async def test_release_without_git(session, runner) -> None:
    runner.calls.clear()

    version = await release_version(session, "patch", ReleaseOptions(commit_and_tag=False, push=False))

    assert version == "1.0.1"
    assert [call for call in runner.calls if call.command == "git"] == []


async def test_commit_without_push_skips_remote_checks(session, runner) -> None:
    runner.calls.clear()

    await release_version(session, "patch", ReleaseOptions(push=False))

    assert runner.commands("show-ref") == []
    assert runner.commands("remote") == []
    assert runner.commands("push") == []
    assert runner.commands("tag") == [["tag", "v1.0.1", "-m", "v1.0.1"]]


async def test_declined_release_changes_nothing(session, runner) -> None:
    seen: list[tuple[str, str]] = []

    def _decline(current: str, target: str) -> bool:
        seen.append((current, target))
        return False

    assert await release_version(session, "premajor", confirm=_decline) is None
    assert seen == [("1.0.0", "2.0.0-rc.0")]
    assert _config_version(session) == "1.0.0"
    assert runner.commands("commit") == []


@pytest.mark.parametrize(
    ("responses", "message"),
    [
        ({("git", "rev-list", "--all"): CommandResult("0\n", 0)}, "No commits in this repository"),
        ({("git", "rev-parse", "--abbrev-ref"): CommandResult("HEAD\n", 0)}, "Detached git HEAD"),
        ({("git", "show-ref"): CommandResult("", 128)}, "doesn't exist in remote 'origin'"),
        ({("git", "rev-list", "--left-right"): CommandResult("2\t0\n", 0)}, "is behind remote upstream origin/main"),
    ],
)
async def test_repository_not_ready(session, runner, settings, responses, message) -> None:
    settings.ci = False
    runner.responses.update(responses)

    with pytest.raises(ReleaseError, match=message):
        await release_version(session, "patch")

    assert _config_version(session) == "1.0.0"
    assert runner.commands("commit") == []


async def test_behind_upstream_in_ci_stops_quietly(session, runner) -> None:
    runner.responses[("git", "rev-list", "--left-right")] = CommandResult("1\t0\n", 0)

    assert session.settings.ci is True
    assert await release_version(session, "patch") is None
    assert _config_version(session) == "1.0.0"


async def test_unknown_bump_is_rejected_before_git(session, runner) -> None:
    runner.calls.clear()

    with pytest.raises(InvalidVersionError):
        await release_version(session, "huge")

    assert runner.calls == []


async def test_failed_push_keeps_the_bump(session, runner) -> None:
    runner.responses[("git", "push")] = CommandResult("rejected", 1)

    with pytest.raises(ToolError, match="git push"):
        await release_version(session, "patch")

    assert _config_version(session) == "1.0.1"
    assert runner.commands("tag") == [["tag", "v1.0.1", "-m", "v1.0.1"]]
