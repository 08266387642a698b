"""Tests for the build orchestrator (prepare -> ordered build -> restore)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from dotrepo.execution.build import build_scripts, build_workspace
from dotrepo.execution.colors import ColorAllocator
from dotrepo.execution.process import ToolError
from dotrepo.managers.projects import load_workspace_projects
from dotrepo.models.project import Project


def test_build_scripts() -> None:
    project = Project(id="Core", path="packages/Core/Core.csproj", version="1.0.0")
    staging = Path("/repo/.repo/pkg")

    assert build_scripts(project, staging) == [
        ["build", "Core.csproj"],
        ["pack", "Core.csproj", "--no-build", "-o", str(staging)],
    ]


async def test_build_runs_in_dependency_order(session, runner) -> None:
    result = await build_workspace(session, colors=ColorAllocator())

    assert result.built == ["Core", "Api"]
    streamed = [c for c in runner.calls if c.project is not None]
    assert [(c.project, c.args[0]) for c in streamed] == [
        ("Core", "build"),
        ("Core", "pack"),
        ("Api", "build"),
        ("Api", "pack"),
    ]
    assert streamed[0].cwd == session.root / "packages" / "Core"
    assert streamed[0].prefix == "Core"
    assert streamed[1].args[-1] == str(session.root / ".repo" / "pkg")

    # One color per project, shared by all of its commands.
    assert streamed[0].color == streamed[1].color == "cyan"
    assert streamed[2].color == streamed[3].color == "magenta"


async def test_build_prepares_local_feed(session) -> None:
    await build_workspace(session)

    assert (session.root / ".repo" / "pkg").is_dir()
    nuget = (session.root / "packages" / "Api" / "nuget.config").read_text(encoding="utf-8")
    assert '<add key="Local" value="../../.repo/pkg" />' in nuget


async def test_ci_build_has_no_colors(session, runner) -> None:
    await build_workspace(session)

    assert all(c.color is None for c in runner.calls if c.project is not None)


async def test_build_failure_stops_dependents_and_still_restores(session, runner) -> None:
    runner.failures["Core"] = 3

    with (
        patch(
            "dotrepo.execution.build.load_workspace_projects",
            wraps=load_workspace_projects,
        ) as reload,
        pytest.raises(ToolError) as exc_info,
    ):
        await build_workspace(session)

    assert exc_info.value.project.id == "Core"
    assert exc_info.value.exit_code == 3
    assert "Core" in str(exc_info.value)

    built = {c.project for c in runner.calls if c.project is not None}
    assert built == {"Core"}
    assert runner.commands("pack") == []

    reload.assert_awaited_once()
