"""Shared test fixtures: an on-disk sample workspace and a fake ``dotnet``.

The workspace holds two participating projects, ``Core`` and ``Api``
(``Api`` depends on ``Core@1.0.0``), an unrelated ``Tools`` project that
only references public packages, one solution and one NuGet config.
Nothing here needs the .NET SDK: every ``dotnet`` call goes through
``FakeRunner``, which records it and answers from canned output.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from loguru import logger

from dotrepo.context import WorkspaceSession, open_session
from dotrepo.execution.process import CommandResult, ToolError
from dotrepo.models.project import Project
from dotrepo.settings import DotrepoSettings, _get_settings_cached

CORE_CSPROJ = """\
<Project Sdk="Microsoft.NET.Sdk">

  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <Version>1.0.0</Version>
  </PropertyGroup>

  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />
  </ItemGroup>

</Project>
"""

API_CSPROJ = """\
<Project Sdk="Microsoft.NET.Sdk.Web">

  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <Version>1.0.0</Version>
  </PropertyGroup>

  <ItemGroup>
    <PackageReference Include="Core" Version="1.0.0" />
    <PackageReference Include="Serilog" Version="3.1.1" />
  </ItemGroup>

</Project>
"""

TOOLS_CSPROJ = """\
<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <PackageReference Include="Serilog" Version="3.1.1" />
  </ItemGroup>
</Project>
"""

NUGET_CONFIG = """\
<?xml version="1.0" encoding="utf-8"?>
<configuration>
  <packageSources>
    <add key="nuget.org" value="https://api.nuget.org/v3/index.json" />
  </packageSources>
</configuration>
"""

SOLUTION_LISTING = """\
Project(s)
----------
Api.csproj
"""

# A clean checkout of "main", level with "origin/main".
GIT_RESPONSES = {
    ("git", "rev-list", "--all"): CommandResult(stdout="1\n", exit_code=0),
    ("git", "rev-list", "--left-right"): CommandResult(stdout="0\t0\n", exit_code=0),
    ("git", "rev-parse", "--abbrev-ref"): CommandResult(stdout="main\n", exit_code=0),
}


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


@dataclass
class RecordedCall:
    command: str
    args: list[str]
    cwd: Path | None = None
    prefix: str | None = None
    color: str | None = None
    project: str | None = None


@dataclass
class FakeRunner:
    """Records every command; answers ``sln list`` from ``listings``.

    ``responses`` holds canned results for ``run``, keyed by words that must
    all appear in the command line; the first match wins.  ``failures`` maps
    a project id to the exit code its streamed commands fail with.
    """

    listings: dict[str, str] = field(default_factory=dict)
    responses: dict[tuple[str, ...], CommandResult] = field(default_factory=dict)
    failures: dict[str, int] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    async def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        project: Project | None = None,
    ) -> CommandResult:
        self.calls.append(RecordedCall(command, list(args), Path(cwd) if cwd else None))
        argv = [command, *args]
        for words, result in self.responses.items():
            if all(word in argv for word in words):
                if check and result.exit_code:
                    raise ToolError(command, args, result.exit_code, project=project, output=result.stdout)
                return result
        if len(args) >= 3 and args[0] == "sln" and args[2] == "list":
            return CommandResult(stdout=self.listings.get(Path(args[1]).name, ""), exit_code=0)
        return CommandResult(stdout="", exit_code=0)

    async def stream(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        prefix: str | None = None,
        color: str | None = None,
        project: Project | None = None,
    ) -> CommandResult:
        self.calls.append(
            RecordedCall(
                command,
                list(args),
                Path(cwd) if cwd else None,
                prefix=prefix,
                color=color,
                project=project.id if project else None,
            )
        )
        exit_code = self.failures.get(project.id, 0) if project else 0
        if exit_code:
            raise ToolError(command, args, exit_code, project=project)
        return CommandResult(stdout="", exit_code=0)

    def commands(self, subcommand: str) -> list[list[str]]:
        """Arguments of every recorded call whose first argument is ``subcommand``."""
        return [call.args for call in self.calls if call.args and call.args[0] == subcommand]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def write_workspace(root: Path, *, version: str = "1.0.0") -> Path:
    """Lay out the sample workspace under ``root``."""
    files = {
        "dotrepo.json": f'{{\n  "version": "{version}",\n  "packages": [\n    "packages/*"\n  ]\n}}\n',
        "packages/Core/Core.csproj": CORE_CSPROJ,
        "packages/Api/Api.csproj": API_CSPROJ,
        "packages/Api/App.sln": "\n",
        "packages/Api/nuget.config": NUGET_CONFIG,
        "packages/Tools/Tools.csproj": TOOLS_CSPROJ,
    }
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
    return root


@pytest.fixture(autouse=True)
def _reset_settings_and_logging() -> Iterator[None]:
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()
    # The CLI reconfigures loguru onto streams that are closed after each test.
    logger.remove()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    return write_workspace(tmp_path / "repo")


@pytest.fixture
def settings() -> DotrepoSettings:
    return DotrepoSettings(ci=True)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner(listings={"App.sln": SOLUTION_LISTING}, responses=dict(GIT_RESPONSES))


@pytest.fixture
async def session(workspace: Path, settings: DotrepoSettings, runner: FakeRunner) -> WorkspaceSession:
    return await open_session(workspace, settings=settings, runner=runner)
