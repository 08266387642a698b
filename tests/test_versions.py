"""Tests for workspace version bumps."""

from __future__ import annotations

import json

import pytest

from dotrepo.managers.versions import InvalidVersionError, bump_workspace_version, next_version


@pytest.mark.parametrize(
    ("current", "bump", "expected"),
    [
        ("1.2.3", "major", "2.0.0"),
        ("1.2.3", "minor", "1.3.0"),
        ("1.2.3", "patch", "1.2.4"),
        ("1.2.3", "4.0.0-beta.2", "4.0.0-beta.2"),
        # A prerelease of the requested release is finished, not skipped over.
        ("1.3.0-rc.1", "patch", "1.3.0"),
        ("1.2.0-rc.1", "minor", "1.2.0"),
        ("2.0.0-rc.1", "major", "2.0.0"),
        ("1.2.3-rc.1", "minor", "1.3.0"),
        ("1.2.3-rc.1", "major", "2.0.0"),
        # Prerelease lines.
        ("1.2.3", "premajor", "2.0.0-rc.0"),
        ("1.2.3", "preminor", "1.3.0-rc.0"),
        ("1.2.3", "prepatch", "1.2.4-rc.0"),
        ("1.2.3", "prerelease", "1.2.4-rc.0"),
        ("1.2.4-rc.0", "prerelease", "1.2.4-rc.1"),
        ("1.2.4-rc.1", "premajor", "2.0.0-rc.0"),
    ],
)
def test_next_version(current: str, bump: str, expected: str) -> None:
    assert next_version(current, bump) == expected


def test_prerelease_identifier() -> None:
    assert next_version("1.2.3", "preminor", preid="beta") == "1.3.0-beta.0"
    assert next_version("1.2.3-beta.0", "prerelease", preid="beta") == "1.2.3-beta.1"


def test_unknown_bump_keyword() -> None:
    with pytest.raises(InvalidVersionError, match="major, premajor, minor, preminor, patch, prepatch, prerelease"):
        next_version("1.0.0", "huge")


def test_malformed_current_version() -> None:
    with pytest.raises(InvalidVersionError, match="not a valid version"):
        next_version("one", "minor")


async def test_bump_workspace_version(session) -> None:
    version = await bump_workspace_version(session, "minor")

    assert version == "1.1.0"
    core = (session.root / "packages" / "Core" / "Core.csproj").read_text(encoding="utf-8")
    api = (session.root / "packages" / "Api" / "Api.csproj").read_text(encoding="utf-8")
    assert "<Version>1.1.0</Version>" in core
    assert "<Version>1.1.0</Version>" in api
    assert '<PackageReference Include="Core" Version="1.1.0" />' in api
    # Public packages keep their own versions.
    assert '<PackageReference Include="Newtonsoft.Json" Version="13.0.3" />' in core
    assert '<PackageReference Include="Serilog" Version="3.1.1" />' in api

    config = json.loads((session.root / "dotrepo.json").read_text(encoding="utf-8"))
    assert config["version"] == "1.1.0"
    assert session.projects["Core"].version == "1.1.0"


async def test_bump_workspace_to_prerelease(session) -> None:
    version = await bump_workspace_version(session, "premajor", preid="alpha")

    assert version == "2.0.0-alpha.0"
    api = (session.root / "packages" / "Api" / "Api.csproj").read_text(encoding="utf-8")
    assert '<PackageReference Include="Core" Version="2.0.0-alpha.0" />' in api
