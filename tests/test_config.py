"""Tests for workspace configuration and tool settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dotrepo.managers.config import (
    ConfigurationError,
    create_sample_configuration,
    load_configuration,
    save_configuration,
)
from dotrepo.models.config import Configuration
from dotrepo.settings import get_settings


async def test_missing_configuration(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        await load_configuration(tmp_path)


async def test_invalid_configuration(tmp_path: Path) -> None:
    (tmp_path / "dotrepo.json").write_text('{"packages": "not-a-list"}')

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        await load_configuration(tmp_path)


async def test_create_sample_configuration(tmp_path: Path) -> None:
    assert await create_sample_configuration(tmp_path) is True
    assert json.loads((tmp_path / "dotrepo.json").read_text()) == {"version": "0.0.0", "packages": ["packages/*"]}

    # Existing configuration is never overwritten.
    (tmp_path / "dotrepo.json").write_text('{"version": "2.0.0", "packages": []}')
    assert await create_sample_configuration(tmp_path) is False
    assert (await load_configuration(tmp_path)).version == "2.0.0"


async def test_saved_configuration_layout(tmp_path: Path) -> None:
    await save_configuration(tmp_path, Configuration(version="1.0.0", packages=["packages/*"]))

    text = (tmp_path / "dotrepo.json").read_text(encoding="utf-8")
    assert text == '{\n  "version": "1.0.0",\n  "packages": [\n    "packages/*"\n  ]\n}\n'


async def test_save_and_load_with_sources(tmp_path: Path) -> None:
    config = Configuration(version="1.0.0", packages=["src/*"], sources=["https://feed.example/v3/index.json"])
    await save_configuration(tmp_path, config)

    assert await load_configuration(tmp_path) == config


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOTREPO_DOTNET", "/opt/dotnet/dotnet")
    monkeypatch.setenv("DOTREPO_CI", "true")

    settings = get_settings()

    assert settings.dotnet == "/opt/dotnet/dotnet"
    assert settings.ci is True
    assert settings.lock_file == "workspace-lock.json"
    assert get_settings() is settings
