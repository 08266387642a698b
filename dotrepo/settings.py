"""Tool configuration loaded from DOTREPO_* environment variables.

This is how dotrepo itself behaves (log level, which ``dotnet`` to call,
where the lock lives).  What the workspace contains is described by the
workspace's own ``dotrepo.json``, see ``dotrepo.managers.config``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class DotrepoSettings(BaseSettings):
    """dotrepo settings.

    All fields are read from environment variables with the ``DOTREPO_``
    prefix.  For example, ``DOTREPO_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOTREPO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    ci: bool = False
    """Non-interactive run: no colors, no confirmation prompts."""

    # -- External tools --------------------------------------------------------
    dotnet: str = "dotnet"
    """Executable used for building, packing and editing solutions."""

    git: str = "git"
    """Executable used to commit, tag and push version bumps."""

    # -- Workspace layout ------------------------------------------------------
    config_file: str = "dotrepo.json"
    lock_file: str = "workspace-lock.json"

    staging_dir: str = ".repo/pkg"
    """Local package feed, relative to the workspace root, that builds pack into."""

    dependencies_folder: str = "_Dependencies"
    """Solution folder holding transitive projects while in development mode."""


def get_settings() -> DotrepoSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> DotrepoSettings:
    return DotrepoSettings()

