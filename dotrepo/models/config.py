"""Workspace configuration model (``dotrepo.json``)."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Configuration(BaseModel):
    """Read-only input to workspace discovery."""

    version: str = "0.0.0"
    packages: list[str] = Field(
        default_factory=list, description="Glob patterns, relative to the workspace root, to search for projects"
    )
    sources: list[str] | None = None
