"""Shared enumerations used across dotrepo."""

from __future__ import annotations

from enum import StrEnum

# -- Dependencies ------------------------------------------------------------


class DependencyType(StrEnum):
    """How a dependency is declared inside a project file."""

    PACKAGE = "package"
    PROJECT = "project"


# -- Workspace ---------------------------------------------------------------


class WorkspaceMode(StrEnum):
    """Which form the local dependency declarations are currently in."""

    RELEASE = "release"
    DEVELOPMENT = "development"
