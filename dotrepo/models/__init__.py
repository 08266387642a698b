"""Data models for dotrepo."""

from dotrepo.models.config import Configuration
from dotrepo.models.enums import DependencyType, WorkspaceMode
from dotrepo.models.lock import LockFile
from dotrepo.models.project import Dependency, PackageDependency, Project, ProjectDependency
from dotrepo.models.solution import Solution

__all__ = [
    "Configuration",
    "Dependency",
    "DependencyType",
    "LockFile",
    "PackageDependency",
    "Project",
    "ProjectDependency",
    "Solution",
    "WorkspaceMode",
]
