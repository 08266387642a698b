"""Project and dependency data models.

A project is one buildable unit described by a ``.csproj`` file.  Its local
dependencies are declared either as a version-pinned package reference
(release mode) or as a path-based project reference (development mode).
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from dotrepo.models.enums import DependencyType

# -- Dependencies ------------------------------------------------------------


class PackageDependency(BaseModel):
    """``<PackageReference Include="{id}" Version="{version}" />``."""

    type: Literal[DependencyType.PACKAGE] = DependencyType.PACKAGE
    id: str
    version: str


class ProjectDependency(BaseModel):
    """``<ProjectReference Include="{path}" />``.

    ``id`` is the identifier of the referenced project, derived from ``path``.
    """

    type: Literal[DependencyType.PROJECT] = DependencyType.PROJECT
    id: str
    path: str


Dependency = Annotated[PackageDependency | ProjectDependency, Field(discriminator="type")]


# -- Project -----------------------------------------------------------------


class Project(BaseModel):
    """A project file and its declared dependencies."""

    id: str
    path: str = Field(description="Path to the project file, relative to the workspace root once loaded")
    version: str = ""
    dependencies: list[Dependency] = Field(default_factory=list)

    @property
    def package_dependencies(self) -> list[PackageDependency]:
        return [d for d in self.dependencies if isinstance(d, PackageDependency)]

    @property
    def project_dependencies(self) -> list[ProjectDependency]:
        return [d for d in self.dependencies if isinstance(d, ProjectDependency)]
