"""Solution data model.

A solution (``.sln``) aggregates member projects.  Its member list is only
ever read and changed through ``dotnet sln``; the file is never parsed here.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from dotrepo.models.project import Project


class Solution(BaseModel):
    id: str
    path: str
    projects: list[Project] = Field(default_factory=list, description="Member projects, held by reference")

    @property
    def project_ids(self) -> list[str]:
        return [p.id for p in self.projects]
