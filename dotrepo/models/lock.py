"""Lock record data model.

The lock is the single durable record of which mode the workspace is in.
It also keeps a snapshot of the projects and solutions as they looked in
release mode, which is what the exit-development rewrite works from.

On-disk layout (``workspace-lock.json``)::

    {
      "inDevelopment": true,
      "projects": {"Core": {"path": ..., "version": ..., "dependencies": [...]}},
      "solutions": {"App": {"path": ..., "projects": ["Core", "Api"]}}
    }

Project entries drop their ``id`` (it is the key) and solution members are
bare project ids, re-resolved against ``projects`` on read.
``enteringDevelopment`` is present only while a switch to development mode
has started but not completed.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from dotrepo.models.enums import WorkspaceMode
from dotrepo.models.project import Project
from dotrepo.models.solution import Solution


class LockFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    in_development: bool = Field(default=False, alias="inDevelopment")
    entering_development: bool = Field(default=False, alias="enteringDevelopment")
    projects: dict[str, Project] = Field(default_factory=dict)
    solutions: dict[str, Solution] = Field(default_factory=dict)

    @property
    def mode(self) -> WorkspaceMode:
        return WorkspaceMode.DEVELOPMENT if self.in_development else WorkspaceMode.RELEASE

    @field_serializer("projects")
    def serialize_projects(self, projects: dict[str, Project]) -> dict[str, Any]:
        return {project_id: project.model_dump(mode="json", exclude={"id"}) for project_id, project in projects.items()}

    @field_serializer("solutions")
    def serialize_solutions(self, solutions: dict[str, Solution]) -> dict[str, Any]:
        return {
            solution_id: {"path": solution.path, "projects": solution.project_ids}
            for solution_id, solution in solutions.items()
        }
