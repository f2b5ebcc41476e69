"""Workspace and project models as returned by the control plane.

The control plane speaks camelCase JSON; fields are snake_case here and
populated through aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Repository(_ApiModel):
    """Source repository metadata attached to a project."""

    url: str | None = None
    name: str | None = None
    owner: str | None = None
    branch: str | None = None
    sha: str | None = None
    source: str | None = None


class Project(_ApiModel):
    name: str
    repository: Repository = Field(default_factory=Repository)
    workspace_id: str | None = None
    target: str | None = None


class Workspace(_ApiModel):
    """A development environment instance and its ordered projects."""

    id: str
    name: str | None = None
    target: str | None = None
    projects: list[Project] = Field(default_factory=list)
