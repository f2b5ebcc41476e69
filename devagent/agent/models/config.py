"""Agent identity: which workspace and project this process serves."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AgentConfig(BaseModel):
    """Immutable input of the agent, fixed for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    workspace_id: str
    project_name: str
