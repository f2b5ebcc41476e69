"""Pydantic models shared across the agent."""

from devagent.agent.models.config import AgentConfig
from devagent.agent.models.gitprovider import GitProvider, GitUserData, ServerConfig
from devagent.agent.models.workspace import Project, Repository, Workspace

__all__ = [
    "AgentConfig",
    "GitProvider",
    "GitUserData",
    "Project",
    "Repository",
    "ServerConfig",
    "Workspace",
]
