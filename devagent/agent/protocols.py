"""Collaborator contracts consumed by the startup sequencer.

The ``Agent`` receives implementations of these protocols at construction,
so tests can substitute fakes or ``AsyncMock`` objects for any of them.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from devagent.agent.models import GitUserData, Project, ServerConfig, Workspace


@runtime_checkable
class ControlPlane(Protocol):
    """Async client for the control-plane API."""

    async def get_workspace(self, workspace_id: str) -> Workspace:
        """Fetch a workspace.  Raises ``ServerApiError`` on failure."""
        ...

    async def get_config(self) -> ServerConfig:
        """Fetch the server configuration.  Raises ``ServerApiError`` on failure."""
        ...

    async def get_git_user_data(self, git_provider_id: str) -> GitUserData:
        """Fetch the user identity for a git provider."""
        ...


@runtime_checkable
class SourceControl(Protocol):
    """Local repository operations for the agent's project."""

    async def repository_exists(self, project: Project) -> bool: ...

    async def clone_repository(self, project: Project, auth_token: str | None = None) -> None: ...

    async def set_git_config(self, user_data: GitUserData | None) -> None: ...


@runtime_checkable
class Service(Protocol):
    """A long-running service; ``start`` blocks until it exits."""

    async def start(self) -> None: ...
