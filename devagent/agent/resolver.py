"""Startup resolvers -- which project the agent serves and which git identity it uses.

Project resolution and provider resolution are hard prerequisites: any
control-plane failure propagates.  User-data resolution is best-effort and
never raises.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from devagent.agent.gitprovider import get_git_provider_from_host

if TYPE_CHECKING:
    from devagent.agent.models import AgentConfig, GitProvider, GitUserData, Project
    from devagent.agent.protocols import ControlPlane

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ProjectNotFoundError(LookupError):
    """The workspace has no project with the configured name."""

    def __init__(self, project_name: str, workspace_id: str) -> None:
        self.project_name = project_name
        self.workspace_id = workspace_id
        super().__init__(f"project '{project_name}' not found in workspace '{workspace_id}'")


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


async def resolve_project(api: ControlPlane, config: AgentConfig) -> Project:
    """Fetch the workspace and return the project named ``config.project_name``.

    The first matching project wins if names are not unique.

    Raises
    ------
    ServerApiError:
        The workspace fetch failed.
    ProjectNotFoundError:
        No project in the workspace carries the configured name.
    """
    workspace = await api.get_workspace(config.workspace_id)

    for project in workspace.projects:
        if project.name == config.project_name:
            return project

    raise ProjectNotFoundError(config.project_name, config.workspace_id)


# ---------------------------------------------------------------------------
# Git identity
# ---------------------------------------------------------------------------


async def resolve_git_provider(api: ControlPlane, repository_url: str) -> GitProvider | None:
    """Return the configured git provider serving ``repository_url``, if any.

    Raises ``ServerApiError`` if the server configuration cannot be fetched.
    """
    server_config = await api.get_config()
    provider = get_git_provider_from_host(repository_url, server_config.git_providers)
    if provider is None:
        logger.info("No git provider configured for {}", repository_url)
    else:
        logger.info("Using git provider '{}' for {}", provider.id, repository_url)
    return provider


async def resolve_git_user_data(api: ControlPlane, provider: GitProvider) -> GitUserData | None:
    """Fetch the user identity for ``provider``.

    Failures are logged as warnings and yield ``None``.
    """
    try:
        return await api.get_git_user_data(provider.id)
    except Exception as exc:
        logger.warning("Failed to get git user data for provider '{}': {}", provider.id, exc)
        return None
