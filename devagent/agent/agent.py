"""Agent startup sequencer.

``Agent.start`` brings the workspace into a usable state and then hands
control to the connectivity services:

1. **Resolve project** from the workspace (fatal)
2. **Validate** the project has a repository URL (fatal)
3. **Resolve git provider** for the repository host (fatal on control-plane error)
4. **Materialize repository**: clone unless already present (best-effort)
5. **Fetch git user data** for the matched provider (best-effort)
6. **Configure git identity** (best-effort)
7. **Start ssh server** in a background task (best-effort, not awaited)
8. **Start tailscale** in the foreground -- its outcome is the outcome of ``start``

Best-effort steps log their failure and continue: a developer can fix a
missing clone or git identity once connected, but only if connectivity is
reached.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from loguru import logger

from devagent.agent.resolver import resolve_git_provider, resolve_git_user_data, resolve_project

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from devagent.agent.models import AgentConfig, GitProvider, GitUserData, Project
    from devagent.agent.protocols import ControlPlane, Service, SourceControl
    from devagent.agent.settings import AgentSettings


class ConfigurationError(ValueError):
    """The resolved project cannot be set up as configured."""


class Agent:
    """Per-workspace agent.  All collaborators are injected."""

    def __init__(
        self,
        config: AgentConfig,
        *,
        api: ControlPlane,
        git: SourceControl,
        ssh: Service,
        tailscale: Service,
    ) -> None:
        self.config = config
        self.api = api
        self.git = git
        self.ssh = ssh
        self.tailscale = tailscale
        self._background_tasks: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: AgentSettings, *, api: ControlPlane | None = None) -> Agent:
        """Wire the agent with the concrete collaborators described by ``settings``.

        Pass ``api`` to reuse a client whose lifecycle the caller manages.
        """
        from devagent.agent.apiclient import ServerApiClient
        from devagent.agent.git import GitService
        from devagent.agent.services import SshServer, TailscaleService

        return cls(
            settings.agent_config(),
            api=api if api is not None else ServerApiClient.from_settings(settings),
            git=GitService.from_settings(settings),
            ssh=SshServer.from_settings(settings),
            tailscale=TailscaleService.from_settings(settings),
        )

    # -- Public API ------------------------------------------------------------

    async def start(self) -> None:
        """Run the startup procedure.

        Returns when the mesh-network service exits cleanly.

        Raises
        ------
        ServerApiError:
            The control plane could not be reached for the workspace or the
            server configuration.
        ProjectNotFoundError:
            The workspace has no project with the configured name.
        ConfigurationError:
            The project has no repository URL.
        Exception:
            Whatever the mesh-network service raised.
        """
        logger.info(
            "Starting agent (workspace={}, project={})",
            self.config.workspace_id,
            self.config.project_name,
        )

        # -- 1. Resolve project ----------------------------------------------
        project = await resolve_project(self.api, self.config)

        # -- 2. Validate repository URL --------------------------------------
        repository_url = project.repository.url
        if not repository_url:
            msg = "repository url not found"
            raise ConfigurationError(msg)

        # -- 3. Resolve git provider -----------------------------------------
        git_provider = await resolve_git_provider(self.api, repository_url)
        auth_token = git_provider.token if git_provider is not None else None

        # -- 4. Materialize repository ---------------------------------------
        await self._ensure_repository(project, auth_token)

        # -- 5. Fetch git user data ------------------------------------------
        git_user_data = await self._fetch_git_user_data(git_provider)

        # -- 6. Configure git identity ---------------------------------------
        try:
            await self.git.set_git_config(git_user_data)
        except Exception as exc:
            logger.error("Failed to set git config: {}", exc)

        # -- 7. Remote shell (background) ------------------------------------
        self._spawn_background(self._run_ssh(), name="ssh-server")

        # -- 8. Mesh network (foreground, determines the result) -------------
        await self.tailscale.start()

    # -- Steps -----------------------------------------------------------------

    async def _ensure_repository(self, project: Project, auth_token: str | None) -> None:
        try:
            exists = await self.git.repository_exists(project)
        except Exception as exc:
            logger.error("Failed to check for existing repository: {}", exc)
            return

        if exists:
            logger.info("Repository already exists. Skipping clone...")
            return

        logger.info("Cloning repository...")
        try:
            await self.git.clone_repository(project, auth_token)
        except Exception as exc:
            logger.error("Failed to clone repository: {}", exc)
        else:
            logger.info("Repository cloned")

    async def _fetch_git_user_data(self, git_provider: GitProvider | None) -> GitUserData | None:
        if git_provider is None:
            return None
        return await resolve_git_user_data(self.api, git_provider)

    async def _run_ssh(self) -> None:
        try:
            await self.ssh.start()
        except Exception as exc:
            logger.error("Failed to start ssh server: {}", exc)

    def _spawn_background(self, coro: Coroutine[Any, Any, None], *, name: str) -> asyncio.Task[None]:
        # The event loop holds only weak references to tasks.
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task
