"""Agent configuration loaded from DEVAGENT_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from devagent.agent.models.config import AgentConfig


class AgentSettings(BaseSettings):
    """Workspace agent settings.

    All fields are read from environment variables with the ``DEVAGENT_``
    prefix.  For example, ``DEVAGENT_WORKSPACE_ID=ws1`` maps to
    ``workspace_id``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVAGENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Identity --------------------------------------------------------------
    workspace_id: str | None = None
    project_name: str | None = None

    # -- Control plane ---------------------------------------------------------
    server_url: str = "http://localhost:3986"
    server_api_key: SecretStr | None = None
    request_timeout: float = 30.0
    """HTTP timeout (seconds) for control-plane calls."""

    # -- Source control --------------------------------------------------------
    projects_dir: str = "/workspaces"
    """Root under which the project repository is cloned (``{projects_dir}/{project_name}``)."""

    git_config_path: str = "~/.gitconfig"
    git_credential_helper: str | None = None

    # -- Remote shell ----------------------------------------------------------
    ssh_port: int = 2222
    ssh_command: list[str] = ["/usr/sbin/sshd", "-D", "-e"]

    # -- Mesh network ----------------------------------------------------------
    tailscale_hostname: str | None = None
    """Defaults to ``{workspace_id}-{project_name}``."""

    tailscale_login_server: str | None = None
    tailscale_auth_key: SecretStr | None = None
    tailscale_state_dir: str = "/tmp/tailscale"  # noqa: S108

    # -- Helpers ---------------------------------------------------------------

    def agent_config(self) -> AgentConfig:
        """Build the immutable ``AgentConfig``.  Raises ``ValueError`` if incomplete."""
        missing = [name for name in ("workspace_id", "project_name") if not getattr(self, name)]
        if missing:
            msg = f"Missing required setting(s): {', '.join('DEVAGENT_' + m.upper() for m in missing)}"
            raise ValueError(msg)
        return AgentConfig(workspace_id=self.workspace_id, project_name=self.project_name)  # type: ignore[arg-type]

    def resolve_tailscale_hostname(self) -> str:
        if self.tailscale_hostname:
            return self.tailscale_hostname
        return f"{self.workspace_id}-{self.project_name}"


def get_settings() -> AgentSettings:
    """Return a cached settings instance.

    Call ``_get_settings_cached.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> AgentSettings:
    return AgentSettings()
