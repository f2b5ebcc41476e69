"""Unit tests for settings loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from devagent.agent.models import AgentConfig
from devagent.agent.settings import AgentSettings, get_settings


def test_defaults() -> None:
    settings = AgentSettings()

    assert settings.log_level == "INFO"
    assert settings.workspace_id is None
    assert settings.server_url == "http://localhost:3986"
    assert settings.projects_dir == "/workspaces"
    assert settings.ssh_port == 2222


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEVAGENT_WORKSPACE_ID", "ws1")
    monkeypatch.setenv("devagent_project_name", "app")
    monkeypatch.setenv("DEVAGENT_SERVER_API_KEY", "secret")
    monkeypatch.setenv("DEVAGENT_SSH_COMMAND", '["sshd", "-D"]')

    settings = AgentSettings()

    assert settings.workspace_id == "ws1"
    assert settings.project_name == "app"
    assert settings.server_api_key is not None
    assert settings.server_api_key.get_secret_value() == "secret"
    assert "secret" not in settings.model_dump_json()
    assert settings.ssh_command == ["sshd", "-D"]


def test_agent_config() -> None:
    config = AgentSettings(workspace_id="ws1", project_name="app").agent_config()

    assert config == AgentConfig(workspace_id="ws1", project_name="app")
    with pytest.raises(ValidationError):
        config.workspace_id = "other"  # type: ignore[misc]


def test_agent_config_missing() -> None:
    with pytest.raises(ValueError, match="DEVAGENT_PROJECT_NAME"):
        AgentSettings(workspace_id="ws1").agent_config()


def test_tailscale_hostname() -> None:
    assert AgentSettings(workspace_id="ws1", project_name="app").resolve_tailscale_hostname() == "ws1-app"
    assert AgentSettings(tailscale_hostname="custom").resolve_tailscale_hostname() == "custom"


def test_get_settings_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEVAGENT_WORKSPACE_ID", "ws1")
    first = get_settings()

    monkeypatch.setenv("DEVAGENT_WORKSPACE_ID", "ws2")
    assert get_settings() is first
    assert first.workspace_id == "ws1"
