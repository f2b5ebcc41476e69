from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from devagent.agent.settings import AgentSettings


@click.group()
def main() -> None:
    """devagent - per-workspace development agent."""


@main.command()
@click.option("--workspace-id", default=None, help="Workspace to serve (default: from DEVAGENT_WORKSPACE_ID).")
@click.option("--project-name", default=None, help="Project to serve (default: from DEVAGENT_PROJECT_NAME).")
@click.option("--log-level", default=None, help="Log level (default: from DEVAGENT_LOG_LEVEL or INFO).")
def start(workspace_id: str | None, project_name: str | None, log_level: str | None) -> None:
    """Prepare the project checkout and run the connectivity services."""
    import asyncio

    from loguru import logger

    from devagent.agent.log import setup_logging
    from devagent.agent.settings import get_settings

    settings = _apply_overrides(
        get_settings(),
        workspace_id=workspace_id,
        project_name=project_name,
        log_level=log_level,
    )
    setup_logging(
        settings.log_level,
        workspace_id=settings.workspace_id,
        project_name=settings.project_name,
    )

    try:
        settings.agent_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        asyncio.run(_run_agent(settings))
    except KeyboardInterrupt:
        logger.info("Agent interrupted")
    except Exception:
        logger.exception("Agent failed")
        raise SystemExit(1) from None


@main.command()
def config() -> None:
    """Print the effective settings as JSON (secrets masked)."""
    from devagent.agent.settings import get_settings

    click.echo(get_settings().model_dump_json(indent=2))


def _apply_overrides(settings: AgentSettings, **overrides: str | None) -> AgentSettings:
    """Return a copy of ``settings`` with the non-None overrides applied."""
    changes = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=changes) if changes else settings


async def _run_agent(settings: AgentSettings) -> None:
    from devagent.agent.agent import Agent
    from devagent.agent.apiclient import ServerApiClient

    async with ServerApiClient.from_settings(settings) as api:
        agent = Agent.from_settings(settings, api=api)
        await agent.start()


if __name__ == "__main__":
    main()
