"""Remote-shell endpoint: an sshd kept in the foreground."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from devagent.agent.services.process import run_service

if TYPE_CHECKING:
    from devagent.agent.settings import AgentSettings


class SshServer:
    """Runs the configured sshd command listening on ``port``."""

    def __init__(self, command: Sequence[str], *, port: int = 2222) -> None:
        self.command = list(command)
        self.port = port

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> SshServer:
        return cls(settings.ssh_command, port=settings.ssh_port)

    def build_command(self) -> list[str]:
        return [*self.command, "-p", str(self.port)]

    async def start(self) -> None:
        logger.info("Starting ssh server on port {}", self.port)
        await run_service("sshd", self.build_command())
