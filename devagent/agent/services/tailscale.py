"""Mesh-network client: tailscaled plus ``tailscale up``.

The daemon runs in userspace-networking mode so no TUN device or elevated
privileges are required inside the workspace.  ``start`` blocks on the
daemon; the agent's lifetime is tied to it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from devagent.agent.services.process import ServiceExitError, spawn, wait

if TYPE_CHECKING:
    from devagent.agent.settings import AgentSettings


class TailscaleService:
    def __init__(
        self,
        *,
        hostname: str,
        state_dir: str | Path,
        login_server: str | None = None,
        auth_key: str | None = None,
        tailscaled_binary: str = "tailscaled",
        tailscale_binary: str = "tailscale",
        socket_timeout: float = 15.0,
    ) -> None:
        self.hostname = hostname
        self.state_dir = Path(state_dir)
        self.login_server = login_server
        self.auth_key = auth_key
        self.tailscaled_binary = tailscaled_binary
        self.tailscale_binary = tailscale_binary
        self.socket_timeout = socket_timeout

    @classmethod
    def from_settings(cls, settings: AgentSettings) -> TailscaleService:
        auth_key = settings.tailscale_auth_key.get_secret_value() if settings.tailscale_auth_key else None
        return cls(
            hostname=settings.resolve_tailscale_hostname(),
            state_dir=settings.tailscale_state_dir,
            login_server=settings.tailscale_login_server,
            auth_key=auth_key,
        )

    @property
    def socket_path(self) -> Path:
        return self.state_dir / "tailscaled.sock"

    def daemon_command(self) -> list[str]:
        return [
            self.tailscaled_binary,
            "--tun=userspace-networking",
            f"--statedir={self.state_dir}",
            f"--socket={self.socket_path}",
        ]

    def up_command(self) -> list[str]:
        command = [
            self.tailscale_binary,
            f"--socket={self.socket_path}",
            "up",
            f"--hostname={self.hostname}",
            "--accept-dns=false",
        ]
        if self.login_server:
            command.append(f"--login-server={self.login_server}")
        if self.auth_key:
            command.append(f"--authkey={self.auth_key}")
        return command

    async def start(self) -> None:
        """Start the daemon, bring the node up, then block until the daemon exits.

        Raises ``ServiceExitError`` if either step fails.
        """
        logger.info("Starting tailscale (hostname={})", self.hostname)
        self.state_dir.mkdir(parents=True, exist_ok=True)

        daemon = await spawn("tailscaled", self.daemon_command())
        daemon_task = asyncio.create_task(wait("tailscaled", daemon))
        try:
            await self._wait_for_socket(daemon_task)
            await self._up()
        except BaseException:
            daemon_task.cancel()
            await asyncio.gather(daemon_task, return_exceptions=True)
            raise

        logger.info("Tailscale is up")
        await daemon_task

    async def _wait_for_socket(self, daemon_task: asyncio.Task[None]) -> None:
        """Poll until tailscaled has created its control socket."""
        deadline = asyncio.get_running_loop().time() + self.socket_timeout
        while not self.socket_path.exists():
            if daemon_task.done():
                # Surfaces the daemon's ServiceExitError, if any.
                daemon_task.result()
                raise ServiceExitError("tailscaled", 0, "exited before creating its socket")
            if asyncio.get_running_loop().time() > deadline:
                raise ServiceExitError("tailscaled", None, f"socket {self.socket_path} not ready")
            await asyncio.sleep(0.2)

    async def _up(self) -> None:
        proc = await spawn("tailscale up", self.up_command())
        stdout, _ = await proc.communicate()
        if proc.returncode != 0:
            # stdout may contain the auth key echoed back in errors
            detail = stdout.decode(errors="replace").strip()
            if self.auth_key:
                detail = detail.replace(self.auth_key, "***")
            raise ServiceExitError("tailscale up", proc.returncode, detail or None)
