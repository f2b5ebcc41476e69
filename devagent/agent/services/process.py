"""Child-process runner shared by the connectivity services.

A service is an external daemon kept in the foreground: its combined output
is forwarded to the log line by line, and the coroutine returns when the
process exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from loguru import logger


class ServiceExitError(RuntimeError):
    """A service process exited with a non-zero status (or could not be spawned)."""

    def __init__(self, name: str, returncode: int | None, detail: str | None = None) -> None:
        self.name = name
        self.returncode = returncode
        msg = f"{name} exited with code {returncode}" if returncode is not None else f"{name} failed to start"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


async def spawn(name: str, command: Sequence[str]) -> asyncio.subprocess.Process:
    """Start ``command`` with stdout/stderr merged into a pipe.

    Raises ``ServiceExitError`` if the executable cannot be launched.
    """
    logger.debug("Spawning {}: {}", name, " ".join(command))
    try:
        return await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        raise ServiceExitError(name, None, str(exc)) from exc


async def wait(name: str, proc: asyncio.subprocess.Process) -> None:
    """Forward ``proc`` output to the log until it exits.

    Raises ``ServiceExitError`` on a non-zero exit status.  If forwarding is
    interrupted (cancellation, an unreadable output line), the process is
    terminated before the exception propagates.
    """
    try:
        if proc.stdout is not None:
            async for raw in proc.stdout:
                line = raw.decode(errors="replace").rstrip()
                if line:
                    logger.info("[{}] {}", name, line)
        returncode = await proc.wait()
    except BaseException:
        if proc.returncode is None:
            proc.terminate()
            await proc.wait()
        raise

    if returncode != 0:
        raise ServiceExitError(name, returncode)
    logger.info("{} exited", name)


async def run_service(name: str, command: Sequence[str]) -> None:
    """Run ``command`` in the foreground until it exits."""
    proc = await spawn(name, command)
    await wait(name, proc)
