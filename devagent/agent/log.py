"""Agent logging: one loguru sink, tagged with the workspace and project.

Every line carries ``workspace/project`` so the output of several agents
can be told apart once it is collected centrally.  Records emitted through
stdlib ``logging`` (httpx, asyncio) are forwarded into loguru.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Iterable

QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "asyncio")
"""Stdlib loggers capped at WARNING; their INFO output is per-request noise."""

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[workspace]}/{extra[project]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

_UNSET = "-"


class _StdlibForwarder(logging.Handler):
    """Re-emit stdlib records through loguru at the original call-site."""

    def emit(self, record: logging.LogRecord) -> None:
        logger.opt(depth=_caller_depth(), exception=record.exc_info).log(
            _loguru_level(record), record.getMessage()
        )


def _loguru_level(record: logging.LogRecord) -> str | int:
    try:
        return logger.level(record.levelname).name
    except ValueError:
        return record.levelno


def _caller_depth() -> int:
    # Frames inside the logging package sit between us and the caller.
    frame = logging.currentframe()
    depth = 2
    while frame is not None and frame.f_code.co_filename == logging.__file__:
        frame = frame.f_back
        depth += 1
    return depth


def setup_logging(
    level: str = "INFO",
    *,
    workspace_id: str | None = None,
    project_name: str | None = None,
    sink: Any = sys.stderr,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Make loguru the only log sink of the agent process.

    ``workspace_id`` and ``project_name`` become the default ``extra`` of
    every record; ``-`` stands in for an unknown value.  Call once at
    process startup, before the agent starts.
    """
    level = level.upper()

    logger.configure(
        handlers=[{"sink": sink, "level": level, "format": LOG_FORMAT}],
        extra={"workspace": workspace_id or _UNSET, "project": project_name or _UNSET},
    )

    logging.basicConfig(handlers=[_StdlibForwarder()], level=0, force=True)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={})", level)
