"""Tests for the agent's loguru setup."""

from __future__ import annotations

import io
import logging

from loguru import logger

from devagent.agent.log import setup_logging


def test_lines_carry_workspace_and_project() -> None:
    out = io.StringIO()
    setup_logging("info", workspace_id="ws1", project_name="app", sink=out)

    logger.info("cloning")

    line = out.getvalue().strip().splitlines()[-1]
    assert "| INFO     |" in line
    assert "| ws1/app |" in line
    assert line.endswith("- cloning")


def test_unknown_identity_is_dashed() -> None:
    out = io.StringIO()
    setup_logging("info", sink=out)

    logger.info("hello")

    assert "| -/- |" in out.getvalue()


def test_level_filters_sink() -> None:
    out = io.StringIO()
    setup_logging("warning", sink=out)

    logger.info("hidden")
    logger.warning("shown")

    assert "hidden" not in out.getvalue()
    assert "shown" in out.getvalue()


def test_stdlib_logging_is_forwarded() -> None:
    out = io.StringIO()
    setup_logging("debug", workspace_id="ws1", project_name="app", sink=out, quiet=("devagent.noisy",))

    logging.getLogger("devagent.test").warning("from stdlib %s", "logging")
    logging.getLogger("devagent.noisy").info("suppressed")

    text = out.getvalue()
    assert "from stdlib logging" in text
    assert "suppressed" not in text
    # reported at the caller, not inside the logging package
    assert "test_log" in text.splitlines()[-1]
