"""Shared test fixtures.

Settings are read from ``DEVAGENT_*`` environment variables and cached; every
test starts from a clean environment and an empty cache.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from loguru import logger

from devagent.agent.settings import _get_settings_cached


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop DEVAGENT_* variables and the settings cache around each test."""
    for key in list(os.environ):
        if key.startswith("DEVAGENT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(os.path.dirname(__file__))  # no stray .env from the CWD
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
