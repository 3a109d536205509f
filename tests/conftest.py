"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import os

import pytest

from deploy_agent.config import ENV_PREFIX


@pytest.fixture(autouse=True)
def _isolate_agent_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide any ``DEPLOY_AGENT_*`` variables inherited from the host shell."""
    for name in [key for key in os.environ if key.startswith(ENV_PREFIX)]:
        monkeypatch.delenv(name)
