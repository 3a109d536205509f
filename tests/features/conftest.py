"""Shared fixtures for BDD feature tests."""

from __future__ import annotations

import pytest

from tests.helpers.fakes import FakeSecretStore


@pytest.fixture
def secret_store() -> FakeSecretStore:
    """Provide a secret store holding the webhook secret and API token."""
    return FakeSecretStore()
