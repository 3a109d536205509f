"""Secret store adapters for webhook secrets and GitHub API tokens."""

from __future__ import annotations

from .errors import SecretStoreError
from .store import (
    API_TOKEN_SECRET_NAME,
    WEBHOOK_SECRET_NAME,
    EnvironmentSecretStore,
    KeyVaultSecretStore,
    SecretStore,
    vault_url,
)

__all__ = [
    "API_TOKEN_SECRET_NAME",
    "WEBHOOK_SECRET_NAME",
    "EnvironmentSecretStore",
    "KeyVaultSecretStore",
    "SecretStore",
    "SecretStoreError",
    "vault_url",
]
