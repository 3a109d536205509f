"""Secret store implementations used by the webhook and the download worker.

Secrets are looked up by name on every call. Nothing is cached, so rotating a
secret in the store takes effect on the next webhook delivery or download
attempt.
"""

from __future__ import annotations

import os
import typing as typ

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from .errors import SecretStoreError

WEBHOOK_SECRET_NAME = "github-webhook-secret"  # noqa: S105 - secret name, not value
API_TOKEN_SECRET_NAME = "github-api-token"  # noqa: S105 - secret name, not value


class SecretStore(typ.Protocol):
    """Interface for reading named secrets."""

    async def get_secret(self, name: str) -> str:
        """Return the current value of the named secret.

        Raises
        ------
        SecretStoreError
            If the secret is missing or the store cannot be reached.

        """
        ...


class _KeyVaultClient(typ.Protocol):
    async def get_secret(self, name: str) -> typ.Any: ...  # noqa: ANN401

    async def close(self) -> None: ...


def vault_url(vault_name: str) -> str:
    """Return the Key Vault endpoint for a vault name."""
    return f"https://{vault_name}.vault.azure.net"


class KeyVaultSecretStore:
    """Read secrets from an Azure Key Vault.

    Parameters
    ----------
    vault_name
        Name of the vault. The endpoint is built by :func:`vault_url`.
    client
        Optional pre-built async ``SecretClient``, mainly for tests. When
        omitted the store builds one with ``DefaultAzureCredential`` and owns it.

    """

    def __init__(
        self,
        vault_name: str,
        *,
        client: _KeyVaultClient | None = None,
    ) -> None:
        """Initialise the store for a vault."""
        self.vault_name = vault_name
        self._credential: DefaultAzureCredential | None = None
        if client is None:
            self._credential = DefaultAzureCredential()
            client = SecretClient(
                vault_url=vault_url(vault_name),
                credential=self._credential,
            )
        self._client = client

    async def get_secret(self, name: str) -> str:
        """Fetch the named secret from the vault."""
        try:
            secret = await self._client.get_secret(name)
        except ResourceNotFoundError as exc:
            raise SecretStoreError.missing(name) from exc
        except AzureError as exc:
            raise SecretStoreError.backend_failure(name, type(exc).__name__) from exc

        value = getattr(secret, "value", None)
        if not value:
            raise SecretStoreError.missing(name)
        return value

    async def aclose(self) -> None:
        """Close the vault client and any owned credential."""
        await self._client.close()
        if self._credential is not None:
            await self._credential.close()


class EnvironmentSecretStore:
    """Read secrets from environment variables.

    A secret named ``github-api-token`` is read from
    ``DEPLOY_AGENT_SECRET_GITHUB_API_TOKEN``. Intended for local runs where no
    vault is available.
    """

    def __init__(
        self,
        prefix: str = "DEPLOY_AGENT_SECRET_",
        environ: typ.Mapping[str, str] | None = None,
    ) -> None:
        """Initialise the store with a variable prefix."""
        self.prefix = prefix
        self._environ = os.environ if environ is None else environ

    def variable_for(self, name: str) -> str:
        """Return the environment variable holding the named secret."""
        return self.prefix + name.upper().replace("-", "_")

    async def get_secret(self, name: str) -> str:
        """Fetch the named secret from the environment."""
        value = self._environ.get(self.variable_for(name), "")
        if not value.strip():
            raise SecretStoreError.missing(name)
        return value

    async def aclose(self) -> None:
        """Nothing to release."""
