"""Unit tests for the Key Vault and environment secret stores."""

from __future__ import annotations

import asyncio
import dataclasses

import pytest
from azure.core.exceptions import ResourceNotFoundError, ServiceRequestError

from deploy_agent.secret_store import (
    EnvironmentSecretStore,
    KeyVaultSecretStore,
    SecretStoreError,
    vault_url,
)


@dataclasses.dataclass(slots=True)
class _Secret:
    value: str | None


class _FakeSecretClient:
    """Async stand-in for ``azure.keyvault.secrets.aio.SecretClient``."""

    def __init__(
        self,
        secrets: dict[str, str | None],
        *,
        error: Exception | None = None,
    ) -> None:
        self.secrets = secrets
        self.error = error
        self.requests: list[str] = []
        self.closed = False

    async def get_secret(self, name: str) -> _Secret:
        self.requests.append(name)
        if self.error is not None:
            raise self.error
        if name not in self.secrets:
            msg = f"secret {name} not found"
            raise ResourceNotFoundError(msg)
        return _Secret(self.secrets[name])

    async def close(self) -> None:
        self.closed = True


def test_vault_url() -> None:
    """Vault names map to the public Key Vault endpoint."""
    assert vault_url("nueces") == "https://nueces.vault.azure.net"


class TestKeyVaultSecretStore:
    """Tests for KeyVaultSecretStore with an injected client."""

    def test_returns_secret_value(self) -> None:
        """The stored value is returned as-is."""
        client = _FakeSecretClient({"github-api-token": "ghs_abc"})
        store = KeyVaultSecretStore("nueces", client=client)

        assert asyncio.run(store.get_secret("github-api-token")) == "ghs_abc"
        assert client.requests == ["github-api-token"]

    def test_reads_on_every_call(self) -> None:
        """A rotated secret is picked up by the next call."""
        client = _FakeSecretClient({"github-webhook-secret": "old"})
        store = KeyVaultSecretStore("nueces", client=client)

        async def _scenario() -> list[str]:
            first = await store.get_secret("github-webhook-secret")
            client.secrets["github-webhook-secret"] = "new"
            second = await store.get_secret("github-webhook-secret")
            return [first, second]

        assert asyncio.run(_scenario()) == ["old", "new"]

    def test_missing_secret(self) -> None:
        """ResourceNotFoundError maps to a missing-secret error."""
        store = KeyVaultSecretStore("nueces", client=_FakeSecretClient({}))

        with pytest.raises(SecretStoreError, match="is not set") as excinfo:
            asyncio.run(store.get_secret("github-api-token"))
        assert excinfo.value.secret_name == "github-api-token"

    def test_empty_secret_is_missing(self) -> None:
        """A secret without a value is treated as missing."""
        client = _FakeSecretClient({"github-api-token": None})
        store = KeyVaultSecretStore("nueces", client=client)

        with pytest.raises(SecretStoreError, match="is not set"):
            asyncio.run(store.get_secret("github-api-token"))

    def test_backend_failure(self) -> None:
        """Transport errors are reported by type, not by message."""
        client = _FakeSecretClient({}, error=ServiceRequestError("dns failure"))
        store = KeyVaultSecretStore("nueces", client=client)

        with pytest.raises(SecretStoreError, match="ServiceRequestError"):
            asyncio.run(store.get_secret("github-webhook-secret"))

    def test_aclose_closes_client(self) -> None:
        """Closing the store closes the injected client."""
        client = _FakeSecretClient({})
        store = KeyVaultSecretStore("nueces", client=client)

        asyncio.run(store.aclose())

        assert client.closed


class TestEnvironmentSecretStore:
    """Tests for EnvironmentSecretStore."""

    def test_variable_name(self) -> None:
        """Secret names are upper-cased with dashes replaced."""
        store = EnvironmentSecretStore(environ={})
        assert (
            store.variable_for("github-webhook-secret")
            == "DEPLOY_AGENT_SECRET_GITHUB_WEBHOOK_SECRET"
        )

    def test_reads_variable(self) -> None:
        """The secret is read from the mapped variable."""
        store = EnvironmentSecretStore(
            environ={"DEPLOY_AGENT_SECRET_GITHUB_API_TOKEN": "ghs_env"}
        )
        assert asyncio.run(store.get_secret("github-api-token")) == "ghs_env"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_or_unset_is_missing(self, value: str | None) -> None:
        """Unset and blank variables raise SecretStoreError."""
        environ = {} if value is None else {"X_GITHUB_API_TOKEN": value}
        store = EnvironmentSecretStore(prefix="X_", environ=environ)

        with pytest.raises(SecretStoreError, match="github-api-token"):
            asyncio.run(store.get_secret("github-api-token"))
