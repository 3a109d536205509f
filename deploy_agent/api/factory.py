"""Factory for wiring the deploy agent from an ``AgentConfig``.

This module provides ``build_dependencies()`` which constructs the secret
store, the download queue, the webhook collaborators and the download
worker, and bundles them into ``AppDependencies``.

Usage
-----
Build the dependencies for the API layer::

    from deploy_agent.api.factory import build_dependencies
    from deploy_agent.config import AgentConfig

    deps = build_dependencies(AgentConfig.from_env())

"""

from __future__ import annotations

import typing as typ

from deploy_agent.api.app import AppDependencies
from deploy_agent.config import SecretBackend
from deploy_agent.deploy import (
    ArtifactDeployer,
    DownloadQueue,
    DownloadWorker,
    FilesystemDeadLetterSink,
    RetryPolicy,
)
from deploy_agent.github import (
    DeploymentPolicy,
    EventFilter,
    GitHubArtifactClient,
    SignatureVerifier,
)
from deploy_agent.secret_store import EnvironmentSecretStore, KeyVaultSecretStore

if typ.TYPE_CHECKING:
    import httpx

    from deploy_agent.api.middleware import Closer
    from deploy_agent.config import AgentConfig
    from deploy_agent.secret_store import SecretStore

__all__ = ["build_dependencies", "build_secret_store"]


def build_secret_store(
    config: AgentConfig,
) -> EnvironmentSecretStore | KeyVaultSecretStore:
    """Return the secret store selected by ``config.secret_backend``."""
    if config.secret_backend is SecretBackend.ENV:
        return EnvironmentSecretStore()
    return KeyVaultSecretStore(config.vault_name)


def build_dependencies(
    config: AgentConfig,
    *,
    secret_store: SecretStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AppDependencies:
    """Build every runtime collaborator from configuration.

    Parameters
    ----------
    config
        Agent configuration.
    secret_store
        Optional pre-built secret store. When omitted one is built for
        ``config.secret_backend`` and closed at shutdown.
    http_client
        Optional ``httpx.AsyncClient`` for the artifact client.

    Returns
    -------
    AppDependencies
        Dependencies including a download worker.

    """
    closers: list[Closer] = []
    if secret_store is None:
        owned_store = build_secret_store(config)
        closers.append(owned_store.aclose)
        secret_store = owned_store

    queue = DownloadQueue(config.queue_capacity)
    event_filter = EventFilter(
        DeploymentPolicy(branch=config.branch, workflow_file=config.workflow_file),
        queue,
    )
    verifier = SignatureVerifier(secret_store)

    artifact_client = GitHubArtifactClient(secret_store, http_client=http_client)
    closers.insert(0, artifact_client.aclose)

    dead_letters = (
        FilesystemDeadLetterSink(config.dead_letter_path)
        if config.dead_letter_path is not None
        else None
    )
    worker = DownloadWorker(
        queue,
        ArtifactDeployer(artifact_client, config.extraction_dir),
        policy=RetryPolicy(max_attempts=config.max_attempts),
        dead_letters=dead_letters,
    )

    return AppDependencies(
        verifier=verifier,
        event_filter=event_filter,
        queue=queue,
        worker=worker,
        closers=tuple(closers),
    )
