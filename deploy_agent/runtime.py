"""Deploy agent entrypoint.

The ``deploy-agent`` command takes the Key Vault name and the extraction
directory as positional arguments, exports the resulting configuration as
``DEPLOY_AGENT_*`` environment variables and starts Granian with the
``deploy_agent.runtime:create_app`` factory. Granian builds the app inside
its worker process, so the factory reads its configuration back from the
environment.

Configuration is driven by environment variables:

- ``DEPLOY_AGENT_VAULT_NAME``: Key Vault holding the secrets (required)
- ``DEPLOY_AGENT_EXTRACTION_DIR``: Deployment directory (required)
- ``DEPLOY_AGENT_HOST``: Bind address (default ``0.0.0.0``)
- ``DEPLOY_AGENT_PORT``: Listen port (default ``2374``)
- ``DEPLOY_AGENT_LOG_LEVEL``: Log level (default ``INFO``)

See :class:`deploy_agent.config.AgentConfig` for the remaining variables.

Run the service with ``deploy-agent <vault-name> <extraction-directory>`` or
``python -m deploy_agent.runtime``.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter, validators

from deploy_agent.config import ENV_PREFIX, AgentConfig, ConfigError, SecretBackend
from deploy_agent.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["app", "create_app", "main", "serve"]

logger = get_logger(__name__)

app = App(
    name="deploy-agent",
    help="Deploy GitHub Actions artifacts when a workflow run succeeds.",
    version="0.1.0",
)


def create_app() -> falcon.asgi.App:
    """Create the fully wired Falcon ASGI application.

    Reads :class:`AgentConfig` from the environment, configures logging and
    builds the webhook endpoint together with the download worker.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    Raises
    ------
    SystemExit
        If the environment does not hold a usable configuration.

    """
    from deploy_agent.api.app import create_app as _create_api_app
    from deploy_agent.api.factory import build_dependencies

    try:
        config = AgentConfig.from_env()
    except ConfigError as exc:
        # Use error() not exception() - validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    configure_logging(config.log_level, force=True)
    return _create_api_app(build_dependencies(config))


@app.default
def serve(  # noqa: PLR0913
    vault_name: str,
    extraction_directory: Path,
    *,
    host: typ.Annotated[
        str, Parameter(env_var="DEPLOY_AGENT_HOST")
    ] = "0.0.0.0",  # noqa: S104 - the agent listens on all interfaces
    port: typ.Annotated[
        int,
        Parameter(
            env_var="DEPLOY_AGENT_PORT",
            validator=validators.Number(gte=1, lte=65535),
        ),
    ] = 2374,
    log_level: typ.Annotated[
        str, Parameter(env_var="DEPLOY_AGENT_LOG_LEVEL")
    ] = "INFO",
    branch: typ.Annotated[str, Parameter(env_var="DEPLOY_AGENT_BRANCH")] = "main",
    workflow_file: typ.Annotated[
        str, Parameter(env_var="DEPLOY_AGENT_WORKFLOW_FILE")
    ] = "deploy.yml",
    secret_backend: typ.Annotated[
        SecretBackend, Parameter(env_var="DEPLOY_AGENT_SECRET_BACKEND")
    ] = SecretBackend.KEYVAULT,
) -> None:
    """Start the deploy agent server using Granian.

    Parameters
    ----------
    vault_name
        Name of the Azure Key Vault holding the webhook secret and API token.
    extraction_directory
        Directory that artifacts are extracted into.
    host
        Bind address.
    port
        Listen port.
    log_level
        femtologging level name.
    branch
        Branch whose successful runs are deployed.
    workflow_file
        File name of the workflow whose runs are deployed.
    secret_backend
        Where secrets are read from.

    """
    from granian import Granian
    from granian.constants import Interfaces

    normalized_level, invalid_level = configure_logging(log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            log_level,
            normalized_level,
        )

    # Queue and retry settings have no flags; keep any set in the environment.
    os.environ[f"{ENV_PREFIX}VAULT_NAME"] = vault_name
    os.environ[f"{ENV_PREFIX}EXTRACTION_DIR"] = str(extraction_directory)
    try:
        base = AgentConfig.from_env()
    except ConfigError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    config = dc.replace(
        base,
        host=host,
        port=port,
        log_level=normalized_level,
        secret_backend=secret_backend,
        branch=branch,
        workflow_file=workflow_file,
    )
    os.environ.update(config.to_env())

    log_info(
        logger,
        "Starting deploy agent on %s:%d for %s (vault=%s, log_level=%s)",
        config.host,
        config.port,
        config.extraction_dir,
        config.vault_name,
        normalized_level,
    )

    server = Granian(
        "deploy_agent.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


def main() -> None:
    """Run the ``deploy-agent`` command line."""
    app()


if __name__ == "__main__":
    main()
