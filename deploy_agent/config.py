"""Configuration for the deploy agent runtime.

This module provides the ``AgentConfig`` dataclass which controls the listen
address, the deployment policy, the download queue, and where artifacts are
extracted.

Usage
-----
Create a configuration with defaults:

>>> config = AgentConfig(vault_name="nueces", extraction_dir=Path("/srv/app"))
>>> config.port
2374

Or load from environment variables:

>>> import os
>>> os.environ["DEPLOY_AGENT_VAULT_NAME"] = "nueces"
>>> os.environ["DEPLOY_AGENT_EXTRACTION_DIR"] = "/srv/app"
>>> config = AgentConfig.from_env()
>>> config.queue_capacity
8

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os
from pathlib import Path

ENV_PREFIX = "DEPLOY_AGENT_"

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535

_DEFAULT_HOST = "0.0.0.0"  # noqa: S104 - the agent listens on all interfaces
_DEFAULT_PORT = 2374
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_BRANCH = "main"
_DEFAULT_WORKFLOW_FILE = "deploy.yml"
_DEFAULT_QUEUE_CAPACITY = 8
_DEFAULT_MAX_ATTEMPTS = 9


class SecretBackend(enum.StrEnum):
    """Where secrets are read from."""

    KEYVAULT = "keyvault"
    ENV = "env"


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    @classmethod
    def missing(cls, env_var: str) -> ConfigError:
        """Return an error for a required variable that is unset."""
        return cls(f"{env_var} is required")

    @classmethod
    def not_an_integer(cls, env_var: str, raw: str) -> ConfigError:
        """Return an error for a non-integer value."""
        return cls(f"{env_var} must be an integer, got: {raw!r}")

    @classmethod
    def out_of_range(
        cls, env_var: str, value: int, bounds: tuple[int, int]
    ) -> ConfigError:
        """Return an error for an integer outside its allowed range."""
        lower, upper = bounds
        return cls(f"{env_var} must be between {lower} and {upper}, got: {value}")

    @classmethod
    def unknown_choice(
        cls, env_var: str, raw: str, choices: list[str]
    ) -> ConfigError:
        """Return an error for a value outside a fixed set of choices."""
        return cls(f"{env_var} must be one of {', '.join(choices)}, got: {raw!r}")


def _env(name: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", "").strip()


def _parse_int(name: str, default: int, *, lower: int, upper: int) -> int:
    """Read a bounded integer env var, falling back to a default."""
    raw = _env(name)
    if not raw:
        return default
    env_var = f"{ENV_PREFIX}{name}"
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError.not_an_integer(env_var, raw) from exc
    if not (lower <= value <= upper):
        raise ConfigError.out_of_range(env_var, value, (lower, upper))
    return value


@dc.dataclass(frozen=True, slots=True)
class AgentConfig:
    """Runtime configuration for the deploy agent.

    Attributes
    ----------
    vault_name
        Identifier of the secret store (an Azure Key Vault name).
    extraction_dir
        Directory that downloaded artifacts are extracted into.
    host
        Bind address for the HTTP listener.
    port
        Listen port for the HTTP listener.
    log_level
        Raw log level string; normalised by ``configure_logging``.
    secret_backend
        Which secret store implementation to use.
    branch
        Branch whose successful workflow runs are deployed.
    workflow_file
        File name of the workflow whose runs are deployed.
    queue_capacity
        Maximum number of pending download jobs before webhook handling stalls.
    max_attempts
        Number of fetch/install attempts per job before it is dead-lettered.
    dead_letter_path
        Optional JSON-lines file that receives exhausted jobs.

    """

    vault_name: str
    extraction_dir: Path
    host: str = _DEFAULT_HOST
    port: int = _DEFAULT_PORT
    log_level: str = _DEFAULT_LOG_LEVEL
    secret_backend: SecretBackend = SecretBackend.KEYVAULT
    branch: str = _DEFAULT_BRANCH
    workflow_file: str = _DEFAULT_WORKFLOW_FILE
    queue_capacity: int = _DEFAULT_QUEUE_CAPACITY
    max_attempts: int = _DEFAULT_MAX_ATTEMPTS
    dead_letter_path: Path | None = None

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Create configuration from ``DEPLOY_AGENT_*`` environment variables.

        ``DEPLOY_AGENT_VAULT_NAME`` and ``DEPLOY_AGENT_EXTRACTION_DIR`` are
        required; everything else falls back to the class defaults.

        Raises
        ------
        ConfigError
            If a required variable is missing or a value cannot be parsed.

        """
        vault_name = _env("VAULT_NAME")
        if not vault_name:
            raise ConfigError.missing(f"{ENV_PREFIX}VAULT_NAME")
        extraction_dir = _env("EXTRACTION_DIR")
        if not extraction_dir:
            raise ConfigError.missing(f"{ENV_PREFIX}EXTRACTION_DIR")

        raw_backend = _env("SECRET_BACKEND") or SecretBackend.KEYVAULT.value
        try:
            secret_backend = SecretBackend(raw_backend.lower())
        except ValueError as exc:
            raise ConfigError.unknown_choice(
                f"{ENV_PREFIX}SECRET_BACKEND",
                raw_backend,
                [backend.value for backend in SecretBackend],
            ) from exc

        dead_letter = _env("DEAD_LETTER_PATH")

        return cls(
            vault_name=vault_name,
            extraction_dir=Path(extraction_dir),
            host=_env("HOST") or _DEFAULT_HOST,
            port=_parse_int("PORT", _DEFAULT_PORT, lower=_MIN_PORT, upper=_MAX_PORT),
            log_level=_env("LOG_LEVEL") or _DEFAULT_LOG_LEVEL,
            secret_backend=secret_backend,
            branch=_env("BRANCH") or _DEFAULT_BRANCH,
            workflow_file=_env("WORKFLOW_FILE") or _DEFAULT_WORKFLOW_FILE,
            queue_capacity=_parse_int(
                "QUEUE_CAPACITY", _DEFAULT_QUEUE_CAPACITY, lower=1, upper=1024
            ),
            max_attempts=_parse_int(
                "MAX_ATTEMPTS", _DEFAULT_MAX_ATTEMPTS, lower=1, upper=32
            ),
            dead_letter_path=Path(dead_letter) if dead_letter else None,
        )

    def to_env(self) -> dict[str, str]:
        """Return the ``DEPLOY_AGENT_*`` variables that reproduce this config."""
        env = {
            f"{ENV_PREFIX}VAULT_NAME": self.vault_name,
            f"{ENV_PREFIX}EXTRACTION_DIR": str(self.extraction_dir),
            f"{ENV_PREFIX}HOST": self.host,
            f"{ENV_PREFIX}PORT": str(self.port),
            f"{ENV_PREFIX}LOG_LEVEL": self.log_level,
            f"{ENV_PREFIX}SECRET_BACKEND": self.secret_backend.value,
            f"{ENV_PREFIX}BRANCH": self.branch,
            f"{ENV_PREFIX}WORKFLOW_FILE": self.workflow_file,
            f"{ENV_PREFIX}QUEUE_CAPACITY": str(self.queue_capacity),
            f"{ENV_PREFIX}MAX_ATTEMPTS": str(self.max_attempts),
        }
        if self.dead_letter_path is not None:
            env[f"{ENV_PREFIX}DEAD_LETTER_PATH"] = str(self.dead_letter_path)
        return env
