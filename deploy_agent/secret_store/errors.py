"""Secret store errors."""

from __future__ import annotations


class SecretStoreError(RuntimeError):
    """Raised when a secret cannot be retrieved from the configured store.

    The message names the secret but never carries its value.
    """

    def __init__(self, message: str, *, secret_name: str) -> None:
        """Initialise with a message and the name of the requested secret."""
        self.secret_name = secret_name
        super().__init__(message)

    @classmethod
    def missing(cls, secret_name: str) -> SecretStoreError:
        """Return an error for a secret that does not exist or is empty."""
        return cls(f"secret {secret_name!r} is not set", secret_name=secret_name)

    @classmethod
    def backend_failure(cls, secret_name: str, reason: str) -> SecretStoreError:
        """Return an error for a transport or authentication failure."""
        return cls(
            f"failed to read secret {secret_name!r}: {reason}",
            secret_name=secret_name,
        )
