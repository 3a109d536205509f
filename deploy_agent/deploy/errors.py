"""Deployment errors."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class ArchiveInstallError(RuntimeError):
    """Raised when an artifact archive cannot be installed.

    Files written before the failure are left in place.
    """

    def __init__(self, message: str, *, destination: Path) -> None:
        """Initialise with a message and the target directory."""
        self.destination = destination
        super().__init__(message)

    @classmethod
    def corrupt_archive(
        cls, destination: Path, reason: str
    ) -> ArchiveInstallError:
        """Return an error for an archive that cannot be read as a zip file."""
        return cls(
            f"artifact archive is unreadable: {reason}", destination=destination
        )

    @classmethod
    def io_failure(cls, destination: Path, exc: OSError) -> ArchiveInstallError:
        """Return an error for a filesystem failure during installation."""
        return cls(
            f"failed to install into {destination}: {exc.strerror or exc}",
            destination=destination,
        )

    @classmethod
    def nothing_installable(
        cls, destination: Path, skipped: typ.Sequence[str]
    ) -> ArchiveInstallError:
        """Return an error for an archive whose entries were all rejected."""
        return cls(
            f"artifact archive has no entries that can be installed into "
            f"{destination} (skipped: {', '.join(skipped) or 'none'})",
            destination=destination,
        )


class QueueClosedError(RuntimeError):
    """Raised when a job is offered to a download queue that has been closed."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("download queue is closed")
