"""Fetch-then-install pipeline run by the download worker for each attempt."""

from __future__ import annotations

import asyncio
import typing as typ

from .installer import InstallReport, install_archive

if typ.TYPE_CHECKING:
    from pathlib import Path


class ArchiveFetcher(typ.Protocol):
    """Anything that can turn an artifact-list URL into archive bytes."""

    async def fetch_archive(self, artifacts_url: str) -> bytes:
        """Download the archive of the run's first artifact."""
        ...


class Deployer(typ.Protocol):
    """One deployment attempt for a job."""

    async def deploy(self, artifacts_url: str) -> InstallReport:
        """Fetch and install the artifact behind ``artifacts_url``."""
        ...


type Installer = typ.Callable[[bytes, Path], InstallReport]


class ArtifactDeployer:
    """Download a run's artifact and extract it into the deployment directory.

    The blocking extraction runs in a worker thread so the event loop keeps
    serving webhook requests meanwhile.
    """

    def __init__(
        self,
        fetcher: ArchiveFetcher,
        destination: Path,
        *,
        installer: Installer = install_archive,
    ) -> None:
        """Initialise with a fetcher and the extraction directory."""
        self._fetcher = fetcher
        self.destination = destination
        self._installer = installer

    async def deploy(self, artifacts_url: str) -> InstallReport:
        """Fetch the archive for ``artifacts_url`` and install it."""
        archive = await self._fetcher.fetch_archive(artifacts_url)
        return await asyncio.to_thread(self._installer, archive, self.destination)
