"""Download queue, retrying worker and archive installation."""

from __future__ import annotations

from .dead_letter import DeadLetterSink, FilesystemDeadLetterSink
from .errors import ArchiveInstallError, QueueClosedError
from .installer import InstallReport, install_archive, safe_entry_path
from .observability import DeployEventLogger, DeployEventType, categorize_error
from .pipeline import ArtifactDeployer, Deployer
from .queue import DownloadJob, DownloadQueue
from .retry import JobOutcome, JobRun, JobState, RetryPolicy
from .worker import DownloadWorker

__all__ = [
    "ArchiveInstallError",
    "ArtifactDeployer",
    "DeadLetterSink",
    "DeployEventLogger",
    "DeployEventType",
    "Deployer",
    "DownloadJob",
    "DownloadQueue",
    "DownloadWorker",
    "FilesystemDeadLetterSink",
    "InstallReport",
    "JobOutcome",
    "JobRun",
    "JobState",
    "QueueClosedError",
    "RetryPolicy",
    "categorize_error",
    "install_archive",
    "safe_entry_path",
]
