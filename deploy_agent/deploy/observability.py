"""Structured log events for the download worker.

Every event is a single pre-formatted line of the form
``[deploy.<event>] key=value ...`` so log aggregators can alert on job
outcomes. Dead-lettered jobs use their own event type, distinct from the
per-attempt failure lines, so a permanently failed deployment is visible
without reading every retry.
"""

from __future__ import annotations

import enum
import typing as typ

from deploy_agent.github.errors import ArtifactFetchError
from deploy_agent.logging import get_logger
from deploy_agent.secret_store import SecretStoreError

from .errors import ArchiveInstallError

if typ.TYPE_CHECKING:
    from deploy_agent.logging import SupportsLog

    from .installer import InstallReport
    from .queue import DownloadJob
    from .retry import JobOutcome

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class DeployEventType(enum.StrEnum):
    """Structured log event types for worker observability."""

    WORKER_STARTED = "deploy.worker.started"
    WORKER_STOPPED = "deploy.worker.stopped"
    ATTEMPT_STARTED = "deploy.attempt.started"
    ATTEMPT_FAILED = "deploy.attempt.failed"
    JOB_SUCCEEDED = "deploy.job.succeeded"
    JOB_DEAD_LETTER = "deploy.job.dead_letter"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    CONFIGURATION = "configuration"
    INSTALL = "install"
    UNKNOWN = "unknown"


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize a failed attempt for alert routing."""
    if isinstance(exc, ArtifactFetchError):
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR
    if isinstance(exc, SecretStoreError):
        return ErrorCategory.CONFIGURATION
    if isinstance(exc, ArchiveInstallError):
        return ErrorCategory.INSTALL
    return ErrorCategory.UNKNOWN


class DeployEventLogger:
    """Emit structured worker events through femtologging.

    Success events are logged at INFO, failed attempts at WARNING, and
    dead-lettered jobs at ERROR.
    """

    def __init__(self, logger: SupportsLog | None = None) -> None:
        """Initialise with an optional logger (defaults to this module's)."""
        self._logger = logger or get_logger(__name__)

    def _emit(
        self,
        level: str,
        event: DeployEventType,
        fields: str,
        *,
        exc_info: object | None = None,
    ) -> None:
        self._logger.log(
            level, f"[{event}] {fields}", exc_info=exc_info, stack_info=False
        )

    def log_worker_started(self, capacity: int) -> None:
        """Log that the worker is consuming the queue."""
        self._emit(
            "INFO", DeployEventType.WORKER_STARTED, f"queue_capacity={capacity}"
        )

    def log_worker_stopped(self) -> None:
        """Log that the queue was closed and drained."""
        self._emit("INFO", DeployEventType.WORKER_STOPPED, "reason=queue_closed")

    def log_attempt_started(
        self, job: DownloadJob, attempt: int, max_attempts: int
    ) -> None:
        """Log the start of a download attempt."""
        self._emit(
            "INFO",
            DeployEventType.ATTEMPT_STARTED,
            f"artifacts_url={job.artifacts_url} attempt={attempt}/{max_attempts}",
        )

    def log_attempt_failed(
        self,
        job: DownloadJob,
        attempt: int,
        error: BaseException,
        retry_in_s: float | None,
    ) -> None:
        """Log a failed attempt and when the next one is due."""
        retry = "none" if retry_in_s is None else f"{retry_in_s:.0f}"
        self._emit(
            "WARNING",
            DeployEventType.ATTEMPT_FAILED,
            f"artifacts_url={job.artifacts_url} attempt={attempt} "
            f"error_type={type(error).__name__} "
            f"error_category={categorize_error(error)} "
            f"error_message={error} retry_in_seconds={retry}",
            exc_info=error,
        )

    def log_job_succeeded(self, outcome: JobOutcome, report: InstallReport) -> None:
        """Log a completed deployment."""
        self._emit(
            "INFO",
            DeployEventType.JOB_SUCCEEDED,
            f"artifacts_url={outcome.artifacts_url} attempts={outcome.attempts} "
            f"destination={report.destination} files_installed={len(report.installed)} "
            f"entries_skipped={len(report.skipped)}",
        )

    def log_job_dead_lettered(self, outcome: JobOutcome) -> None:
        """Log a job dropped after exhausting its attempts."""
        self._emit(
            "ERROR",
            DeployEventType.JOB_DEAD_LETTER,
            f"artifacts_url={outcome.artifacts_url} attempts={outcome.attempts} "
            f"total_delay_seconds={outcome.total_delay_s:.0f} "
            f"enqueued_at={outcome.enqueued_at.isoformat()} "
            f"last_error={outcome.last_error}",
        )
