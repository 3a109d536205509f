"""Unit tests for worker log events and error categorisation."""

from __future__ import annotations

from pathlib import Path

import pytest

from deploy_agent.common.time import utcnow
from deploy_agent.deploy.errors import ArchiveInstallError
from deploy_agent.deploy.installer import InstallReport
from deploy_agent.deploy.observability import (
    DeployEventLogger,
    DeployEventType,
    ErrorCategory,
    categorize_error,
)
from deploy_agent.deploy.queue import DownloadJob
from deploy_agent.deploy.retry import JobOutcome, JobState
from deploy_agent.github.errors import ArtifactFetchError
from deploy_agent.secret_store import SecretStoreError
from tests.helpers.fakes import RecordingLogger

_URL = "https://example.test/runs/1/artifacts"


class TestCategorizeError:
    """Tests for categorize_error."""

    @pytest.mark.parametrize(
        ("exc", "category"),
        [
            (ArtifactFetchError.http_error(_URL, 502), ErrorCategory.TRANSIENT),
            (ArtifactFetchError.transport(_URL, OSError()), ErrorCategory.TRANSIENT),
            (ArtifactFetchError.http_error(_URL, 404), ErrorCategory.CLIENT_ERROR),
            (ArtifactFetchError.no_artifacts(_URL), ErrorCategory.TRANSIENT),
            (SecretStoreError.missing("github-api-token"), ErrorCategory.CONFIGURATION),
            (
                ArchiveInstallError.corrupt_archive(Path("/srv"), "bad zip"),
                ErrorCategory.INSTALL,
            ),
            (ValueError("boom"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, exc: BaseException, category: ErrorCategory) -> None:
        """Each failure type maps to its alert category."""
        assert categorize_error(exc) is category


class TestDeployEventLogger:
    """Tests for the structured event lines."""

    def test_attempt_failed_line(self) -> None:
        """Failed attempts log at WARNING with the retry delay and exc_info."""
        recorder = RecordingLogger()
        job = DownloadJob(artifacts_url=_URL, enqueued_at=utcnow())
        error = ArtifactFetchError.http_error(_URL, 503)

        DeployEventLogger(recorder).log_attempt_failed(job, 2, error, 4.0)

        (record,) = recorder.records
        assert record.level == "WARNING"
        assert record.message.startswith(f"[{DeployEventType.ATTEMPT_FAILED}]")
        assert "attempt=2" in record.message
        assert "error_type=ArtifactFetchError" in record.message
        assert "retry_in_seconds=4" in record.message
        assert record.exc_info is error

    def test_final_attempt_has_no_retry(self) -> None:
        """The last failed attempt reports no further retry."""
        recorder = RecordingLogger()
        job = DownloadJob(artifacts_url=_URL, enqueued_at=utcnow())

        DeployEventLogger(recorder).log_attempt_failed(
            job, 9, RuntimeError("x"), None
        )

        assert "retry_in_seconds=none" in recorder.records[0].message

    def test_job_succeeded_line(self) -> None:
        """Successful jobs report installed and skipped counts."""
        recorder = RecordingLogger()
        now = utcnow()
        outcome = JobOutcome(
            artifacts_url=_URL,
            state=JobState.SUCCEEDED,
            attempts=1,
            total_delay_s=0,
            enqueued_at=now,
            finished_at=now,
        )
        report = InstallReport(
            destination=Path("/srv/app"),
            installed=(Path("/srv/app/a"), Path("/srv/app/b")),
            skipped=("../c",),
        )

        DeployEventLogger(recorder).log_job_succeeded(outcome, report)

        message = recorder.messages("INFO")[0]
        assert message.startswith("[deploy.job.succeeded]")
        assert "files_installed=2" in message
        assert "entries_skipped=1" in message

    def test_dead_letter_line_is_error(self) -> None:
        """Dead-lettered jobs log a distinct ERROR event."""
        recorder = RecordingLogger()
        now = utcnow()
        outcome = JobOutcome(
            artifacts_url=_URL,
            state=JobState.EXHAUSTED,
            attempts=9,
            total_delay_s=510,
            enqueued_at=now,
            finished_at=now,
            last_error="ArtifactFetchError: GitHub returned HTTP 502",
        )

        DeployEventLogger(recorder).log_job_dead_lettered(outcome)

        (record,) = recorder.records
        assert record.level == "ERROR"
        assert record.message.startswith("[deploy.job.dead_letter]")
        assert "last_error=ArtifactFetchError: GitHub returned HTTP 502" in (
            record.message
        )
