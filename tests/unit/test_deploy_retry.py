"""Unit tests for the retry policy and job state machine."""

from __future__ import annotations

import pytest

from deploy_agent.common.time import utcnow
from deploy_agent.deploy.queue import DownloadJob
from deploy_agent.deploy.retry import (
    InvalidTransitionError,
    JobRun,
    JobState,
    RetryPolicy,
)


def _job() -> DownloadJob:
    return DownloadJob(
        artifacts_url="https://example.test/artifacts", enqueued_at=utcnow()
    )


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_default_schedule(self) -> None:
        """Nine attempts wait 2, 4, ... 256 seconds, 510 seconds in total."""
        policy = RetryPolicy()

        schedule = policy.schedule()

        assert schedule == (2, 4, 8, 16, 32, 64, 128, 256)
        assert sum(schedule) == 510

    @pytest.mark.parametrize(("attempt", "delay"), [(1, 2.0), (3, 8.0), (8, 256.0)])
    def test_delay_for(self, attempt: int, delay: float) -> None:
        """The delay after attempt n is 2**n seconds."""
        assert RetryPolicy().delay_for(attempt) == delay

    def test_delay_for_rejects_attempt_zero(self) -> None:
        """Attempt numbers are 1-based."""
        with pytest.raises(ValueError, match="start at 1"):
            RetryPolicy().delay_for(0)

    def test_rejects_zero_attempts(self) -> None:
        """A policy must allow at least one attempt."""
        with pytest.raises(ValueError, match="must be positive"):
            RetryPolicy(max_attempts=0)

    def test_single_attempt_has_no_schedule(self) -> None:
        """With one attempt there is nothing to wait for."""
        assert RetryPolicy(max_attempts=1).schedule() == ()


class TestJobRun:
    """Tests for the JobRun state machine."""

    def test_success_on_first_attempt(self) -> None:
        """PENDING -> ATTEMPTING -> SUCCEEDED."""
        run = JobRun(job=_job(), policy=RetryPolicy())
        assert run.state is JobState.PENDING

        assert run.begin_attempt() == 1
        assert run.state is JobState.ATTEMPTING
        run.succeed()

        outcome = run.outcome()
        assert outcome.state is JobState.SUCCEEDED
        assert outcome.attempts == 1
        assert outcome.total_delay_s == 0
        assert outcome.last_error is None

    def test_exhaustion_after_max_attempts(self) -> None:
        """Every failure but the last yields a delay; the last exhausts."""
        run = JobRun(job=_job(), policy=RetryPolicy(max_attempts=3))
        delays = []
        for _ in range(3):
            run.begin_attempt()
            delays.append(run.fail(OSError("disk full")))

        assert delays == [2.0, 4.0, None]
        assert run.state is JobState.EXHAUSTED
        outcome = run.outcome()
        assert outcome.attempts == 3
        assert outcome.total_delay_s == 6
        assert outcome.last_error == "OSError: disk full"

    def test_recovery_after_failures(self) -> None:
        """A success after failures keeps the accumulated delay."""
        run = JobRun(job=_job(), policy=RetryPolicy())
        for _ in range(8):
            run.begin_attempt()
            run.fail(RuntimeError("503"))
        run.begin_attempt()
        run.succeed()

        outcome = run.outcome()
        assert outcome.state is JobState.SUCCEEDED
        assert outcome.attempts == 9
        assert outcome.total_delay_s == 510

    def test_cannot_attempt_after_exhaustion(self) -> None:
        """No attempt may start once the job is exhausted."""
        run = JobRun(job=_job(), policy=RetryPolicy(max_attempts=1))
        run.begin_attempt()
        run.fail(RuntimeError("boom"))

        with pytest.raises(InvalidTransitionError):
            run.begin_attempt()

    def test_cannot_succeed_without_attempt(self) -> None:
        """Success requires an attempt in progress."""
        run = JobRun(job=_job(), policy=RetryPolicy())
        with pytest.raises(InvalidTransitionError):
            run.succeed()

    def test_outcome_requires_terminal_state(self) -> None:
        """An outcome is only available once the job has finished."""
        run = JobRun(job=_job(), policy=RetryPolicy())
        run.begin_attempt()
        with pytest.raises(InvalidTransitionError, match="report the outcome"):
            run.outcome()
